"""Admin access to the event log."""

from app.admin.gateway import AdminDecision, AdminLogGateway

__all__ = ["AdminDecision", "AdminLogGateway"]
