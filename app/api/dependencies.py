"""Dependency injection for the per-request service context.

Every request gets a freshly wired ServiceContext; its HTTP client is closed
once the response has been produced.
"""

import logging
from typing import AsyncIterator

from app.config import settings
from app.context import ServiceContext, build_context

logger = logging.getLogger(__name__)


async def get_service_context() -> AsyncIterator[ServiceContext]:
    """Yield a ServiceContext built from the application settings."""
    context = build_context(settings)
    try:
        yield context
    finally:
        await context.aclose()
