"""Resume vs. job post analysis: prompts, reasoning client, orchestration and report rendering."""

from .orchestrator import AnalysisOrchestrator
from .prompts import ANALYSIS_KINDS, get_prompt_for_kind
from .reasoning import ReasoningClient, ReasoningError, parse_json_reply
from .report import render_report, split_message

__all__ = [
    "ANALYSIS_KINDS",
    "AnalysisOrchestrator",
    "ReasoningClient",
    "ReasoningError",
    "get_prompt_for_kind",
    "parse_json_reply",
    "render_report",
    "split_message",
]
