"""Reasoning client: one prompt-and-parse round trip per analysis kind."""

import json
import logging
import re
import time
from typing import Any, Optional

from langchain_anthropic import ChatAnthropic

from .prompts import get_prompt_for_kind

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


class ReasoningError(RuntimeError):
    """Raised when the model cannot be reached or its reply is not a JSON object."""


def parse_json_reply(text: str) -> dict[str, Any]:
    """Extract a JSON object from a model reply.

    Tries, in order: the whole reply, the first fenced code block, and the
    slice from the first ``{`` to the last ``}``.

    Raises:
        ReasoningError: If none of the candidates is a JSON object.
    """
    candidates = [text.strip()]
    fence = _CODE_FENCE.search(text)
    if fence:
        candidates.append(fence.group(1).strip())
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise ReasoningError("Model reply did not contain a JSON object")


def _reply_text(response: Any) -> str:
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        # Content blocks: keep the text parts only
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block) for block in content
        )
    return str(content)


class ReasoningClient:
    """Async wrapper over ChatAnthropic returning parsed JSON per analysis kind."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        timeout: Optional[float] = 60.0,
        max_input_chars: int = 20000,
        llm: Optional[Any] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Anthropic API key.
            model: Model name.
            temperature: Sampling temperature.
            max_tokens: Reply token cap.
            timeout: Per-request timeout in seconds.
            max_input_chars: Each document is truncated to this many characters.
            llm: Pre-built chat model (tests inject a fake here).
        """
        self.model = model
        self.max_input_chars = max_input_chars
        self.llm = llm or ChatAnthropic(
            model=model,
            anthropic_api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
            default_request_timeout=timeout,
        )
        logger.info("ReasoningClient initialized: model=%s, temperature=%s", model, temperature)

    async def analyze(self, kind: str, resume_text: str, job_text: str) -> dict[str, Any]:
        """Run one analysis kind and return the model's JSON object.

        Raises:
            KeyError: If ``kind`` has no prompt template.
            ReasoningError: If the model call fails or the reply is not JSON.
        """
        prompt = get_prompt_for_kind(kind)
        messages = prompt.format_messages(
            resume=resume_text[: self.max_input_chars],
            job_post=job_text[: self.max_input_chars],
        )

        t0 = time.perf_counter()
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            err_msg = str(e).lower()
            if "rate" in err_msg or "429" in err_msg or "overloaded" in err_msg:
                logger.warning("LLM rate limit or overload during %s analysis: %s", kind, e)
            else:
                logger.error("LLM invocation failed during %s analysis: %s", kind, e)
            raise ReasoningError(f"{kind} analysis request failed: {e}") from e

        usage = (getattr(response, "response_metadata", None) or {}).get("usage", {})
        if usage:
            logger.info(
                "LLM usage (%s): input_tokens=%s, output_tokens=%s",
                kind,
                usage.get("input_tokens"),
                usage.get("output_tokens"),
            )
        logger.info("%s analysis returned in %.3fs", kind, time.perf_counter() - t0)

        try:
            return parse_json_reply(_reply_text(response))
        except ReasoningError:
            logger.warning("%s analysis reply was not valid JSON", kind)
            raise
