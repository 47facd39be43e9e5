"""
Summarizing memory - a rolling summary plus a verbatim tail.

When the live window grows past ``max_tokens`` the oldest messages are
handed to a (usually cheaper) summary model and folded into a running
summary. The summary is persisted per task so a restarted agent picks up
where it left off, and is itself compressed once it outgrows its budget.

The summary model is asked for a JSON object. Each request is tried up to
three times; if every attempt fails the memory degrades to a bounded
plain-text fallback instead of raising.
"""

import json
from pathlib import Path
from typing import Iterator

import structlog
from pydantic import BaseModel

from ..llm.base import BaseLLM, LLMMessage
from ..prompts import (
    COMPRESS_SUMMARY_PROMPT,
    PREVIOUS_SUMMARY_PREFIX,
    SUMMARY_DIVIDER,
    SUMMARY_FORMAT,
    SUMMARY_PROMPT,
)
from ..tokens import TokenCounter
from .base import BaseMemory

logger = structlog.get_logger()

MAX_SUMMARY_ATTEMPTS = 3
MAX_TRANSCRIPT_CONTENT_CHARS = 500
MAX_RAW_SUMMARY_CHARS = 1000
SUMMARY_FILENAME = "summary.txt"


class StructuredSummary(BaseModel):
    """The JSON shape the summary model is asked to produce."""

    task_context: str
    key_decisions: list[str]
    actions_taken: list[str]
    current_state: str
    important_info: list[str]

    def render(self) -> str:
        def bullets(items: list[str]) -> str:
            return "\n".join(f"- {item}" for item in items)

        return (
            SUMMARY_FORMAT.replace("{task_context}", self.task_context)
            .replace("{key_decisions}", bullets(self.key_decisions))
            .replace("{actions_taken}", bullets(self.actions_taken))
            .replace("{current_state}", self.current_state)
            .replace("{important_info}", bullets(self.important_info))
        )


def parse_summary(text: str) -> StructuredSummary:
    """Parse the outermost JSON object in ``text``.

    Raises:
        ValueError: if there is no object or it has the wrong shape
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ValueError("no JSON object in summary response")
    return StructuredSummary.model_validate_json(text[start:end + 1])


def format_conversation(messages: list[LLMMessage]) -> str:
    """Flatten messages into a transcript for the summary prompt."""
    lines = []
    for msg in messages:
        content = msg.content
        if len(content) > MAX_TRANSCRIPT_CONTENT_CHARS:
            content = content[:MAX_TRANSCRIPT_CONTENT_CHARS] + "...[truncated]"

        parts = [f"{msg.role.upper()}:"]
        if msg.tool_call_id:
            parts.append(f"result: {content}")
        else:
            parts.append(content)
        if msg.tool_calls:
            calls = json.dumps([tc.to_dict() for tc in msg.tool_calls])
            parts.append(f"With Tool Calls: {calls}")
        if msg.tool_call_id:
            parts.append(f"With Tool Call ID: {msg.tool_call_id}")
        lines.append(" ".join(parts))
    return "\n".join(lines)


class SummaryMemory(BaseMemory):
    """Memory that summarizes old messages instead of dropping them."""

    def __init__(
        self,
        task_id: str,
        reserve_ratio: float,
        summary_llm: BaseLLM,
        max_tokens: int,
        workspace_path: str | Path,
        count_tokens: TokenCounter | None = None,
        summary_prompt: str = SUMMARY_PROMPT,
        compress_prompt: str = COMPRESS_SUMMARY_PROMPT,
    ):
        super().__init__(summary_llm.model, count_tokens)
        self.task_id = task_id
        self.reserve_ratio = reserve_ratio
        self.summary_llm = summary_llm
        self.max_tokens = max_tokens
        self.summary_prompt = summary_prompt
        self.compress_prompt = compress_prompt
        self.workspace_path = Path(workspace_path) / task_id
        self.log = logger.bind(task_id=task_id)

        self._summary = LLMMessage.system("")
        self._summary_tokens = 0

        self.workspace_path.mkdir(parents=True, exist_ok=True)
        self._load_existing_summary()

    @property
    def summary(self) -> str:
        return self._summary.content

    @property
    def summary_tokens(self) -> int:
        return self._summary_tokens

    @property
    def reserve_tokens(self) -> int:
        return int(self.max_tokens * self.reserve_ratio)

    @property
    def summary_budget(self) -> int:
        return self.max_tokens - self.reserve_tokens

    @property
    def summary_file(self) -> Path:
        return self.workspace_path / SUMMARY_FILENAME

    async def add(self, message: LLMMessage) -> None:
        self.buffer.append(message, self.count_tokens(message.content))
        self.log.debug("Added message to summary memory", tokens=self.token_count())
        if self.token_count() > self.max_tokens:
            await self._summarize()

    def get_messages(self) -> Iterator[LLMMessage]:
        yield self._summary
        yield from self.buffer.messages

    def forget(self) -> None:
        """Clear the live window and the summary, including the persisted file."""
        self.clear()
        self._summary.content = ""
        self._summary_tokens = 0
        try:
            self.summary_file.unlink(missing_ok=True)
        except OSError as e:
            self.log.error("Failed to delete summary", path=str(self.summary_file), error=str(e))

    def _split_tail(self) -> list[LLMMessage]:
        """Remove and return everything older than the tail that fits the budget.

        The newest message is always kept, even when it alone exceeds the budget.
        """
        keep_count = 0
        keep_tokens = 0
        for tokens in reversed(self.buffer.token_counts):
            if keep_tokens + tokens > self.max_tokens:
                break
            keep_count += 1
            keep_tokens += tokens
        keep_count = max(keep_count, 1)

        self.log.debug(
            "Splitting summary memory",
            keep_count=keep_count,
            keep_tokens=keep_tokens,
            summarize_count=len(self.buffer) - keep_count,
        )
        return self.buffer.drop_oldest(len(self.buffer) - keep_count)

    async def _summarize(self) -> None:
        to_summarize = self._split_tail()

        if not to_summarize:
            if self._summary.content and self._summary_tokens > self.summary_budget:
                await self._compress_summary()
            self._save_summary()
            return

        transcript = format_conversation(to_summarize)
        prompt = LLMMessage.user(self.summary_prompt.replace("{conversation}", transcript))
        addition = await self._request_summary(
            prompt,
            empty_fallback=transcript[:MAX_RAW_SUMMARY_CHARS],
        )

        if addition:
            if self._summary.content:
                self._summary.content = f"{self._summary.content}{SUMMARY_DIVIDER}{addition}"
            else:
                self._summary.content = addition
        self._summary_tokens = self.count_tokens(self._summary.content)

        self.log.info(
            "Summarized messages",
            summarized=len(to_summarize),
            remaining=len(self.buffer),
            summary_tokens=self._summary_tokens,
        )

        if self._summary_tokens > self.summary_budget:
            await self._compress_summary()

        self._save_summary()

    async def _compress_summary(self) -> None:
        budget = self.summary_budget
        prompt = LLMMessage.user(
            self.compress_prompt.replace("{target_tokens}", str(budget))
            .replace("{summary}", self._summary.content)
        )
        original = self._summary.content
        compressed = await self._request_summary(
            prompt,
            empty_fallback=original[:len(original) // 2],
        )

        self._summary.content = compressed
        self._summary_tokens = self.count_tokens(compressed)

        if self._summary_tokens > budget:
            self.log.warning(
                "Compressed summary still over budget, truncating",
                summary_tokens=self._summary_tokens,
                budget=budget,
            )
            while self._summary.content and self._summary_tokens > budget:
                content = self._summary.content
                self._summary.content = content[:len(content) // 2]
                self._summary_tokens = self.count_tokens(self._summary.content)

        self.log.info(
            "Compressed summary",
            before_chars=len(original),
            after_chars=len(self._summary.content),
            summary_tokens=self._summary_tokens,
        )

    async def _request_summary(self, prompt: LLMMessage, empty_fallback: str) -> str:
        """Ask the summary model for a structured summary and render it.

        After the final failed attempt, a malformed answer degrades to its first
        characters and an empty answer degrades to ``empty_fallback``.
        """
        text: str | None = None
        for attempt in range(1, MAX_SUMMARY_ATTEMPTS + 1):
            response = await self.summary_llm.call(prompt)
            text = response.content
            if not text:
                self.log.error("Summary model returned no content", attempt=attempt)
                continue
            try:
                summary = parse_summary(text)
            except ValueError as e:
                self.log.error("Failed to parse summary JSON", attempt=attempt, error=str(e))
                continue
            self.log.info("Generated well formatted summary", attempt=attempt)
            return summary.render()

        if text:
            self.log.error(
                "Summary attempts exhausted, using raw response",
                attempts=MAX_SUMMARY_ATTEMPTS,
            )
            return text[:MAX_RAW_SUMMARY_CHARS]

        self.log.error(
            "Summary attempts exhausted with no content, using fallback",
            attempts=MAX_SUMMARY_ATTEMPTS,
        )
        return empty_fallback

    def _load_existing_summary(self) -> None:
        if not self.summary_file.exists():
            return
        try:
            content = self.summary_file.read_text(encoding="utf-8")
        except OSError as e:
            self.log.warning("Failed to read summary", path=str(self.summary_file), error=str(e))
            return
        self._summary.content = f"{PREVIOUS_SUMMARY_PREFIX}{content}"
        self._summary_tokens = self.count_tokens(self._summary.content)
        self.log.info("Loaded previous summary", summary_tokens=self._summary_tokens)

    def _save_summary(self) -> None:
        try:
            self.summary_file.write_text(self._summary.content, encoding="utf-8")
        except OSError as e:
            self.log.error("Failed to save summary", path=str(self.summary_file), error=str(e))
