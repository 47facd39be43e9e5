"""
Sliding-window memory: evicts the oldest messages, never summarizes.
"""

from typing import Iterator

import structlog

from ..llm.base import LLMMessage
from ..tokens import TokenCounter
from .base import BaseMemory

logger = structlog.get_logger()


class SlidingWindowMemory(BaseMemory):
    """Keeps at most ``max_messages`` messages and ``max_tokens`` tokens."""

    def __init__(
        self,
        max_messages: int,
        model: str,
        max_tokens: int,
        count_tokens: TokenCounter | None = None,
    ):
        super().__init__(model, count_tokens)
        self.max_messages = max_messages
        self.max_tokens = max_tokens

    async def add(self, message: LLMMessage) -> None:
        self.buffer.append(message, self.count_tokens(message.content))
        self._truncate()

    def _truncate(self) -> None:
        excess = len(self.buffer) - self.max_messages
        if excess > 0:
            self.buffer.drop_oldest(excess)

        evicted = max(excess, 0)
        while self.buffer.messages and self.buffer.total_tokens > self.max_tokens:
            self.buffer.drop_oldest()
            evicted += 1

        if evicted:
            logger.debug(
                "Evicted messages from sliding window",
                evicted=evicted,
                remaining=len(self.buffer),
                tokens=self.buffer.total_tokens,
            )

    def get_messages(self) -> Iterator[LLMMessage]:
        yield from self.buffer.messages
