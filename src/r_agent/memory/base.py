"""
Memory interface and the shared conversation buffer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterator

from ..llm.base import LLMMessage
from ..tokens import TokenCounter, token_counter


@dataclass
class ConversationBuffer:
    """Ordered messages with index-aligned token counts."""

    messages: list[LLMMessage] = field(default_factory=list)
    token_counts: list[int] = field(default_factory=list)

    def append(self, message: LLMMessage, tokens: int) -> None:
        self.messages.append(message)
        self.token_counts.append(tokens)

    def drop_oldest(self, count: int = 1) -> list[LLMMessage]:
        """Remove and return the ``count`` oldest messages."""
        dropped = self.messages[:count]
        del self.messages[:count]
        del self.token_counts[:count]
        return dropped

    def clear(self) -> None:
        self.messages.clear()
        self.token_counts.clear()

    @property
    def total_tokens(self) -> int:
        return sum(self.token_counts)

    def __len__(self) -> int:
        return len(self.messages)


class BaseMemory(ABC):
    """Conversation memory used by an agent.

    Implementations own a ``ConversationBuffer`` and decide what happens when
    it grows past their limits.
    """

    def __init__(self, model: str, count_tokens: TokenCounter | None = None):
        self.model = model
        self.count_tokens = count_tokens or token_counter(model)
        self.buffer = ConversationBuffer()

    @abstractmethod
    async def add(self, message: LLMMessage) -> None:
        """Add a message to the memory."""
        pass

    @abstractmethod
    def get_messages(self) -> Iterator[LLMMessage]:
        """Iterate over the messages to send to the model, oldest first."""
        pass

    def clear(self) -> None:
        """Drop all live messages."""
        self.buffer.clear()

    def token_count(self) -> int:
        """Tokens held by the live messages."""
        return self.buffer.total_tokens

    def __len__(self) -> int:
        return len(self.buffer)
