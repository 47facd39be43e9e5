"""
Agent interface.
"""

from abc import ABC, abstractmethod
from typing import Iterator

from ..llm.base import LLMMessage
from ..memory.base import BaseMemory


class BaseAgent(ABC):
    """An agent that answers prompts on top of a conversation memory."""

    def __init__(self, memory: BaseMemory):
        self.memory = memory

    async def add_message(self, message: LLMMessage) -> None:
        await self.memory.add(message)

    def get_history(self) -> Iterator[LLMMessage]:
        return self.memory.get_messages()

    def build_messages(self) -> Iterator[LLMMessage]:
        """Messages sent to the model on the next call."""
        return self.get_history()

    def clear_history(self) -> None:
        self.memory.clear()

    @abstractmethod
    async def run(self, user_prompt: str) -> str:
        """Answer a prompt."""
        pass
