"""
Conversation memory with token budgets.
"""

from .base import BaseMemory, ConversationBuffer
from .sliding_window import SlidingWindowMemory
from .summary import SummaryMemory

__all__ = ["BaseMemory", "ConversationBuffer", "SlidingWindowMemory", "SummaryMemory"]
