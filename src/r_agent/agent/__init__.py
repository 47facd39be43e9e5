"""
Agent module - the reason-act loop.

Includes:
- BaseAgent: Interface shared by agents
- ReactAgent: Model/tool loop over a bounded memory
- create_agent: Assembly from settings
"""

from .base import BaseAgent
from .react import ReactAgent
from .factory import create_agent, create_memory

__all__ = [
    "BaseAgent",
    "ReactAgent",
    "create_agent",
    "create_memory",
]
