"""
Tools module for agent capabilities.
"""

from .base import BaseTool, Tool, ToolParameter
from .registry import ToolRegistry
from .calculator import SumTool

__all__ = [
    "BaseTool",
    "Tool",
    "ToolParameter",
    "ToolRegistry",
    "SumTool",
]
