"""
Calculator tool used by the command-line demo.
"""

import json
from typing import Any

from .base import BaseTool


class SumTool(BaseTool):
    """Adds two numbers."""

    @property
    def name(self) -> str:
        return "sumOfTwoNumbers"

    @property
    def description(self) -> str:
        return "A tool to sum two numbers"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "num1": {"type": "number", "description": "The first number"},
                "num2": {"type": "number", "description": "The second number"},
            },
            "required": ["num1", "num2"],
        }

    async def execute(self, arguments: str) -> str:
        try:
            args = json.loads(arguments)
            total = float(args["num1"]) + float(args["num2"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            return f"Error: expected numeric num1 and num2: {e}"
        return str(int(total)) if total.is_integer() else str(total)
