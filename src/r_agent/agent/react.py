"""
ReAct agent: alternates model calls and tool calls until the model marks
its answer as final or the iteration budget runs out.

Each iteration makes exactly one model call and then does one of:
1. Finish, when the reply contains the end-of-answer marker
2. Continue, recording the reply when it asks for no tools
3. Run every requested tool in order and record the results
"""

from typing import Iterable

import structlog

from ..llm.base import BaseLLM, LLMMessage, LLMResponse, ToolCall, Usage
from ..memory.base import BaseMemory
from ..prompts import REACT_END_TOKEN
from ..tools.registry import ToolRegistry
from .base import BaseAgent

logger = structlog.get_logger()

NO_TOOL_OUTPUT = "No output from tool."
MAX_ITERATIONS_MESSAGE = "Reached maximum iterations without a final answer."
MISSING_FIELD = "Nothing"


class ReactAgent(BaseAgent):
    """Reason-act loop over a memory, a model client and a tool registry.

    The model client should already carry the ReAct system prompt and the
    definitions of ``tool_names``; see ``agent.factory.create_agent``.
    """

    def __init__(
        self,
        llm: BaseLLM,
        memory: BaseMemory,
        tool_registry: ToolRegistry | None = None,
        tool_names: Iterable[str] | None = None,
        max_iterations: int = 10,
        end_token: str = REACT_END_TOKEN,
        task_id: str = "",
    ):
        super().__init__(memory)
        self.llm = llm
        self.tool_registry = tool_registry if tool_registry is not None else ToolRegistry()
        self.tool_names = (
            list(tool_names) if tool_names is not None else self.tool_registry.list_tools()
        )
        self.max_iterations = max_iterations
        self.end_token = end_token
        self.usage = Usage()
        self.log = logger.bind(task_id=task_id) if task_id else logger

    def is_finished(self, response: LLMResponse) -> bool:
        return bool(response.content) and self.end_token in response.content

    def extract_final_answer(self, response: LLMResponse) -> str | None:
        """Text before the end marker, stripped; None if there is no marker."""
        if not response.content:
            return None
        answer, marker, _ = response.content.partition(self.end_token)
        if not marker:
            return None
        return answer.strip()

    def get_tools_schema(self) -> list[dict]:
        return self.tool_registry.get_schema(self.tool_names)

    def format_tool_calls(self, tool_calls: Iterable[ToolCall]) -> list[str]:
        return self.tool_registry.format_tool_calls(tool_calls)

    async def execute_tool(self, name: str, arguments: str) -> str | None:
        """Run one of this agent's tools. None if the agent has no such tool."""
        if name not in self.tool_names:
            self.log.warning("Tool not available to agent", tool_name=name)
            return None
        return await self.tool_registry.execute(name, arguments)

    def _track_usage(self, response: LLMResponse) -> None:
        if response.usage:
            self.usage.prompt_tokens += response.usage.prompt_tokens
            self.usage.completion_tokens += response.usage.completion_tokens
            self.usage.total_tokens += response.usage.total_tokens

    async def run(self, user_prompt: str) -> str:
        await self.add_message(LLMMessage.user(user_prompt))
        self.log.debug("Running ReactAgent", user_prompt=user_prompt)

        for iteration in range(self.max_iterations):
            messages = list(self.build_messages())
            self.log.debug(
                "ReAct iteration",
                iteration=iteration + 1,
                max_iterations=self.max_iterations,
                messages=len(messages),
                memory_tokens=self.memory.token_count(),
            )
            response = await self.llm.call_with_history(messages)
            self._track_usage(response)

            answer = self.extract_final_answer(response)
            if answer is not None:
                await self.add_message(LLMMessage.assistant(answer))
                self.log.info("Final answer extracted", iteration=iteration + 1)
                return answer

            content = (
                f"Reasoning: {response.reasoning_content or MISSING_FIELD}\n"
                f"Content: {response.content or MISSING_FIELD}"
            )

            if not response.tool_calls:
                await self.add_message(LLMMessage.assistant(content))
                self.log.debug("Response without tool calls", content=content)
                continue

            tool_calls = list(response.tool_calls)
            self.log.debug("Tool calls", tool_calls=self.format_tool_calls(tool_calls))
            await self.add_message(LLMMessage.assistant(content, tool_calls))

            for tool_call in tool_calls:
                self.log.debug("Executing tool", tool_call_id=tool_call.id, tool=tool_call.name)
                result = await self.execute_tool(tool_call.name, tool_call.arguments)
                if result is None:
                    result = NO_TOOL_OUTPUT
                self.log.debug("Tool result", tool_call_id=tool_call.id, result=result)
                await self.add_message(
                    LLMMessage.tool(result, tool_call_id=tool_call.id, name=tool_call.name)
                )

        self.log.warning("Maximum iterations reached", max_iterations=self.max_iterations)
        return MAX_ITERATIONS_MESSAGE
