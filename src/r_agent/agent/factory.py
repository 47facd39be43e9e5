"""
Build agents from settings.
"""

from typing import Iterable

from ..config import Settings, get_settings
from ..llm import BaseLLM, create_llm
from ..memory import BaseMemory, SlidingWindowMemory, SummaryMemory
from ..prompts import build_react_system_prompt
from ..tools import ToolRegistry
from .react import ReactAgent

DEFAULT_AGENT_PROMPT = "You are a helpful assistant. Use tools to answer user queries."


def create_memory(
    task_id: str,
    settings: Settings | None = None,
    summary_llm: BaseLLM | None = None,
    model: str | None = None,
) -> BaseMemory:
    """Create the memory selected by ``settings.memory_type``.

    ``model`` picks the tokenizer of the sliding window, defaulting to
    ``settings.default_model``.
    """
    settings = settings or get_settings()

    if settings.memory_type == "sliding_window":
        return SlidingWindowMemory(
            max_messages=settings.max_messages,
            model=model or settings.default_model,
            max_tokens=settings.memory_max_tokens,
        )

    if summary_llm is None:
        summary_llm = create_llm(settings.get_summary_llm_config())
    return SummaryMemory(
        task_id=task_id,
        reserve_ratio=settings.reserve_ratio,
        summary_llm=summary_llm,
        max_tokens=settings.memory_max_tokens,
        workspace_path=settings.workspace_root,
    )


def create_agent(
    task_id: str,
    system_prompt: str = DEFAULT_AGENT_PROMPT,
    tool_registry: ToolRegistry | None = None,
    tool_names: Iterable[str] | None = None,
    settings: Settings | None = None,
    memory: BaseMemory | None = None,
    provider: str | None = None,
    model: str | None = None,
) -> ReactAgent:
    """Assemble a ReactAgent with its model client and memory.

    The model client is configured with the ReAct system prompt and the
    definitions of the selected tools.
    """
    settings = settings or get_settings()
    tool_registry = tool_registry if tool_registry is not None else ToolRegistry()
    tool_names = list(tool_names) if tool_names is not None else tool_registry.list_tools()

    if memory is None:
        memory = create_memory(task_id, settings, model=model)

    llm = create_llm(
        settings.get_llm_config(provider, model),
        system_prompt=build_react_system_prompt(system_prompt, settings.end_token),
        tools=tool_registry.get_definitions(tool_names),
    )

    return ReactAgent(
        llm=llm,
        memory=memory,
        tool_registry=tool_registry,
        tool_names=tool_names,
        max_iterations=settings.max_iterations,
        end_token=settings.end_token,
        task_id=task_id,
    )
