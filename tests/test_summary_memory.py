"""
Tests for the summarizing memory.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from r_agent.llm.base import LLMMessage, LLMResponse, ToolCall
from r_agent.memory.summary import (
    StructuredSummary,
    SummaryMemory,
    format_conversation,
    parse_summary,
)
from r_agent.prompts import PREVIOUS_SUMMARY_PREFIX, SUMMARY_DIVIDER

SMALL_SUMMARY = {
    "task_context": "Add numbers",
    "key_decisions": ["Use the calculator"],
    "actions_taken": ["Summed 1 and 2"],
    "current_state": "Done",
    "important_info": ["Result is 3"],
}
SMALL_JSON = json.dumps(SMALL_SUMMARY)
SMALL_RENDERED = StructuredSummary(**SMALL_SUMMARY).render()

BIG_SUMMARY = {
    **SMALL_SUMMARY,
    "important_info": [f"fact number {i}" for i in range(40)],
}
BIG_JSON = json.dumps(BIG_SUMMARY)
BIG_RENDERED = StructuredSummary(**BIG_SUMMARY).render()


def count_words(text: str) -> int:
    return len(text.split())


def words(n: int, tag: str = "word") -> str:
    return " ".join([tag] * n)


def make_llm(*contents, default: str | None = SMALL_JSON) -> MagicMock:
    """Summary model mock: returns ``contents`` in order, then ``default``."""
    llm = MagicMock()
    llm.model = "gpt-4o-mini"
    if contents:
        llm.call = AsyncMock(side_effect=[LLMResponse(content=c) for c in contents])
    else:
        llm.call = AsyncMock(return_value=LLMResponse(content=default))
    return llm


def make_memory(tmp_path, llm, max_tokens=100, reserve_ratio=0.2, task_id="task-1"):
    return SummaryMemory(
        task_id=task_id,
        reserve_ratio=reserve_ratio,
        summary_llm=llm,
        max_tokens=max_tokens,
        workspace_path=tmp_path,
        count_tokens=count_words,
    )


def test_construction_creates_workspace(tmp_path):
    """Test that the task directory is created and the summary starts empty."""
    memory = make_memory(tmp_path, make_llm())

    assert (tmp_path / "task-1").is_dir()
    assert memory.summary == ""
    assert memory.summary_tokens == 0
    assert memory.summary_budget == 80

    messages = list(memory.get_messages())
    assert len(messages) == 1
    assert messages[0].role == "system"


@pytest.mark.asyncio
async def test_no_summary_under_budget(tmp_path):
    """Test that nothing is summarized while the window fits."""
    llm = make_llm()
    memory = make_memory(tmp_path, llm)

    await memory.add(LLMMessage.user(words(40)))
    await memory.add(LLMMessage.assistant(words(40)))

    llm.call.assert_not_awaited()
    assert memory.token_count() == 80
    assert len(memory) == 2


@pytest.mark.asyncio
async def test_summarize_when_over_budget(tmp_path):
    """Test that older messages are folded into the summary."""
    llm = make_llm()
    memory = make_memory(tmp_path, llm)

    await memory.add(LLMMessage.user(words(60, "first")))
    await memory.add(LLMMessage.user(words(60, "second")))

    llm.call.assert_awaited_once()
    prompt = llm.call.await_args.args[0]
    assert prompt.role == "user"
    assert "first" in prompt.content

    assert memory.token_count() == 60
    assert [m.content.split()[0] for m in memory.buffer.messages] == ["second"]
    assert memory.summary == SMALL_RENDERED
    assert memory.summary_tokens == count_words(SMALL_RENDERED)
    assert memory.summary_file.read_text() == SMALL_RENDERED


@pytest.mark.asyncio
async def test_summaries_are_appended(tmp_path):
    """Test that each pass appends to the summary instead of replacing it."""
    llm = make_llm()
    memory = make_memory(tmp_path, llm)

    for _ in range(3):
        await memory.add(LLMMessage.user(words(60)))

    assert llm.call.await_count == 2
    assert memory.summary == f"{SMALL_RENDERED}{SUMMARY_DIVIDER}{SMALL_RENDERED}"


@pytest.mark.asyncio
async def test_json_inside_prose_is_parsed(tmp_path):
    """Test that the JSON object is found inside surrounding text."""
    llm = make_llm(f"Here is the summary:\n```json\n{SMALL_JSON}\n```\nDone.")
    memory = make_memory(tmp_path, llm)

    await memory.add(LLMMessage.user(words(60)))
    await memory.add(LLMMessage.user(words(60)))

    assert memory.summary == SMALL_RENDERED


@pytest.mark.asyncio
async def test_retry_after_empty_response(tmp_path):
    """Test that a failed attempt is retried."""
    llm = make_llm(None, SMALL_JSON)
    memory = make_memory(tmp_path, llm)

    await memory.add(LLMMessage.user(words(60)))
    await memory.add(LLMMessage.user(words(60)))

    assert llm.call.await_count == 2
    assert memory.summary == SMALL_RENDERED


@pytest.mark.asyncio
async def test_malformed_json_degrades_to_raw_text(tmp_path):
    """Test the raw-text fallback after three malformed answers."""
    raw = "I cannot summarize this. " * 80
    llm = make_llm(default=raw)
    memory = make_memory(tmp_path, llm, max_tokens=1000)

    await memory.add(LLMMessage.user(words(600)))
    await memory.add(LLMMessage.user(words(600)))

    assert llm.call.await_count == 3
    assert memory.summary == raw[:1000]


@pytest.mark.asyncio
async def test_empty_responses_degrade_to_transcript(tmp_path):
    """Test the fallback when the summary model never answers."""
    llm = make_llm(default=None)
    memory = make_memory(tmp_path, llm, max_tokens=1000)

    await memory.add(LLMMessage.user(words(600)))
    await memory.add(LLMMessage.user(words(600)))

    assert llm.call.await_count == 3
    assert memory.summary.startswith("USER: word")
    assert "...[truncated]" in memory.summary
    assert memory.token_count() == 600


@pytest.mark.asyncio
async def test_compression_replaces_summary(tmp_path):
    """Test that an oversized summary is rewritten to fit its budget."""
    llm = make_llm(BIG_JSON, SMALL_JSON)
    memory = make_memory(tmp_path, llm)

    await memory.add(LLMMessage.user(words(60)))
    await memory.add(LLMMessage.user(words(60)))

    assert llm.call.await_count == 2
    compress_prompt = llm.call.await_args_list[1].args[0].content
    assert "80" in compress_prompt
    assert "fact number 39" in compress_prompt

    assert memory.summary == SMALL_RENDERED
    assert SUMMARY_DIVIDER not in memory.summary
    assert memory.summary_tokens <= memory.summary_budget


@pytest.mark.asyncio
async def test_compression_failure_truncates_summary(tmp_path):
    """Test that failed compression keeps a shortened prefix within budget."""
    llm = make_llm(BIG_JSON, None, None, None)
    memory = make_memory(tmp_path, llm)

    await memory.add(LLMMessage.user(words(60)))
    await memory.add(LLMMessage.user(words(60)))

    assert llm.call.await_count == 4
    assert memory.summary
    assert BIG_RENDERED.startswith(memory.summary)
    assert memory.summary_tokens <= memory.summary_budget


@pytest.mark.asyncio
async def test_newest_message_always_kept(tmp_path):
    """Test that the tail keeps the newest message even when it exceeds the budget."""
    llm = make_llm()
    memory = make_memory(tmp_path, llm)

    await memory.add(LLMMessage.user(words(10, "small")))
    await memory.add(LLMMessage.user(words(150, "huge")))

    llm.call.assert_awaited_once()
    assert len(memory) == 1
    assert memory.buffer.messages[0].content.startswith("huge")
    assert memory.token_count() == 150


@pytest.mark.asyncio
async def test_nothing_to_summarize_skips_model(tmp_path):
    """Test that a lone oversized message does not call the model."""
    llm = make_llm()
    memory = make_memory(tmp_path, llm)

    await memory.add(LLMMessage.user(words(150)))

    llm.call.assert_not_awaited()
    assert len(memory) == 1
    assert memory.summary_file.exists()


@pytest.mark.asyncio
async def test_nothing_to_summarize_compresses_large_summary(tmp_path):
    """Test that an oversized loaded summary is compressed when the tail is full."""
    task_dir = tmp_path / "task-1"
    task_dir.mkdir()
    (task_dir / "summary.txt").write_text(words(100, "old"))

    llm = make_llm()
    memory = make_memory(tmp_path, llm)
    assert memory.summary_tokens > memory.summary_budget

    await memory.add(LLMMessage.user(words(150)))

    llm.call.assert_awaited_once()
    assert memory.summary == SMALL_RENDERED


@pytest.mark.asyncio
async def test_summary_survives_restart(tmp_path):
    """Test that a new memory for the same task reloads the summary."""
    memory = make_memory(tmp_path, make_llm())
    await memory.add(LLMMessage.user(words(60)))
    await memory.add(LLMMessage.user(words(60)))

    restarted = make_memory(tmp_path, make_llm())

    assert restarted.summary == f"{PREVIOUS_SUMMARY_PREFIX}{SMALL_RENDERED}"
    assert restarted.summary_tokens == count_words(restarted.summary)
    assert len(restarted) == 0

    other_task = make_memory(tmp_path, make_llm(), task_id="task-2")
    assert other_task.summary == ""


@pytest.mark.asyncio
async def test_clear_keeps_summary(tmp_path):
    """Test that clear drops the live window only."""
    memory = make_memory(tmp_path, make_llm())
    await memory.add(LLMMessage.user(words(60)))
    await memory.add(LLMMessage.user(words(60)))

    memory.clear()

    assert len(memory) == 0
    assert memory.token_count() == 0
    assert memory.summary == SMALL_RENDERED
    assert memory.summary_file.exists()


@pytest.mark.asyncio
async def test_forget_removes_summary(tmp_path):
    """Test that forget drops the summary and its file."""
    memory = make_memory(tmp_path, make_llm())
    await memory.add(LLMMessage.user(words(60)))
    await memory.add(LLMMessage.user(words(60)))

    memory.forget()

    assert memory.summary == ""
    assert memory.summary_tokens == 0
    assert not memory.summary_file.exists()


@pytest.mark.asyncio
async def test_save_failure_is_not_fatal(tmp_path):
    """Test that a persistence error keeps the in-memory summary."""
    memory = make_memory(tmp_path, make_llm())
    memory.summary_file.mkdir()

    await memory.add(LLMMessage.user(words(60)))
    await memory.add(LLMMessage.user(words(60)))

    assert memory.summary == SMALL_RENDERED


@pytest.mark.asyncio
async def test_fifteen_turn_scenario(tmp_path):
    """Test a long run stays within budget and keeps the summary first."""
    memory = make_memory(tmp_path, make_llm(), max_tokens=100, reserve_ratio=0.2)

    for i in range(15):
        await memory.add(LLMMessage.user(f"message {i} " + words(58, "token")))
        assert memory.token_count() <= 100

    messages = list(memory.get_messages())
    assert messages[0].role == "system"
    assert messages[0].content
    assert len(messages) >= 2
    assert messages[-1].content.startswith("message 14")
    assert memory.summary_tokens <= memory.summary_budget


def test_format_conversation():
    """Test the transcript handed to the summary model."""
    call = ToolCall(id="call_1", name="sumOfTwoNumbers", arguments='{"num1": 1, "num2": 2}')
    transcript = format_conversation([
        LLMMessage.user("x" * 600),
        LLMMessage.assistant("Adding", [call]),
        LLMMessage.tool("3", tool_call_id="call_1", name="sumOfTwoNumbers"),
    ])
    lines = transcript.split("\n")

    assert lines[0] == "USER: " + "x" * 500 + "...[truncated]"
    assert lines[1].startswith("ASSISTANT: Adding With Tool Calls: ")
    assert "sumOfTwoNumbers" in lines[1]
    assert lines[2] == "TOOL: result: 3 With Tool Call ID: call_1"


def test_parse_summary_rejects_bad_shapes():
    """Test that malformed answers raise ValueError."""
    with pytest.raises(ValueError):
        parse_summary("no json here")
    with pytest.raises(ValueError):
        parse_summary('{"task_context": "only one field"}')
    with pytest.raises(ValueError):
        parse_summary("{not valid json}")

    assert parse_summary(SMALL_JSON).current_state == "Done"
