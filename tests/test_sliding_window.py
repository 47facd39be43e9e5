"""
Tests for sliding-window memory and the conversation buffer.
"""

import pytest

from r_agent.llm.base import LLMMessage
from r_agent.memory.base import ConversationBuffer
from r_agent.memory.sliding_window import SlidingWindowMemory


def count_words(text: str) -> int:
    return len(text.split())


def make_memory(max_messages: int = 10, max_tokens: int = 100) -> SlidingWindowMemory:
    return SlidingWindowMemory(
        max_messages=max_messages,
        model="gpt-4o-mini",
        max_tokens=max_tokens,
        count_tokens=count_words,
    )


def test_buffer_drop_oldest_keeps_counts_aligned():
    """Test that messages and counts are trimmed together."""
    buffer = ConversationBuffer()
    buffer.append(LLMMessage.user("one"), 1)
    buffer.append(LLMMessage.user("two two"), 2)
    buffer.append(LLMMessage.user("three three three"), 3)

    dropped = buffer.drop_oldest(2)

    assert [m.content for m in dropped] == ["one", "two two"]
    assert len(buffer.messages) == len(buffer.token_counts) == 1
    assert buffer.total_tokens == 3


@pytest.mark.asyncio
async def test_message_limit_evicts_oldest():
    """Test that the oldest message goes first once max_messages is exceeded."""
    memory = make_memory(max_messages=3, max_tokens=20)

    await memory.add(LLMMessage.user("Hello"))
    await memory.add(LLMMessage.user("How are you?"))
    await memory.add(LLMMessage.user("Tell me a joke."))
    assert len(list(memory.get_messages())) == 3

    await memory.add(LLMMessage.user("What's the weather like?"))
    messages = list(memory.get_messages())

    assert len(messages) == 3
    assert messages[0].content == "How are you?"


@pytest.mark.asyncio
async def test_token_limit_evicts_oldest():
    """Test eviction by token budget."""
    memory = make_memory(max_messages=10, max_tokens=5)

    await memory.add(LLMMessage.user("a b c"))
    await memory.add(LLMMessage.user("d e"))
    assert memory.token_count() == 5

    await memory.add(LLMMessage.user("f"))

    assert [m.content for m in memory.get_messages()] == ["d e", "f"]
    assert memory.token_count() == 3


@pytest.mark.asyncio
async def test_limits_hold_after_many_adds():
    """Test that both limits hold after every add."""
    memory = make_memory(max_messages=4, max_tokens=12)

    for i in range(30):
        await memory.add(LLMMessage.user(" ".join(["w"] * (i % 5 + 1))))
        assert len(memory) <= 4
        assert memory.token_count() <= 12


@pytest.mark.asyncio
async def test_oversized_message_is_evicted():
    """Test that a message larger than the whole budget does not stay."""
    memory = make_memory(max_messages=10, max_tokens=3)

    await memory.add(LLMMessage.user("one two three four"))

    assert len(memory) == 0
    assert memory.token_count() == 0


@pytest.mark.asyncio
async def test_get_messages_is_restartable():
    """Test that get_messages can be iterated more than once."""
    memory = make_memory()
    await memory.add(LLMMessage.user("first"))
    await memory.add(LLMMessage.assistant("second"))

    first_pass = [m.content for m in memory.get_messages()]
    second_pass = [m.content for m in memory.get_messages()]

    assert first_pass == second_pass == ["first", "second"]


@pytest.mark.asyncio
async def test_clear():
    """Test clearing the memory."""
    memory = make_memory()
    await memory.add(LLMMessage.user("Hello there"))

    memory.clear()

    assert len(memory) == 0
    assert memory.token_count() == 0
    assert list(memory.get_messages()) == []
