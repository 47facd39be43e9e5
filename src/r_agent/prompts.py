"""
Prompt templates for the ReAct loop and the summarizing memory.

Templates use ``str.replace`` placeholders (``{conversation}``) rather than
``str.format`` because they contain literal JSON braces.
"""

REACT_END_TOKEN = "[END_OF_ANSWER]"

REACT_SYSTEM_PROMPT = """You are an agent that solves tasks by reasoning step by step and acting with tools.

Work in a loop:
1. Think about what is still unknown and what the next step should be.
2. If a tool can help, call it. Use one tool call per fact you need and wait for the results.
3. Read the tool results and decide whether you can answer.

When you have the complete answer, write it out in full and finish with the marker {end_token}
Nothing after the marker is shown to the user. Never write the marker before the answer is final.

Some earlier parts of the conversation may have been replaced by a summary. Trust it as an accurate
record of what already happened and do not repeat actions it lists as done."""

SUMMARY_PROMPT = """You are compressing the history of an agent working on a task so it can keep working within a limited context window.

Summarize the conversation below. Keep facts, numbers, file names, decisions and tool outcomes that later steps may need. Drop greetings, repetition and reasoning that led nowhere.

Answer with a single JSON object and nothing else, using exactly these fields:
{
  "task_context": "what the user asked for and any constraints",
  "key_decisions": ["decision and its reason"],
  "actions_taken": ["action and its outcome"],
  "current_state": "where the work stands now",
  "important_info": ["fact worth keeping"]
}

Conversation:
{conversation}"""

COMPRESS_SUMMARY_PROMPT = """The running summary of an agent's task has grown too large. Rewrite it so it fits in about {target_tokens} tokens.

Merge duplicate points, drop details that no longer matter to the current state and keep every fact the agent still needs.

Answer with a single JSON object and nothing else, using exactly these fields:
{
  "task_context": "what the user asked for and any constraints",
  "key_decisions": ["decision and its reason"],
  "actions_taken": ["action and its outcome"],
  "current_state": "where the work stands now",
  "important_info": ["fact worth keeping"]
}

Summary:
{summary}"""

SUMMARY_FORMAT = """## Task Context
{task_context}

## Key Decisions
{key_decisions}

## Actions Taken
{actions_taken}

## Current State
{current_state}

## Important Information
{important_info}"""

PREVIOUS_SUMMARY_PREFIX = "Previous conversation summary:\n "
SUMMARY_DIVIDER = "\n\n---\n\n"


def build_react_system_prompt(user_prompt: str, end_token: str = REACT_END_TOKEN) -> str:
    """Combine the ReAct instructions with the caller's own system prompt."""
    react = REACT_SYSTEM_PROMPT.replace("{end_token}", end_token)
    return f"{react}\n\nUser Prompt: {user_prompt}"
