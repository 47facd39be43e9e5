"""
Command-line interface for r-agent.
"""

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path

import structlog

from .config import Settings, get_settings

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Route structlog through stdlib logging to stderr and, optionally, a file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        handlers=handlers,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=not settings.log_dir),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="r-agent",
        description="r-agent - a ReAct agent with token-bounded memory",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Answer a prompt with the agent")
    run_parser.add_argument("prompt", help="The user prompt")
    run_parser.add_argument("--task-id", default=None, help="Task id; reuse it to resume a summary")
    run_parser.add_argument("--provider", default=None, help="LLM provider override")
    run_parser.add_argument("--model", default=None, help="Model override")
    run_parser.add_argument("--max-iterations", type=int, default=None, help="Iteration ceiling override")
    run_parser.add_argument(
        "--memory",
        choices=["summary", "sliding_window"],
        default=None,
        help="Memory strategy override",
    )
    run_parser.add_argument("--system-prompt", default=None, help="Agent instructions")

    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument("--check", action="store_true", help="Check configuration validity")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    settings = get_settings()
    configure_logging(settings)

    if args.command == "run":
        overrides = {}
        if args.max_iterations is not None:
            overrides["max_iterations"] = args.max_iterations
        if args.memory is not None:
            overrides["memory_type"] = args.memory
        if overrides:
            settings = settings.model_copy(update=overrides)

        answer = asyncio.run(run_agent(args, settings))
        print(answer)
    elif args.command == "config":
        show_config(settings, args.check)
    else:
        parser.print_help()


async def run_agent(args: argparse.Namespace, settings: Settings) -> str:
    """Run one prompt through a ReactAgent with the calculator tool."""
    from .agent import create_agent
    from .agent.factory import DEFAULT_AGENT_PROMPT
    from .tools import SumTool, ToolRegistry

    task_id = args.task_id or uuid.uuid4().hex[:12]
    agent = create_agent(
        task_id=task_id,
        system_prompt=args.system_prompt or DEFAULT_AGENT_PROMPT,
        tool_registry=ToolRegistry([SumTool()]),
        settings=settings,
        provider=args.provider,
        model=args.model,
    )

    logger.info("Starting agent", task_id=task_id, model=agent.llm.model)
    answer = await agent.run(args.prompt)
    logger.info(
        "Agent finished",
        task_id=task_id,
        prompt_tokens=agent.usage.prompt_tokens,
        completion_tokens=agent.usage.completion_tokens,
    )
    return answer


def show_config(settings: Settings, check: bool) -> None:
    """Show current configuration."""

    def mask(value: str) -> str:
        if not value:
            return "(not set)"
        return value[:4] + "..." + value[-4:] if len(value) > 10 else "****"

    print("\n=== r-agent Configuration ===\n")

    print("LLM Providers:")
    print(f"  Default: {settings.default_provider}")
    print(f"  Default Model: {settings.default_model}")
    print(f"  Summary Model: {settings.summary_model}")
    print(f"  Anthropic Key: {mask(settings.anthropic_api_key)}")
    print(f"  OpenAI Key: {mask(settings.openai_api_key)}")
    print(f"  OpenRouter Key: {mask(settings.openrouter_api_key)}")

    print("\nAgent:")
    print(f"  Max Iterations: {settings.max_iterations}")
    print(f"  End Token: {settings.end_token}")

    print("\nMemory:")
    print(f"  Type: {settings.memory_type}")
    print(f"  Max Tokens: {settings.memory_max_tokens}")
    print(f"  Reserve Ratio: {settings.reserve_ratio}")
    print(f"  Max Messages: {settings.max_messages}")
    print(f"  Workspace: {settings.workspace_root}")

    print("\nLogging:")
    print(f"  Level: {settings.log_level}")
    print(f"  File: {Path(settings.log_dir) / settings.log_file if settings.log_dir else '(stderr only)'}")

    if check:
        print("\n=== Configuration Check ===\n")
        errors = []

        key_map = {
            "anthropic": settings.anthropic_api_key,
            "openai": settings.openai_api_key,
            "openrouter": settings.openrouter_api_key,
        }
        if not key_map.get(settings.default_provider):
            errors.append(f"No API key set for default provider {settings.default_provider}")
        summary_provider = settings.summary_provider or settings.default_provider
        if settings.memory_type == "summary" and not key_map.get(summary_provider):
            errors.append(f"No API key set for summary provider {summary_provider}")

        if errors:
            print("Errors:")
            for e in errors:
                print(f"   - {e}")
            print("\nConfiguration has errors - fix them before running")
        else:
            print("Configuration looks good!")


if __name__ == "__main__":
    main()
