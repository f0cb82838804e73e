"""CLI entry point: agentvcs <agent-id> [command ...]."""

import asyncio
import shlex
import sys

import structlog

from agentvcs.app import build_handler, configure_logging
from agentvcs.core.config import AgentVcsConfig
from agentvcs.exceptions import AgentVcsError
from agentvcs.git.handler import GitCommandHandler

logger = structlog.get_logger()

_USAGE = "Usage: agentvcs <agent-id> [command ...]"


async def _run_interactive(handler: GitCommandHandler, agent_id: str) -> None:
    logger.info("cli_starting", agent_id=agent_id)
    print(f"agentvcs ready for agent {agent_id}")
    print("Enter a git command, 'help' for a list (Ctrl+D to exit):\n")

    try:
        while True:
            try:
                line = input("git> ")
            except EOFError:
                break

            if not line.strip():
                continue

            response = await handler.handle_command(agent_id, line)
            print(f"\n{response}\n")
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("cli_shutting_down", agent_id=agent_id)


async def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args or args[0] in ("-h", "--help"):
        print(_USAGE, file=sys.stderr)
        return 0 if args else 2

    try:
        config = AgentVcsConfig()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("Check AGENTVCS_* environment variables or the .env file.", file=sys.stderr)
        return 1

    configure_logging(config)

    try:
        handler = build_handler(config)
    except AgentVcsError as e:
        print(f"Startup failed: {e}", file=sys.stderr)
        return 1

    agent_id, command = args[0], args[1:]
    if command:
        print(await handler.handle_command(agent_id, shlex.join(command)))
        return 0

    await _run_interactive(handler, agent_id)
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))
