from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import TYPE_CHECKING, Callable, Sequence, TextIO

from agent.errors import AgentError
from agent.history import describe_history
from runtime.session import SessionContext, new_session_id
from tools.world_time import supported_cities

if TYPE_CHECKING:
    from agent.core import AgentLoop

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_context(session_id: str | None = None, max_iters: int = 6) -> SessionContext:
    if max_iters < 1:
        raise ValueError("--max-iters must be at least 1.")
    return SessionContext(session_id=session_id or new_session_id(), max_iters=max_iters)


def configure_logging(level: str, stream: TextIO | None = None) -> None:
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        stream=stream or sys.stderr,
        force=True,
    )


async def chat_loop(
    agent: AgentLoop,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> None:
    ctx = agent.ctx
    output_fn("--- World Time Agent ---")
    output_fn(
        f"Ask about the time in {', '.join(supported_cities())}. "
        f"(Type '{ctx.exit_keyword}' to quit)"
    )
    while True:
        try:
            user_text = input_fn("\nYou: ")
        except (EOFError, KeyboardInterrupt):
            output_fn("")
            break

        if ctx.is_exit_command(user_text):
            break

        try:
            reply = await agent.respond(user_text.strip())
        except AgentError as exc:
            logger.warning("Session %s: turn failed: %s", ctx.session_id, exc)
            output_fn(f"Agent: [error] {exc}")
            continue
        output_fn(f"Agent: {reply}")

    logger.debug("Session %s closed: %s", ctx.session_id, describe_history(agent.history))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="worldtime-agent",
        description="Ask a chat model for the current time in supported cities.",
    )
    parser.add_argument("-m", "--message", help="Single message mode. If omitted, run the REPL.")
    parser.add_argument("--session-id", default=None, help="Session id used in log lines.")
    parser.add_argument("--max-iters", type=int, default=6, help="Model calls allowed per turn.")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("AGENT_LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    return parser.parse_args(argv)


def main(
    argv: Sequence[str] | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    from agent.core import build_agent

    args = parse_args(argv)
    out_stream = stdout or sys.stdout
    err_stream = stderr or sys.stderr
    configure_logging(args.log_level, err_stream)

    try:
        ctx = build_context(session_id=args.session_id, max_iters=args.max_iters)
        agent = build_agent(ctx)
    except ValueError as exc:
        print(str(exc), file=err_stream)
        return 2

    try:
        if args.message:
            reply = asyncio.run(agent.respond(args.message.strip()))
            print(reply, file=out_stream)
            return 0
        asyncio.run(
            chat_loop(
                agent,
                input_fn=input,
                output_fn=lambda line: print(line, file=out_stream, flush=True),
            )
        )
        return 0
    except KeyboardInterrupt:
        return 0
    except AgentError as exc:
        print(str(exc), file=err_stream)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
