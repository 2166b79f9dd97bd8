from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from hyperchat.completion import build_completion_service
from hyperchat.config import ChatConfig
from hyperchat.errors import ConfigError
from hyperchat.runtime.repl import ChatREPL
from hyperchat.store import open_store
from hyperchat.store.base import MessageStore
from hyperchat.sync.synchronizer import SessionSynchronizer

COMMANDS = ("chat", "sessions", "-h", "--help")


def main() -> int:
    load_dotenv()
    return _main(sys.argv[1:])


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)


def _add_store_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--store", default=None, choices=["json", "sqlite", "memory"])
    parser.add_argument("--data-dir", default=None, help="Where conversations are kept")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("-q", "--quiet", action="store_true")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hyperchat", description="Hyperchat - persistent AI chat")
    subparsers = parser.add_subparsers(dest="command", required=False)

    chat = subparsers.add_parser("chat", help="Start an interactive conversation")
    chat.add_argument(
        "--model",
        default=None,
        help="Model to use (supports aliases: sonnet, opus, haiku, mini, flash, gemini; 'echo' runs offline)",
    )
    chat.add_argument("--session", default=None, help="Resume a stored conversation by id")
    chat.add_argument("--message", "-m", help="Send a single message and exit")
    _add_store_args(chat)

    sessions = subparsers.add_parser("sessions", help="List stored conversations")
    _add_store_args(sessions)

    return parser


def _load_config(args: argparse.Namespace) -> ChatConfig:
    config = ChatConfig.from_env(
        model=getattr(args, "model", None),
        store=args.store,
        data_dir=args.data_dir,
    )
    config.validate()
    return config


async def _run_chat(config: ChatConfig, session_id: str | None, message: str | None) -> int:
    store = open_store(config)
    try:
        return await _chat(store, config, session_id, message)
    finally:
        store.close()


async def _chat(
    store: MessageStore, config: ChatConfig, session_id: str | None, message: str | None
) -> int:
    sync = SessionSynchronizer(
        store,
        build_completion_service(config),
        timestamp_format=config.timestamp_format,
    )
    if session_id:
        outcome = await sync.select_session(session_id)
        if not outcome.ok:
            print(f"Error: {outcome.error or outcome.reason}", file=sys.stderr)
            return 1
        for warning in outcome.warnings:
            print(f"Warning: {warning}", file=sys.stderr)

    if message:
        outcome = await sync.submit(message)
        failures = await sync.close()
        for failure in failures:
            print(f"Warning: {failure}", file=sys.stderr)
        if not outcome.ok:
            print(f"Error: {outcome.error or outcome.reason}", file=sys.stderr)
            return 1
        print(outcome.reply)
        return 0

    await ChatREPL(sync).run()
    return 0


async def _run_sessions(config: ChatConfig) -> int:
    store = open_store(config)
    try:
        sessions = await store.list_sessions()
    finally:
        store.close()
    if not sessions:
        print("No saved conversations")
        return 0
    for entry in sessions:
        print(f"{entry.id}  {entry.updated_at[:19]}  {entry.message_count:>4}  {entry.title}")
    return 0


def _main(argv: list[str]) -> int:
    parser = _build_parser()
    if not argv or argv[0] not in COMMANDS:
        argv = ["chat", *argv]
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.quiet)
    logger = logging.getLogger(__name__)

    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    logger.debug(f"Using model={config.model} store={config.store} data_dir={config.data_dir}")

    if args.command == "sessions":
        return asyncio.run(_run_sessions(config))
    return asyncio.run(_run_chat(config, args.session, args.message))


if __name__ == "__main__":
    raise SystemExit(main())
