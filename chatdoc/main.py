"""Command-line host: the chat file on disk plays the role of the editor buffer.

Usage:
  chatdoc complete chat.md          stream the next ASSISTANT reply into chat.md
  chatdoc new [DIR]                 create an empty chat-YYYY-MM-DD-HH-MM-SS.md
  chatdoc debug-request chat.md     print the request body as JSON
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from chatdoc.config import get_config
from chatdoc.config.loader import Config
from chatdoc.core.controller import ChatController, new_chat_path
from chatdoc.core.events import Notice, NoticeLevel
from chatdoc.core.logging_config import setup_logging
from chatdoc.core.status import StatusLine
from chatdoc.document.model import Document

logger = logging.getLogger(__name__)


def print_notice(notice: Notice) -> None:
    prefix = "" if notice.level is NoticeLevel.INFO else f"[{notice.level.value}] "
    print(f"{prefix}{notice.text}", file=sys.stderr)


def render_spinner(text: Optional[str]) -> None:
    if text is None:
        sys.stderr.write("\r\033[K")
    else:
        sys.stderr.write(f"\r{text}")
    sys.stderr.flush()


async def run_completion(config: Config, path: Path) -> int:
    document = Document.from_file(path)
    controller = ChatController(config, notify=print_notice, spinner_render=render_spinner)
    controller.registry.add_observer(StatusLine())
    session = controller.start_completion(document)
    if session is None:
        return 1
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, controller.stop_all)
    except (NotImplementedError, RuntimeError):
        pass
    try:
        await session.task
    except asyncio.CancelledError:
        logger.debug("completion stopped")
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass
    document.save()
    return 1 if session.error is not None else 0


def cmd_complete(config: Config, args: argparse.Namespace) -> int:
    return asyncio.run(run_completion(config, Path(args.file)))


def cmd_new(config: Config, args: argparse.Namespace) -> int:
    path = new_chat_path(args.directory or Path.cwd())
    Document([""], path=path).save()
    print(path)
    return 0


def cmd_debug_request(config: Config, args: argparse.Namespace) -> int:
    document = Document.from_file(Path(args.file))
    controller = ChatController(config, notify=print_notice)
    print(controller.debug_request(document))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatdoc", description="Chat with Gemini inside a plain text file."
    )
    parser.add_argument("--config", default=None, help="YAML file merged over the defaults")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("complete", help="Stream the next reply into FILE")
    p.add_argument("file")
    p.set_defaults(func=cmd_complete)

    p = sub.add_parser("new", help="Create an empty chat file")
    p.add_argument("directory", nargs="?", default=None)
    p.set_defaults(func=cmd_new)

    p = sub.add_parser("debug-request", help="Print the request body FILE would produce")
    p.add_argument("file")
    p.set_defaults(func=cmd_debug_request)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config(args.config)
    setup_logging(level=config.logging.level, use_json=config.logging.json_format)
    return args.func(config, args)


if __name__ == "__main__":
    sys.exit(main())
