"""Application entry point for pillbox."""

from __future__ import annotations

import argparse
from collections import deque
from dataclasses import fields
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from rich.console import Console
from rich.text import Text
from telethon import events

from pillbox import settings
from pillbox.adapters.markup_formatter import MarkupFormatter
from pillbox.adapters.memory_directory import InMemoryProfileDirectory
from pillbox.adapters.rich_renderer import RenderStyles, to_rich_text
from pillbox.adapters.telegram_mapper import build_body
from pillbox.adapters.telegram_profiles import ProfileFetcher, remember_entities
from pillbox.client import authorize, build_client
from pillbox.core.models import MessageBody
from pillbox.core.ports import FormatterPort
from pillbox.core.resolver import ResolvedText, RichTextResolver

NAME = "PILLBOX"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = [os.getenv(name) for name in redact_cfg.get("patterns", ["API_HASH", "2FA", "PHONE"])]
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = _RedactingFormatter(
        _collect_redaction_values(config),
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/pillbox.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if handlers:
        logging.basicConfig(level=level, handlers=handlers)


def _render_styles() -> RenderStyles:
    known = {f.name for f in fields(RenderStyles)}
    return RenderStyles(**{k: v for k, v in settings.STYLES.items() if k in known})


def _print_resolved(console: Console, header: Optional[str], resolved: ResolvedText, show_links: bool) -> None:
    line = Text()
    if header:
        line.append(f"{header} ", style="dim")
    line.append_text(to_rich_text(resolved, _render_styles()))
    console.print(line)
    if show_links:
        for link in resolved.links():
            console.print(f"  link {link.start}:{link.end} {link.href}", markup=False, highlight=False)


def _parse_profiles(pairs: list[str]) -> list[tuple[str, str]]:
    entries = []
    for pair in pairs:
        identifier, sep, name = pair.partition("=")
        if not sep or not identifier:
            raise SystemExit(f"--profile expects ID=NAME, got {pair!r}")
        entries.append((identifier, name))
    return entries


def _render(text: list[str], profiles: list[str], show_links: bool) -> None:
    directory = InMemoryProfileDirectory(settings.PROFILES)
    directory.update_many(_parse_profiles(profiles))
    resolver = RichTextResolver(directory, settings.RENDER_CONFIG)
    formatter: FormatterPort = MarkupFormatter(settings.MENTION_CONFIG)

    raw = " ".join(text) if text else sys.stdin.read().rstrip("\n")
    resolved = resolver.render(formatter.build(raw))
    _print_resolved(Console(), None, resolved, show_links)


class _RecentMessages:
    """Keep the last few bodies so profile changes can re-render them."""

    def __init__(self, resolver: RichTextResolver, console: Console, size: int) -> None:
        self._resolver = resolver
        self._console = console
        self._items: deque[tuple[str, MessageBody]] = deque(maxlen=max(size, 1))

    def add(self, header: str, body: MessageBody) -> None:
        if len(self._items) == self._items.maxlen:
            self._resolver.forget(self._items[0][1])
        self._items.append((header, body))
        self._print(header, self._resolver.render(body))

    def on_directory_change(self, version: int) -> None:
        for header, body in list(self._items):
            resolved = self._resolver.render(body)
            if resolved.changed:
                self._print(f"{header} (updated v{version})", resolved)

    def _print(self, header: str, resolved: ResolvedText) -> None:
        _print_resolved(self._console, header, resolved, settings.WATCH_SHOW_LINKS)


def _watch() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting pillbox watcher")

    directory = InMemoryProfileDirectory(settings.PROFILES)
    resolver = RichTextResolver(directory, settings.RENDER_CONFIG)
    recent = _RecentMessages(resolver, Console(), settings.WATCH_RECENT_MESSAGES)
    directory.subscribe(recent.on_directory_change)

    client = build_client()
    client.loop.run_until_complete(client.connect())
    client.loop.run_until_complete(authorize(client))
    fetcher = ProfileFetcher(client, directory)

    @client.on(events.NewMessage())
    async def handler(event) -> None:
        try:
            sender = await event.get_sender()
            chat = await event.get_chat()
            remember_entities(directory, [sender, chat])

            body = build_body(event.message, settings.MENTION_CONFIG)
            sender_name = directory.get_display_name(str(event.sender_id)) or str(event.sender_id)
            recent.add(f"[{event.chat_id}] {sender_name}:", body)

            # Mentioned users arrive later; the directory change re-renders.
            await fetcher.fetch_mentioned(event.message)
        except Exception:
            logger.exception("Error while rendering message")

    client.start()
    logger.info("Client connected. Rendering incoming messages...")
    client.run_until_disconnected()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="pillbox")
    subparsers = parser.add_subparsers(dest="command")

    render_parser = subparsers.add_parser("render", help="Render mention markup from arguments or stdin")
    render_parser.add_argument("text", nargs="*", help="Message text; read from stdin when omitted")
    render_parser.add_argument(
        "--profile",
        action="append",
        default=[],
        metavar="ID=NAME",
        help="Add or override a profile name (repeatable)",
    )
    render_parser.add_argument("--links", action="store_true", help="List detected links")

    subparsers.add_parser("watch", help="Render incoming Telegram messages")

    args = parser.parse_args(argv)
    if args.command == "render":
        _configure_logging()
        _render(args.text, args.profile, args.links)
        return
    if args.command == "watch":
        _watch()
        return
    parser.print_help()


if __name__ == "__main__":
    main()
