"""CLI entry point for media-heuristics."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError

from media_heuristics.config import Settings, get_settings
from media_heuristics.core.exceptions import MediaHeuristicsError
from media_heuristics.core.logging import get_logger, setup_logging
from media_heuristics.heuristics import EmailAnalyzer, MediaHeuristics, load_rules
from media_heuristics.models import ContactInput, ContentInput, EmailContext
from media_heuristics.storage.redis import close_redis, init_redis

logger = get_logger(__name__)

_contacts_adapter = TypeAdapter(list[ContactInput])
_contents_adapter = TypeAdapter(list[ContentInput])


def _emit(payload: BaseModel) -> None:
    data = orjson.dumps(payload.model_dump(mode="json"), option=orjson.OPT_INDENT_2)
    sys.stdout.buffer.write(data + b"\n")
    sys.stdout.flush()


def _read_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-heuristics",
        description="Rule-based heuristics for media contacts and content",
    )
    parser.add_argument("--rules", type=Path, help="JSON rule set overriding the built-in tables")
    subparsers = parser.add_subparsers(dest="command", required=True)

    email = subparsers.add_parser("email", help="Classify an email address")
    email.add_argument("address", help="Email address to classify")
    email.add_argument("--name", help="Contact name, used to suggest personal addresses")
    email.add_argument("--domain", help="Outlet domain (defaults to the address domain)")

    contacts = subparsers.add_parser("contacts", help="Analyze a JSON list of contacts")
    contacts.add_argument("file", type=Path, help="JSON file with a list of contacts")

    content = subparsers.add_parser("content", help="Analyze a JSON list of content items")
    content.add_argument("file", type=Path, help="JSON file with a list of content items")

    return parser


async def _run_batch(args: argparse.Namespace, settings: Settings) -> BaseModel:
    if settings.fingerprint_backend == "redis":
        await init_redis(settings.redis_url)
    try:
        rules = load_rules(args.rules or settings.rules_path)
        heuristics = MediaHeuristics(rules=rules, settings=settings)
        if args.command == "contacts":
            contacts = _contacts_adapter.validate_python(_read_json(args.file))
            return await heuristics.batch_analyze_contacts(contacts)
        contents = _contents_adapter.validate_python(_read_json(args.file))
        return await heuristics.batch_analyze_content(contents)
    finally:
        if settings.fingerprint_backend == "redis":
            await close_redis()


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings)

    try:
        if args.command == "email":
            rules = load_rules(args.rules or settings.rules_path)
            analysis = EmailAnalyzer(rules.email).analyze_email(
                args.address,
                args.domain,
                EmailContext(contact_name=args.name) if args.name else None,
            )
            _emit(analysis)
            return

        _emit(asyncio.run(_run_batch(args, settings)))
    except (OSError, orjson.JSONDecodeError, ValidationError) as e:
        logger.error("Invalid input", command=args.command, error=str(e))
        parser.exit(1, f"error: {e}\n")
    except MediaHeuristicsError as e:
        logger.error("Heuristics failed", command=args.command, error=e.message)
        parser.exit(1, f"error: {e.message}\n")


if __name__ == "__main__":
    main()
