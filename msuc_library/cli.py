"""Командная строка `msuc`.

    msuc search QUERY [--max-pages N]   # JSON Lines, одна строка на обновление
    msuc details UPDATE_ID              # один JSON-объект

Коды выхода: 0 при успехе, 1 при ошибке каталога или сети, 2 если обновление не найдено.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, replace
from datetime import date
from typing import Optional, Sequence, TextIO

from .client import new_client
from .config import ClientConfig
from .errors import MsucError, NotFoundError

__all__ = ["main", "run", "build_parser"]

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 2


def _json_default(value: object) -> object:
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dumps(record: object) -> str:
    return json.dumps(asdict(record), default=_json_default, ensure_ascii=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="msuc", description="Microsoft Update Catalog client")
    parser.add_argument("--base-url", default=None, help="override MSUC_BASE_URL")
    parser.add_argument("--timeout", type=float, default=None, help="request timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", default=False)
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="search the catalog")
    search.add_argument("query")
    search.add_argument("--max-pages", type=int, default=None)

    details = subparsers.add_parser("details", help="show one update")
    details.add_argument("update_id")
    return parser


def _config_from_args(args: argparse.Namespace) -> ClientConfig:
    config = ClientConfig.from_env()
    if args.base_url:
        config = replace(config, base_url=args.base_url)
    if args.timeout is not None and args.timeout > 0:
        config = replace(config, timeout=args.timeout)
    return config


def _run_search(client, query: str, max_pages: Optional[int], out: TextIO) -> None:
    iterator = client.search(query)
    pages = 0
    for page in iterator:
        for update in page:
            out.write(_dumps(update) + "\n")
        pages += 1
        if max_pages is not None and pages >= max_pages:
            break
    if iterator.too_many_results:
        logger.warning("Catalog truncated results for %r; refine the query", query)


def run(argv: Optional[Sequence[str]] = None, *, out: Optional[TextIO] = None) -> int:
    args = build_parser().parse_args(argv)
    out = out or sys.stdout
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        with new_client(_config_from_args(args)) as client:
            if args.command == "search":
                _run_search(client, args.query, args.max_pages, out)
            else:
                out.write(_dumps(client.details(args.update_id)) + "\n")
    except NotFoundError as exc:
        print(f"msuc: {exc}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except MsucError as exc:
        print(f"msuc: {exc}", file=sys.stderr)
        return EXIT_ERROR
    return EXIT_OK


def main() -> None:
    """Точка входа `msuc`: завершает процесс кодом из `run`."""

    raise SystemExit(run())


if __name__ == "__main__":
    main()
