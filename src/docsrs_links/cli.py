"""CLI entry point for docsrs-links."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import aiohttp
import structlog
from pydantic import ValidationError

from . import config
from .errors import DocsrsLinksError
from .models import (
    CrateIdentity,
    CrateRoot,
    ErrorResponse,
    Found,
    Hosting,
    LinkResponse,
    ResolveOutcome,
    SimplePath,
)
from .services import LinkService, load_links, pick_crate
from .simple_path import parse_path
from .urls import build_url

logger = logging.getLogger(__name__)

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2


def configure_logging(verbose: bool = False) -> None:
    """Send stdlib and structlog output to stderr, stdout only carries results."""
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsrs-links",
        description="Resolve Rust item paths like anyhow::Context::with_context "
        "to their documentation URLs",
    )
    parser.add_argument("path", help="Simple path of a crate or item")
    parser.add_argument(
        "--version",
        default=None,
        help="Crate version, a semantic version or 'latest' (default: latest)",
    )
    parser.add_argument(
        "--index-file",
        type=Path,
        default=None,
        help="Read a downloaded search-index*.js file instead of fetching it",
    )
    parser.add_argument(
        "--std",
        action="store_true",
        default=False,
        help="Treat the crate as part of the standard library (doc.rust-lang.org)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the result as JSON",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging on stderr",
    )
    return parser


def lookup_offline(
    path: SimplePath, index_file: Path, version: str | None, std: bool
) -> tuple[ResolveOutcome, str | None]:
    """Resolve a path against a local index file."""
    payload = index_file.read_bytes()
    if std:
        identity = CrateIdentity(
            name=path.crate_name, version=version, hosting=Hosting.STDLIB
        )
    else:
        identity = CrateIdentity.for_crate(path.crate_name, version)
    crate_links = pick_crate(load_links(payload, identity), path.crate_name)
    outcome = crate_links.resolve(path)
    return outcome, build_url(crate_links.identity, outcome)


async def lookup_online(
    path: SimplePath, version: str | None, std: bool
) -> tuple[ResolveOutcome, str | None]:
    """Resolve a path against the index downloaded from docs.rs or the stdlib docs."""
    service = LinkService()
    if std and not path.is_std:
        links = await service.get_std()
        crate_links = pick_crate(links, path.crate_name)
        outcome = crate_links.resolve(path)
        return outcome, build_url(crate_links.identity, outcome)
    return await service.find_link(path, version)


def print_error(args: argparse.Namespace, error: str, detail: str) -> None:
    if args.json:
        print(ErrorResponse(error=error, detail=detail, path=args.path).model_dump_json())
    else:
        print(f"error: {detail}", file=sys.stderr)


def run(argv: list[str] | None = None) -> int:
    """Run the command line interface and return its exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        path = parse_path(args.path)
        if args.index_file is not None:
            outcome, url = lookup_offline(path, args.index_file, args.version, args.std)
        else:
            outcome, url = asyncio.run(lookup_online(path, args.version, args.std))
    except DocsrsLinksError as e:
        logger.debug(f"Lookup of {args.path} failed: {e!r}")
        print_error(args, type(e).__name__, str(e))
        return EXIT_ERROR
    except ValidationError as e:
        print_error(args, "ValidationError", str(e))
        return EXIT_ERROR
    except (OSError, aiohttp.ClientError, asyncio.TimeoutError) as e:
        print_error(args, type(e).__name__, str(e))
        return EXIT_ERROR

    if url is None:
        print_error(args, "NotFound", f"no item found for {args.path}")
        return EXIT_NOT_FOUND

    if args.json:
        kind = outcome.resolved.item.kind if isinstance(outcome, Found) else None
        response = LinkResponse(
            path=str(path),
            outcome="crate_root" if isinstance(outcome, CrateRoot) else "found",
            kind=kind,
            url=url,
        )
        print(response.model_dump_json())
    else:
        print(url)
    return EXIT_FOUND


def main() -> None:
    """Main entry point for the docsrs-links command."""
    sys.exit(run())


if __name__ == "__main__":
    main()
