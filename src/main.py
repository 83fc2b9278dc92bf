# src/main.py
"""CLI entry point: submit, run and show commands.

Usage:
    newsforge submit <request.json>
    newsforge run <article_id>
    newsforge show <article_id>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from newsforge.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        args.settings = _load_settings(args)
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    _setup_logging(args.settings, args.verbose, args.log_format)

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="newsforge",
        description=f"newsforge v{__version__} - article generation pipeline",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-format", choices=["json", "text"], default=None,
        help="Log format (default: LOG_FORMAT setting)",
    )
    parser.add_argument(
        "--db", type=Path, default=None,
        help="SQLite database path (default: DATABASE_PATH setting)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- submit ---
    p_submit = subparsers.add_parser(
        "submit", help="Create an article from a request file and run its pipeline",
    )
    p_submit.add_argument("request_file", type=Path, help="Path to request JSON")
    p_submit.add_argument("--user-id", default=None, help="Override metadata.userId")
    p_submit.add_argument("--org-id", default=None, help="Override metadata.orgId")
    p_submit.set_defaults(func=_cmd_submit)

    # --- run ---
    p_run = subparsers.add_parser(
        "run", help="Run the pipeline for an existing article",
    )
    p_run.add_argument("article_id", help="Article id")
    p_run.set_defaults(func=_cmd_run)

    # --- show ---
    p_show = subparsers.add_parser(
        "show", help="Show an article and its runs",
    )
    p_show.add_argument("article_id", help="Article id")
    p_show.set_defaults(func=_cmd_show)

    return parser


def _load_settings(args: argparse.Namespace):
    from newsforge.config.settings import load_settings

    overrides = {"database_path": args.db} if args.db else {}
    return load_settings(**overrides)


def _load_engine(args: argparse.Namespace):
    from newsforge.api.facade import build_engine

    return build_engine(args.settings)


async def _cmd_submit(args: argparse.Namespace) -> int:
    """Create an article version from a request file and run it."""
    from newsforge.core.models import PipelineRequest

    request_file: Path = args.request_file
    if not request_file.exists():
        logger.error("File not found: %s", request_file)
        return 1

    try:
        request = TypeAdapter(PipelineRequest).validate_json(
            request_file.read_text(encoding="utf-8")
        )
    except ValidationError as e:
        logger.error("Invalid request %s: %s", request_file, e)
        return 1

    engine = _load_engine(args)
    try:
        article, result = await engine.submit(request, args.user_id, args.org_id)
    finally:
        await engine.aclose()

    _print_result(article.id, article.slug, article.version, result.success, result.error)
    return 0 if result.success else 1


async def _cmd_run(args: argparse.Namespace) -> int:
    """Run the pipeline for an already stored article."""
    engine = _load_engine(args)
    try:
        result = await engine.router.execute_pipeline_by_article_id(args.article_id)
        article = await engine.store.get_article_by_id(args.article_id)
    finally:
        await engine.aclose()

    if article is None:
        logger.error("Article not found: %s", args.article_id)
        return 1
    _print_result(article.id, article.slug, article.version, result.success, result.error)
    return 0 if result.success else 1


async def _cmd_show(args: argparse.Namespace) -> int:
    """Print an article version and its runs as JSON."""
    engine = _load_engine(args)
    try:
        article = await engine.store.get_article_by_id(args.article_id)
        runs = await engine.store.list_runs(args.article_id) if article else []
    finally:
        await engine.aclose()

    if article is None:
        logger.error("Article not found: %s", args.article_id)
        return 1
    print(json.dumps(
        {
            "article": article.model_dump(mode="json"),
            "runs": [r.model_dump(mode="json") for r in runs],
        },
        indent=2,
    ))
    return 0


def _print_result(
    article_id: str, slug: str, version: int, success: bool, error: str | None
) -> None:
    print(f"\nPipeline {'complete' if success else 'failed'}:")
    print(f"  Article ID:  {article_id}")
    print(f"  Slug:        {slug} (v{version})")
    if error:
        print(f"  Error:       {error}")


def _setup_logging(settings, verbose: bool, log_format: str | None) -> None:
    """Configure logging for CLI usage."""
    from newsforge.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=log_format or settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
