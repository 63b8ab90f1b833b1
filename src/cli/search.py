# =============================================================================
# src/cli/search.py: CLI Search Command
# =============================================================================
#
# Runs one catalog search against a JSON fixture catalogue, without the API
# server.  The fixture maps entity type names to lists of camelCase record
# payloads:
#
#   {"DATAPRODUCT": [{"instanceId": "dp-1", ...}], "DISTRIBUTION": [...]}
#
# Typical usage:
#   python -m src.cli.search catalog.json
#   python -m src.cli.search catalog.json --param q=seismic --param keywords=gnss
#   python -m src.cli.search catalog.json --profile organisations --json
#
# The --json flag implies --quiet: log lines go to stderr at WARNING+ so
# stdout carries only the response.
# =============================================================================

"""Standalone CLI for running a catalog search over a fixture file.

Usage::

    python -m src.cli.search catalog.json
    python -m src.cli.search catalog.json --profile facilities --param bbox=...
    python -m src.cli.search catalog.json --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from src.models.discovery import SearchResponse
from src.services.search_profiles import ProfileKind


def _suppress_logs() -> None:
    """Send structlog and stdlib logging to stderr at WARNING+ level.

    Must run before the search modules are imported, since structlog
    caches loggers on first use.
    """
    import logging

    import structlog

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    root.addHandler(handler)
    root.setLevel(logging.WARNING)


def parse_params(pairs: list[str]) -> dict[str, str]:
    """``["q=foo", "keywords=a,b"]`` -> ``{"q": "foo", "keywords": "a,b"}``."""
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got {pair!r}")
        params[key.strip()] = value
    return params


def _format_text_output(response: SearchResponse) -> str:
    lines = [f"Results: {response.total}"]
    for item in response.items:
        lines.append(f"  - {item.title or item.id}  [{item.id}]")
        if item.data_provider:
            lines.append(f"      data providers:    {', '.join(item.data_provider)}")
        if item.service_provider:
            lines.append(f"      service providers: {', '.join(item.service_provider)}")
        for fmt in item.available_formats:
            lines.append(f"      format: {fmt.label} ({fmt.type.value})")
    for organisation in response.organisations:
        country = f" ({organisation.country})" if organisation.country else ""
        lines.append(f"  - {organisation.name}{country}  [{organisation.id}]")
    if response.facets.keywords:
        lines.append("Keywords: " + ", ".join(k.label for k in response.facets.keywords))
    if response.facets.organisations:
        lines.append(
            "Organisations: " + ", ".join(o.label for o in response.facets.organisations)
        )
    return "\n".join(lines)


async def _run(
    catalog_path: Path,
    profile: ProfileKind,
    params: dict[str, str],
    json_output: bool,
    api_host: str,
) -> int:
    """Load the fixture, refresh lookup tables, run one search, print it.

    Returns 0 on success, 1 when the catalogue file does not exist.
    """
    # Deferred imports so --quiet takes effect before loggers are cached.
    from src.providers.cache.memory_cache import MemoryCacheProvider
    from src.providers.organizations.group_directory import OrganizationGroupDirectory
    from src.providers.plugins.http_plugin_source import StaticPluginSource
    from src.providers.store.memory_store import InMemoryEntityStore
    from src.providers.taxonomy.store_taxonomy import StoreCategoryTaxonomy
    from src.services.available_formats import AvailableFormatsGenerator
    from src.services.catalog_search_service import CatalogSearchService
    from src.services.plugin_registry import PluginRegistry
    from src.services.result_assembler import ResultAssembler

    if not catalog_path.exists():
        print(f"Error: File not found: {catalog_path}", file=sys.stderr)
        return 1

    store = InMemoryEntityStore.from_json_file(catalog_path)
    directory = OrganizationGroupDirectory(store)
    await directory.refresh()
    registry = PluginRegistry(StaticPluginSource())
    service = CatalogSearchService(
        store=store,
        groups=directory,
        taxonomy=StoreCategoryTaxonomy(store, MemoryCacheProvider()),
        plugins=registry,
        assembler=ResultAssembler(AvailableFormatsGenerator(api_host), directory, api_host),
    )

    response = await service.search(profile, params)
    if json_output:
        print(json.dumps(response.model_dump(by_alias=True, mode="json", exclude_none=True), indent=2))
    else:
        print(_format_text_output(response))
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.search",
        description="Run a catalog search against a JSON fixture catalogue.",
    )
    parser.add_argument("catalog", type=str, help="Path to the fixture catalogue (JSON).")
    parser.add_argument(
        "--profile",
        choices=[k.value for k in ProfileKind],
        default=ProfileKind.DATA_PRODUCTS.value,
        help="Which kind of record to search (default: dataproducts).",
    )
    parser.add_argument(
        "--param", "-p",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Search parameter, repeatable (e.g. q=seismic, keywords=gnss).",
    )
    parser.add_argument(
        "--api-host",
        default="http://localhost:8000",
        help="Host prefix for result links.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the response as JSON.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress log output (implied by --json).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point; exits 0 on success, 1 on a missing file, 2 on bad arguments."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.quiet or args.json_output:
        _suppress_logs()

    try:
        params = parse_params(args.param)
    except ValueError as exc:
        parser.error(str(exc))

    exit_code = asyncio.run(
        _run(
            Path(args.catalog).resolve(),
            ProfileKind(args.profile),
            params,
            args.json_output,
            args.api_host,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
