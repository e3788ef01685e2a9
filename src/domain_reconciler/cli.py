"""
Command-line interface for the domain reconciler.

This module provides the main CLI entry point with commands for:
- inactive: List app hostnames that no longer point at the app's server
"""

import argparse
import asyncio
import json
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import httpx
from dotenv import load_dotenv

from . import __version__
from .activity_log import ActivityLogger, parse_log_level
from .cache_store import create_cache
from .classifier import DelegationClassifier
from .config import (
    CacheConfig,
    EvaluationConfig,
    FetcherConfig,
    InventoryConfig,
    LoggingConfig,
    ProviderConfig,
    SystemConfig,
)
from .credentials import CredentialAcquisition, Prompter
from .dns_resolver import DnsResolver, LookupFunc
from .evaluator import HostnameResolver, StatusEvaluator, filter_results
from .exceptions import InventoryError
from .fetcher import CachingFetcher
from .inventory import HostingInventory, all_domains
from .models import EvaluationResult
from .provider_resolver import ProviderRecordResolver


CLIENT_ID_ENV = "SERVERPILOT_CLIENT_ID"
API_KEY_ENV = "SERVERPILOT_API_KEY"


def create_default_config(verbose: bool = False, use_cache: bool = True) -> SystemConfig:
    """
    Create a default system configuration.

    Args:
        verbose: Log at debug level instead of warn
        use_cache: Keep API responses in the temp-file cache

    Returns:
        SystemConfig with default settings
    """
    return SystemConfig(
        cache=CacheConfig(enabled=use_cache),
        logging=LoggingConfig(level="debug" if verbose else "warn"),
    )


def load_config_from_file(config_path: Path) -> Optional[SystemConfig]:
    """
    Load configuration from a JSON file.

    Sections missing from the file keep their defaults.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        cache_data = dict(data.get("cache", {}))
        if cache_data.get("directory"):
            cache_data["directory"] = Path(cache_data["directory"])

        return SystemConfig(
            provider=ProviderConfig(**data.get("provider", {})),
            fetcher=FetcherConfig(**data.get("fetcher", {})),
            cache=CacheConfig(**cache_data),
            evaluation=EvaluationConfig(**data.get("evaluation", {})),
            inventory=InventoryConfig(**data.get("inventory", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    except (json.JSONDecodeError, TypeError, AttributeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None


def format_table(results: list[EvaluationResult]) -> str:
    """Render results as an aligned text table."""
    headers = ("APP ID", "DOMAIN", "SERVER", "STATUS")
    rows = [(r.owner_id, r.hostname, r.server_label, r.status.value) for r in results]
    widths = [max(len(str(cell)) for cell in column) for column in zip(headers, *rows)]

    lines = []
    for row in (headers, *rows):
        lines.append("  ".join(str(cell).ljust(width) for cell, width in zip(row, widths)).rstrip())
    return "\n".join(lines)


def format_json(results: list[EvaluationResult]) -> str:
    return json.dumps(
        [
            {
                "app_id": r.owner_id,
                "domain": r.hostname,
                "server": r.server_label,
                "status": r.status.value,
            }
            for r in results
        ],
        indent=2,
        ensure_ascii=False,
    )


async def find_inactive_domains(
    client_id: str,
    api_key: str,
    config: SystemConfig,
    prompter: Optional[Prompter] = None,
    lookup_ns: Optional[LookupFunc] = None,
    lookup_addresses: Optional[LookupFunc] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    logger: Optional[ActivityLogger] = None,
    show_progress: bool = False,
) -> list[EvaluationResult]:
    """
    Run a full reconciliation: list, classify, ask for credentials, evaluate.

    Args:
        client_id: Hosting API client id
        api_key: Hosting API key
        config: System configuration
        prompter: Source of operator answers (console by default)
        lookup_ns: Nameserver lookup override
        lookup_addresses: Address lookup override
        transport: Optional httpx transport shared by all API calls
        logger: Optional activity logger
        show_progress: Print a completion counter to stderr

    Returns:
        One result per hostname, in app order, before filtering

    Raises:
        InventoryError: If servers or apps cannot be listed
    """
    async with CachingFetcher(
        config=config.fetcher,
        cache=create_cache(config.cache),
        logger=logger,
        transport=transport,
    ) as fetcher:
        inventory = HostingInventory(fetcher, client_id, api_key, config.inventory, logger)
        app_servers = await inventory.list_app_servers()
        hostnames = all_domains(app_servers)

        classifier = DelegationClassifier(lookup_ns, config.provider, logger)
        records = await classifier.classify(hostnames)
        records = CredentialAcquisition(prompter, logger).attach_credentials(records)

        dns_resolver = DnsResolver(lookup_addresses, logger)
        provider_resolver = ProviderRecordResolver(fetcher, dns_resolver, config.provider, logger)
        evaluator = StatusEvaluator(
            HostnameResolver(dns_resolver, provider_resolver),
            config.evaluation,
            logger,
        )

        completed = 0

        def progress(result: EvaluationResult) -> None:
            nonlocal completed
            completed += 1
            if show_progress:
                end = "\n" if completed == len(records) else ""
                print(f"\rChecked {completed}/{len(records)} domains", end=end, file=sys.stderr)

        return await evaluator.evaluate_batch(records, app_servers, progress)


async def check_inactive(
    client_id: str,
    api_key: str,
    config: SystemConfig,
    output_format: str = "table",
) -> int:
    """
    List inactive domains and print them.

    Returns:
        Exit code (0 on success, 1 if the inventory could not be listed)
    """
    logger = ActivityLogger(
        output_format=config.logging.output_format,
        min_level=parse_log_level(config.logging.level),
    )

    try:
        results = await find_inactive_domains(
            client_id,
            api_key,
            config,
            logger=logger,
            show_progress=sys.stderr.isatty(),
        )
    except InventoryError as e:
        logger.log_error("cli", "Could not list hosting inventory", e, additional_data=e.details)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    filtered = filter_results(results, config.evaluation.include_unknown)

    if output_format == "json":
        print(format_json(filtered))
    elif filtered:
        print(format_table(filtered))
    else:
        print("No inactive domains found.")

    return 0


def cmd_inactive(args: argparse.Namespace) -> int:
    """Handle the 'inactive' command."""
    client_id = args.client_id or os.environ.get(CLIENT_ID_ENV)
    api_key = args.api_key or os.environ.get(API_KEY_ENV)
    if not client_id or not api_key:
        print(
            f"Error: client id and API key are required (arguments or {CLIENT_ID_ENV}/{API_KEY_ENV})",
            file=sys.stderr,
        )
        return 1

    config = None
    if args.config:
        config = load_config_from_file(Path(args.config))
        if config is None:
            print(f"Error: Could not load config from {args.config}", file=sys.stderr)
            return 1

    if config is None:
        config = create_default_config(verbose=args.verbose, use_cache=not args.no_cache)
    else:
        # Override with command line args
        if args.verbose:
            config.logging = replace(config.logging, level="debug")
        if args.no_cache:
            config.cache = replace(config.cache, enabled=False)

    if args.include_unknown:
        config.evaluation = replace(config.evaluation, include_unknown=True)

    return asyncio.run(check_inactive(
        client_id=client_id,
        api_key=api_key,
        config=config,
        output_format=args.format,
    ))


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="domain-reconciler",
        description="Find hosted domains whose DNS no longer points at their server",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'inactive' command
    inactive_parser = subparsers.add_parser(
        "inactive",
        help="List domains that do not resolve to their app's server",
    )
    inactive_parser.add_argument(
        "client_id",
        nargs="?",
        help=f"Hosting API client id (default: ${CLIENT_ID_ENV})",
    )
    inactive_parser.add_argument(
        "api_key",
        nargs="?",
        help=f"Hosting API key (default: ${API_KEY_ENV})",
    )
    inactive_parser.add_argument(
        "--include-unknown", "-u",
        action="store_true",
        help="Also list domains whose status could not be determined",
    )
    inactive_parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    inactive_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Do not read or write the response cache",
    )
    inactive_parser.add_argument(
        "--format", "-f",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    inactive_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    inactive_parser.set_defaults(func=cmd_inactive)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
