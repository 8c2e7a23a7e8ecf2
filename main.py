"""CLI entry point for the job aggregation engine."""

import argparse
import asyncio
import logging
import os
import sys

import httpx

from src.core.config import Settings
from src.core.db import init_db
from src.core.schemas import SearchOutcome, SearchQuery
from src.pipeline.batch import BatchController
from src.pipeline.cache import ResultCache, SQLiteStore, fingerprint
from src.pipeline.orchestrator import (
    SearchService,
    build_service,
    export_results_json,
    run_all_searches,
)
from src.pipeline.quota_manager import JOB_SEARCH, QuotaManager
from src.platforms import available_platforms


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--caller",
        default="local",
        help="Caller identity used for quota accounting (default: local)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job aggregation engine - search LinkedIn, Workday and CareerOne",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- search subcommand (default) ---
    search_parser = subparsers.add_parser("search", help="Run job searches")
    _add_common(search_parser)
    search_parser.add_argument(
        "--keywords",
        help="Ad-hoc search keywords (default: run the searches in the config)",
    )
    search_parser.add_argument("--location", default="", help="Location text")
    search_parser.add_argument(
        "--remote", action="store_true", help="Only remote positions",
    )
    search_parser.add_argument(
        "--source",
        default="linkedin",
        choices=available_platforms(),
        help="Job platform to search (default: linkedin)",
    )
    search_parser.add_argument(
        "--limit",
        default="25",
        help="Number of results, 1-50, or 'all' for batches of 50 (default: 25)",
    )
    search_parser.add_argument(
        "--employment-type",
        default="all",
        choices=["full-time", "part-time", "contract", "internship", "all"],
    )
    search_parser.add_argument(
        "--experience-level",
        default="all",
        choices=["entry", "mid", "senior", "lead", "all"],
    )
    search_parser.add_argument(
        "--date-posted",
        default="all",
        choices=["24h", "week", "month", "all"],
    )
    search_parser.add_argument(
        "--pages",
        type=int,
        default=1,
        help="Batches to load for --limit all (default: 1)",
    )
    search_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without calling any provider",
    )
    search_parser.add_argument(
        "--export",
        choices=["json"],
        help="Export results to format (json)",
    )

    # --- status subcommand ---
    status_parser = subparsers.add_parser("status", help="Show quota and provider status")
    _add_common(status_parser)

    # --- grant-tokens subcommand ---
    grant_parser = subparsers.add_parser(
        "grant-tokens", help="Credit purchased job-search tokens to a caller",
    )
    _add_common(grant_parser)
    grant_parser.add_argument("--count", type=int, required=True, help="Tokens to add")

    # --- set-plan subcommand ---
    plan_parser = subparsers.add_parser("set-plan", help="Change a caller's plan tier")
    _add_common(plan_parser)
    plan_parser.add_argument("--plan", required=True, help="Plan tier name")

    # Default to search when no subcommand given
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or (argv[0] not in subparsers.choices and argv[0] not in ("-h", "--help")):
        argv = ["search", *argv]

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request (with the token in the URL) at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def queries_from_args(args: argparse.Namespace, settings: Settings) -> list[SearchQuery]:
    """The ad-hoc query from flags, or every search in the config."""
    if not args.keywords:
        return list(settings.searches)
    return [
        SearchQuery(
            keywords=args.keywords,
            location=args.location,
            remote_only=args.remote,
            provider=args.source,
            result_limit=args.limit,
            employment_type=args.employment_type,
            experience_level=args.experience_level,
            date_posted=args.date_posted,
        ),
    ]


def dry_run(settings: Settings, queries: list[SearchQuery], caller_id: str) -> None:
    """Print what would happen without actually searching."""
    conn = init_db(settings.database.path)
    quota_manager = QuotaManager(conn, settings.quotas)
    cache = ResultCache(SQLiteStore(conn), ttl_s=settings.cache.ttl_seconds)

    remaining = quota_manager.check_remaining(caller_id, JOB_SEARCH)
    print(f"[DRY RUN] {len(queries)} searches, {remaining} quota units left for '{caller_id}'")

    for query in queries:
        provider = settings.providers[query.provider]
        configured = "configured" if os.environ.get(provider.token_env) else "NOT CONFIGURED"
        cached = "cached" if cache.get(query) is not None else "not cached"
        print(f"[DRY RUN] '{query.keywords}' on {query.provider} ({configured}, {cached})")
        print(f"  Filters: {query.model_dump(exclude={'keywords', 'provider'})}")
        print(f"  Batch size: {query.batch_size}")
        if query.provider == "linkedin":
            print(f"  Max status checks: {settings.polling.max_attempts(query)}")
        print(f"  Cache key: {fingerprint(query)}")

    print("[DRY RUN] No provider was called")
    conn.close()


def print_outcome(query: SearchQuery, outcome: SearchOutcome) -> None:
    flags = []
    if outcome.from_cache:
        flags.append("cached")
    if outcome.is_fallback:
        flags.append("sample data")
    suffix = f" ({', '.join(flags)})" if flags else ""
    print(f"  '{query.keywords}' on {query.provider}: {outcome.status}, "
          f"{outcome.total} jobs{suffix}")
    if outcome.message:
        print(f"    {outcome.message}")
    for job in outcome.jobs:
        print(f"    - {job.title} | {job.company} | {job.location} | {job.posted_date}")


async def run(
    settings: Settings,
    queries: list[SearchQuery],
    caller_id: str,
    pages: int,
    export_format: str | None,
) -> None:
    """Run the searches against the live providers."""
    conn = init_db(settings.database.path)
    cache = ResultCache(SQLiteStore(conn), ttl_s=settings.cache.ttl_seconds)
    quota = QuotaManager(conn, settings.quotas)
    cache.purge_expired()

    results: list[tuple[SearchQuery, SearchOutcome]] = []
    async with httpx.AsyncClient() as http:
        service = build_service(settings, cache, quota, http=http)
        if pages > 1:
            for query in queries:
                results.extend(await _run_batches(service, caller_id, query, pages))
        else:
            outcomes = await run_all_searches(service, caller_id, queries)
            results = list(zip(queries, outcomes, strict=True))

    outcomes = [outcome for _, outcome in results]
    print(f"\nSearch complete: {sum(o.total for o in outcomes)} jobs "
          f"from {len(outcomes)} requests.")
    for query, outcome in results:
        print_outcome(query, outcome)

    print(f"Quota units left for '{caller_id}': {quota.check_remaining(caller_id)}")

    # Export if requested
    if export_format == "json" and outcomes:
        output = export_results_json(outcomes)
        print(f"\n{output}")

    conn.close()


async def _run_batches(
    service: SearchService, caller_id: str, query: SearchQuery, pages: int,
) -> list[tuple[SearchQuery, SearchOutcome]]:
    """First batch plus up to ``pages - 1`` billing-free continuations."""
    batches = BatchController(service, caller_id)
    results = [(query, await batches.start(query))]
    while batches.has_more and len(results) < pages:
        outcome = await batches.load_more()
        results.append((query.with_offset(outcome.offset), outcome))
    return results


def cmd_status(settings: Settings, caller_id: str) -> None:
    conn = init_db(settings.database.path)
    quota = QuotaManager(conn, settings.quotas)
    plan = quota.plan_of(caller_id)
    included = quota.included_remaining(caller_id)
    print(f"Caller: {caller_id}")
    print(f"  Plan: {plan}")
    print(f"  Included searches left today: {included if included is not None else 'unlimited'}")
    print(f"  Purchased tokens: {quota.tokens_of(caller_id)}")
    print("Providers:")
    for name, provider in settings.providers.items():
        state = "configured" if os.environ.get(provider.token_env) else "missing token"
        print(f"  {name}: {provider.actor_id} ({provider.token_env}: {state})")
    conn.close()


def cmd_grant_tokens(settings: Settings, caller_id: str, count: int) -> None:
    conn = init_db(settings.database.path)
    balance = QuotaManager(conn, settings.quotas).add_tokens(caller_id, count)
    print(f"Granted {count} tokens to '{caller_id}' (balance: {balance})")
    conn.close()


def cmd_set_plan(settings: Settings, caller_id: str, plan: str) -> None:
    conn = init_db(settings.database.path)
    QuotaManager(conn, settings.quotas).set_plan(caller_id, plan)
    print(f"Plan for '{caller_id}' set to {plan}")
    conn.close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except FileNotFoundError:
        logging.getLogger(__name__).info("No config at %s - using defaults", args.config)
        settings = Settings()
    except ValueError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "status":
        cmd_status(settings, args.caller)
        return
    if args.command in ("grant-tokens", "set-plan"):
        try:
            if args.command == "grant-tokens":
                cmd_grant_tokens(settings, args.caller, args.count)
            else:
                cmd_set_plan(settings, args.caller, args.plan)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        return

    # search (default)
    try:
        queries = queries_from_args(args, settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if not queries:
        print("Nothing to search: pass --keywords or add searches to the config.",
              file=sys.stderr)
        sys.exit(1)

    if args.dry_run:
        dry_run(settings, queries, args.caller)
    else:
        asyncio.run(run(settings, queries, args.caller, args.pages, args.export))


if __name__ == "__main__":
    main()
