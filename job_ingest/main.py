"""CLI entry point: ingest job files, run matching, print stats."""

import argparse
import csv
import json
import logging
import sys
from pathlib import Path

from job_ingest.config import AppConfig, load_config_or_default, validate_config
from job_ingest.errors import InvalidBatchError
from job_ingest.ingest.orchestrator import ingest
from job_ingest.matching.dispatch import InlineMatchingDispatcher
from job_ingest.matching.engine import execute_run
from job_ingest.matching.matcher import get_scorer
from job_ingest.models import init_db, make_engine, make_session_factory
from job_ingest.models.match_run import RUN_OK
from job_ingest.storage.database import JobStore
from job_ingest.utils.logging_config import setup_logging

logger = logging.getLogger("job_ingest")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job Ingest - load job postings and match them to candidates",
    )
    parser.add_argument(
        "--config", default="config.yaml",
        help="Path to config file (default: config.yaml, defaults used if missing)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    ingest_cmd = sub.add_parser("ingest", help="Ingest a JSON or CSV file of job rows")
    ingest_cmd.add_argument("file", help="JSON list, JSON object with a 'jobs' key, or CSV with a header row")
    ingest_cmd.add_argument(
        "--skip-matching", action="store_true",
        help="Store the jobs but don't score them",
    )
    ingest_cmd.add_argument("--source", default=None, help="Source to record for rows that don't name one")

    match_cmd = sub.add_parser("match", help="Run a full matching pass")
    match_cmd.add_argument("--candidate", type=int, default=None, help="Only score this candidate id")

    sub.add_parser("stats", help="Print database statistics")
    sub.add_parser("init-db", help="Create missing tables")

    return parser.parse_args(argv)


def load_rows(path: str) -> list:
    """Read raw job rows from a JSON or CSV file."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Job file not found: {path}")

    if file_path.suffix.lower() == ".csv":
        with open(file_path, "r", encoding="utf-8", newline="") as f:
            return list(csv.DictReader(f))

    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("jobs")
    return data


def print_stats(stats: dict):
    """Print database statistics."""
    print("\n=== Job Ingest Statistics ===")
    print(f"Total jobs: {stats['total_jobs']}")
    print(f"Active jobs: {stats['active_jobs']}")
    print(f"Stored matches: {stats['total_matches']}")
    print(f"Matching runs: {stats['total_runs']}")

    if stats.get("by_source"):
        print("\nJobs by source:")
        for source, count in stats["by_source"].items():
            print(f"  {source or 'unknown'}: {count}")

    if stats.get("last_run"):
        run = stats["last_run"]
        print(f"\nLast run: {run['started_at']} ({run['mode']}, {run['status']})")
        print(f"  Jobs in scope: {run['jobs_in_scope']}")
        print(f"  Candidates: {run['candidates_processed']}")
        print(f"  Pairs scored: {run['pairs_scored']} ({run['pairs_failed']} failed)")
        print(f"  Matches stored: {run['matches_upserted']}")
        if run["error_message"]:
            print(f"  Error: {run['error_message']}")
    print()


def run_command(args: argparse.Namespace, config: AppConfig) -> int:
    engine = make_engine(config.database.url)
    init_db(engine)
    session_factory = make_session_factory(engine)

    if args.command == "init-db":
        print(f"Database ready: {config.database.url}")
        return 0

    if args.command == "stats":
        with session_factory() as db:
            print_stats(JobStore(db).get_stats())
        return 0

    scorer = get_scorer(config.matching.scorer)

    if args.command == "match":
        run = execute_run(
            session_factory,
            scorer=scorer,
            candidate_id=args.candidate,
            on_progress=print,
            mode="full",
            trigger="cli",
            max_matches_per_candidate=config.matching.max_matches_per_candidate,
        )
        return 0 if run is not None and run.status == RUN_OK else 1

    rows = load_rows(args.file)
    dispatcher = InlineMatchingDispatcher(
        session_factory,
        scorer=scorer,
        max_matches_per_candidate=config.matching.max_matches_per_candidate,
    )
    with session_factory() as db:
        result = ingest(
            db,
            rows,
            skip_matching=args.skip_matching,
            dispatcher=dispatcher,
            config=config.ingest,
            source=args.source,
        )
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def main(argv: list[str] | None = None):
    args = parse_args(argv)
    config = load_config_or_default(args.config)

    setup_logging(config.log_dir, config.log_level)

    for w in validate_config(config):
        logger.warning("Config: %s", w)

    try:
        code = run_command(args, config)
    except (FileNotFoundError, json.JSONDecodeError, InvalidBatchError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        logger.exception("Command '%s' failed", args.command)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
