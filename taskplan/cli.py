"""Command line interface for compiling migration tasks."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .errors import ConfigurationError
from .job import MigrationJob
from .services.describe_client import DescribeClient, StaticDescribeClient
from .services.query_resolver import QueryResolver
from .soql import compose_query

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Migration task planner - resolve object queries against source and target schemas"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Plan a job
    plan_parser = subparsers.add_parser("plan", help="Resolve all objects of a job configuration")
    plan_parser.add_argument("--config", required=True, help="Path to the job configuration file")
    plan_parser.add_argument("--schemas-dir", help="Directory with describe files used for both sides")
    plan_parser.add_argument("--source-schemas-dir", help="Directory with describe files of the source")
    plan_parser.add_argument("--target-schemas-dir", help="Directory with describe files of the target")
    plan_parser.add_argument("--parallel", action="store_true", help="Describe objects concurrently")
    plan_parser.add_argument("--output", help="Output file path")
    plan_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Resolve a single query
    parse_parser = subparsers.add_parser("parse", help="Resolve a single query string")
    parse_parser.add_argument("--query", required=True, help="Query string")
    parse_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command == "plan":
        return run_plan(args)
    elif args.command == "parse":
        return run_parse(args)
    else:
        parser.print_help()
        return 0


def _static_client(directory: Optional[str], side: str) -> Optional[DescribeClient]:
    if not directory:
        return None
    client = StaticDescribeClient(side=side)
    loaded = client.load_from_directory(directory)
    logger.info(f"Loaded {loaded} {side} describe files from {directory}")
    return client


def run_plan(args) -> int:
    """Resolve a job configuration and print the plan."""
    source_client = _static_client(args.source_schemas_dir or args.schemas_dir, "source")
    target_client = _static_client(args.target_schemas_dir or args.schemas_dir, "target")

    job = MigrationJob.from_json_file(
        args.config,
        source_client=source_client,
        target_client=target_client,
    )
    report = asyncio.run(job.plan(parallel=args.parallel))
    output = json.dumps(report, indent=2)

    if args.output:
        with open(args.output, 'w') as f:
            f.write(output)
        print(f"Plan saved to {args.output}")
    else:
        print(output)

    if report["errors"]:
        print(f"\nFound {len(report['errors'])} errors", file=sys.stderr)
        return 1
    return 0


def run_parse(args) -> int:
    """Resolve one query string and print the result."""
    try:
        query, pattern = QueryResolver().resolve(args.query)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps({
        "object": query.sobject,
        "query": compose_query(query),
        "fields": query.field_names,
        "multiselect_pattern": pattern.to_dict() if pattern else None,
    }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
