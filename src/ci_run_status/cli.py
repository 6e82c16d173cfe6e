"""Command line entry point.

Exit codes: 0 = no failing CI, 1 = failing CI, 2 = configuration or API error.
"""

import argparse
import asyncio
import logging
import sys

from .config import Config, ConfigurationError, load_config
from .github import (
    GitHubClient,
    GitHubClientConfig,
    GitHubError,
    create_auth_provider,
)
from .runs import PullRequestRef, RepositoryRef, RunStatusEvaluator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ci-run-status",
        description="Report whether a pull request or commit has failing CI",
    )
    parser.add_argument("--config", help="Configuration file path")
    parser.add_argument("--log-level", help="Log level (overrides configuration)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    pr_parser = subparsers.add_parser("pr", help="Check a pull request")
    pr_parser.add_argument("repository", help="Repository as owner/name")
    pr_parser.add_argument("number", type=int, help="Pull request number")

    commit_parser = subparsers.add_parser("commit", help="Check a single commit")
    commit_parser.add_argument("repository", help="Repository as owner/name")
    commit_parser.add_argument("sha", help="Commit SHA")

    runs_parser = subparsers.add_parser("runs", help="List check runs of a commit")
    runs_parser.add_argument("repository", help="Repository as owner/name")
    runs_parser.add_argument("sha", help="Commit SHA")

    return parser


async def run(args: argparse.Namespace, config: Config) -> int:
    """Execute a parsed command against GitHub."""
    repository = RepositoryRef.from_full_name(args.repository)
    auth = create_auth_provider(config.github)

    async with GitHubClient(auth, GitHubClientConfig.from_config(config.github)) as client:
        evaluator = RunStatusEvaluator.from_config(client, config.evaluator)

        if args.command == "pr":
            pull = await client.get_pull(repository.owner, repository.name, args.number)
            failed = await evaluator.has_failed_run(
                repository, PullRequestRef.from_api(pull)
            )
            print(f"{repository}#{args.number}: {'failed' if failed else 'ok'}")
            return EXIT_FAILED if failed else EXIT_OK

        if args.command == "commit":
            failed = await evaluator.has_commit_failure(
                repository.owner, repository.name, args.sha
            )
            print(f"{repository}@{args.sha[:7]}: {'failed' if failed else 'ok'}")
            return EXIT_FAILED if failed else EXIT_OK

        runs = await evaluator.get_all_runs(repository.owner, repository.name, args.sha)
        for check_run in runs:
            outcome = check_run.conclusion.value if check_run.conclusion else "-"
            print(f"{check_run.id}\t{check_run.status.value}\t{outcome}\t{check_run.name}")
        return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the ci-run-status command."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR

    level = args.log_level or config.system.log_level.value
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(run(args, config))
    except ValueError as e:
        logger.error(f"Invalid argument: {e}")
        return EXIT_ERROR
    except GitHubError as e:
        logger.error(f"GitHub API error: {e}")
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
