#!/usr/bin/env python3
"""
discover-repos - find untracked Go repositories and onboard them to the coverage dashboard.

Usage:
    python -m coverage_discovery                 # dry run, writes discovered-repos/
    python -m coverage_discovery --apply         # write repos/, update CODEOWNERS, open PRs
"""
import argparse
import logging
import sys

import requests

from coverage_discovery.config import DEFAULT_ORG, DiscoveryConfig
from coverage_discovery.discover import DiscoveryRunner
from coverage_discovery.github import GitHubError
from coverage_discovery.repo_config import ConfigError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Coverage dashboard repository auto-discovery")
    parser.add_argument('--apply', action='store_true',
                        help="Create configuration files, update CODEOWNERS, and create PRs")
    parser.add_argument('--org', default=DEFAULT_ORG, help="GitHub organization to scan")
    parser.add_argument('--repos-dir', default="repos",
                        help="Directory containing repository configurations")
    parser.add_argument('--codeowners', default="CODEOWNERS", help="Path to CODEOWNERS file")
    parser.add_argument('--default-owner', default=None,
                        help="Owner used when no ownership signal is found")
    parser.add_argument('--verbose', '-v', action='store_true', help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    """Main entrypoint."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        config = DiscoveryConfig.from_env(
            organization=args.org,
            repos_dir=args.repos_dir,
            codeowners_file=args.codeowners,
            dry_run=not args.apply,
            default_owner=args.default_owner,
        )
        runner = DiscoveryRunner(config)
    except ConfigError as e:
        print(f"Error initializing: {e}", file=sys.stderr)
        return 1

    try:
        runner.run()
    except (GitHubError, ConfigError, requests.RequestException, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("\n✨ Discovery Complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
