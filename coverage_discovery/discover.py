"""
Repository auto-discovery runner.

Finds untracked Go repositories in an organization, generates their coverage
configuration and, in apply mode, opens one pull request per repository.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import requests
import yaml

from coverage_discovery.config import DiscoveryConfig
from coverage_discovery.console import Console
from coverage_discovery.github import GitHubClient, GitHubError
from coverage_discovery.ownership import OwnershipDetector
from coverage_discovery.pr_creator import GitCommandError, PRCreator, branch_name_for, run_git
from coverage_discovery.repo_config import (
    ConfigError,
    ConfigWriter,
    RepositoryConfig,
    load_repository_config,
)


logger = logging.getLogger(__name__)

TRACKED_LANGUAGE = "Go"
DEFAULT_DASHBOARD_REPO = "coverage-dashboard"


@dataclass
class DiscoverySummary:
    """Counts reported at the end of a run."""
    total_repos: int = 0
    tracked_repos: int = 0
    new_repos: int = 0
    configs_created: int = 0
    prs_created: int = 0


def repo_name_from_remote(remote_url: str) -> str:
    """
    Extract the repository name from a git remote URL.

    https://github.com/konflux-ci/coverage-dashboard.git -> coverage-dashboard
    git@github.com:konflux-ci/coverage-dashboard.git -> coverage-dashboard
    """
    name = remote_url.strip().rstrip('/').split('/')[-1].split(':')[-1]
    if name.endswith('.git'):
        name = name[:-len('.git')]
    return name or DEFAULT_DASHBOARD_REPO


class DiscoveryRunner:
    """Orchestrates the discovery process."""

    def __init__(self, config: DiscoveryConfig, read_client: Optional[GitHubClient] = None,
                 write_client: Optional[GitHubClient] = None, work_dir: Optional[Path] = None):
        self.config = config
        self.read_client = read_client or GitHubClient(token=config.read_token)
        self.write_client = write_client or GitHubClient(token=config.write_token)
        self.work_dir = work_dir or Path.cwd()
        self.detector = OwnershipDetector(self.read_client, config.default_owner)
        self.writer = ConfigWriter(config.repos_dir, config.codeowners_file)
        self.existing_repos: Set[str] = set()
        self._dashboard_repo: Optional[str] = None

    def run(self) -> DiscoverySummary:
        """
        Execute a full discovery run.

        Returns:
            DiscoverySummary with run counts

        Raises:
            GitHubError: If the organization's repositories can't be listed
            ConfigError: If a configuration can't be written
        """
        Console.header("Konflux-CI Repository Auto-Discovery")
        if self.config.dry_run:
            Console.info("Mode: DRY RUN (preview only), use --apply to create files and PRs")
        else:
            Console.info("Mode: APPLY (will create files and PRs)")

        if not self.read_client.is_authenticated:
            Console.warning("GITHUB_READ_TOKEN not set, using unauthenticated API calls")
            Console.warning("Ownership detection will be limited to CODEOWNERS files only")

        summary = DiscoverySummary()

        Console.step(f"Fetching Go repositories from {self.config.organization} organization...")
        repos = self.fetch_go_repositories()
        summary.total_repos = len(repos)
        Console.success(f"Found {len(repos)} Go repositories")

        Console.step("Checking currently tracked repositories...")
        self.load_existing_repos()
        summary.tracked_repos = len(self.existing_repos)
        Console.success(f"Currently tracking {len(self.existing_repos)} repositories")

        Console.step("Identifying new repositories to add...")
        new_repos = self.filter_new_repositories(repos)
        summary.new_repos = len(new_repos)
        if not new_repos:
            Console.success("No new repositories found. All Go repos are already tracked!")
            return summary
        Console.success(f"Found {len(new_repos)} new repositories to add")

        configs: List[RepositoryConfig] = []
        for i, repo in enumerate(new_repos, 1):
            Console.repo_progress(i, len(new_repos), repo['name'])

            if not self.config.dry_run and self.pr_already_exists(repo['name']):
                Console.info("Skipped: PR already exists")
                continue

            configs.append(self.analyze_repository(repo))

        self.write_configurations(configs)
        summary.configs_created = len(configs)

        if not self.config.dry_run:
            summary.prs_created = self.create_pull_requests(configs)

        Console.summary(summary.total_repos, summary.tracked_repos, summary.new_repos,
                        summary.configs_created, self.config.dry_run)
        return summary

    def fetch_go_repositories(self) -> List[Dict[str, Any]]:
        """List non-archived repositories whose primary language is Go."""
        repos = self.read_client.list_org_repositories(self.config.organization)
        return [
            repo for repo in repos
            if repo.get('language') == TRACKED_LANGUAGE and not repo.get('archived', False)
        ]

    def load_existing_repos(self):
        """Collect names of repositories already configured in repos_dir."""
        self.existing_repos = set()
        repos_dir = self.config.repos_dir
        if not repos_dir.is_dir():
            return

        for path in sorted(repos_dir.iterdir()):
            if path.is_dir():
                continue
            try:
                cfg = load_repository_config(path)
            except (ConfigError, OSError, yaml.YAMLError) as e:
                Console.warning(f"Failed to parse {path.name}: {e}")
                continue
            self.existing_repos.add(cfg.name)

    def filter_new_repositories(self, repos: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            repo for repo in repos
            if f"{self.config.organization}/{repo['name']}" not in self.existing_repos
        ]

    def analyze_repository(self, repo: Dict[str, Any]) -> RepositoryConfig:
        """Detect owners and build the configuration for one repository."""
        org = self.config.organization
        result = self.detector.detect(org, repo['name'])
        Console.owners(result.owners, result.strategy)

        return RepositoryConfig(
            name=f"{org}/{repo['name']}",
            owners=result.owners,
        )

    def write_configurations(self, configs: List[RepositoryConfig]):
        if not configs:
            Console.info("No configurations to generate")
            return

        Console.step(f"Generating {len(configs)} configuration files...")
        for cfg in configs:
            self.writer.write(cfg, self.config.dry_run)

        if self.config.dry_run:
            Console.success(f"Created {len(configs)} files in discovered-repos/ directory")
        else:
            Console.success(f"Created {len(configs)} files and updated CODEOWNERS")

    def create_pull_requests(self, configs: List[RepositoryConfig]) -> int:
        """
        Open a PR per configuration.

        Individual failures are reported and skipped.

        Returns:
            Number of PRs created
        """
        if not configs:
            return 0

        Console.step(f"Creating {len(configs)} pull requests...")
        creator = PRCreator(
            self.write_client,
            self.work_dir,
            self.config.organization,
            self.dashboard_repo(),
            base_branch=self.config.base_branch,
            repos_dir=str(self.config.repos_dir),
            codeowners_file=str(self.config.codeowners_file),
        )

        created = 0
        for i, cfg in enumerate(configs, 1):
            try:
                url = creator.create_pull_request(cfg)
            except (GitCommandError, GitHubError, requests.RequestException) as e:
                Console.error(f"[{i}/{len(configs)}] {cfg.repo_name}: failed ({e})")
                continue
            Console.success(f"[{i}/{len(configs)}] {cfg.repo_name}: {url}")
            created += 1

        if created < len(configs):
            Console.warning(f"Created {created}/{len(configs)} pull requests")
        else:
            Console.success(f"All {created} pull requests created successfully!")
        return created

    def dashboard_repo(self) -> str:
        """Name of the repository PRs are opened against, from the origin remote."""
        if self._dashboard_repo is None:
            try:
                remote_url = run_git(self.work_dir, 'remote', 'get-url', 'origin')
                self._dashboard_repo = repo_name_from_remote(remote_url)
            except (GitCommandError, OSError) as e:
                logger.debug(f"Could not read origin remote: {e}")
                self._dashboard_repo = DEFAULT_DASHBOARD_REPO
        return self._dashboard_repo

    def pr_already_exists(self, repo_name: str) -> bool:
        """Check for an open PR from this repository's add-repo branch."""
        head = f"{self.config.organization}:{branch_name_for(repo_name)}"
        try:
            pr = self.write_client.find_open_pull_request(
                self.config.organization,
                self.dashboard_repo(),
                head,
                base=self.config.base_branch
            )
        except (GitHubError, requests.RequestException) as e:
            logger.debug(f"Open PR lookup for {repo_name} failed: {e}")
            return False
        return pr is not None
