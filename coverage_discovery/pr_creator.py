"""
Pull request creation for discovered repositories.

Each repository gets its own branch, commit and PR against the dashboard repo.
"""
import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

import requests

from coverage_discovery.console import Console
from coverage_discovery.github import GitHubClient, GitHubError
from coverage_discovery.repo_config import RepositoryConfig, config_filename


logger = logging.getLogger(__name__)

BOT_NAME = "github-actions[bot]"
BOT_EMAIL = "github-actions[bot]@users.noreply.github.com"

PR_BODY_TEMPLATE = """## Add Coverage Dashboard Tracking

This PR adds your repository to the **Konflux Coverage Dashboard** at:
https://konflux-ci.dev/coverage-dashboard/

### What is the Coverage Dashboard?

The coverage dashboard collects and displays test coverage metrics for all Konflux Go repositories in one place. It provides:
- Unified view of coverage across all repositories and teams
- Package-level coverage breakdown for each repository
- Detailed HTML coverage reports for deep-dive analysis

### What This PR Does

- Adds configuration for `{name}` to the coverage dashboard
- Sets up ownership mapping so your team can manage future changes
- Enables automatic coverage report generation from your test suite

### After Merge

Your repository will:
1. Appear on the dashboard within 24 hours (next scheduled run)
2. Have coverage metrics updated with each dashboard run
3. Generate detailed HTML coverage reports accessible from the dashboard

### Review Checklist

- [ ] Verify exclude patterns are appropriate for your repository structure
- [ ] Confirm ownership assignment includes the right team members
- [ ] Repository has Go tests that will generate coverage data
"""

COMMIT_MSG_TEMPLATE = """chore: add coverage tracking for {name}

Add configuration for {name} to the Konflux coverage dashboard.
This enables automatic test coverage tracking and reporting for the repository."""


class GitCommandError(Exception):
    """Raised when a git command fails."""
    pass


def run_git(work_dir: Path, *args: str) -> str:
    """
    Run a git command and return its output.

    Raises:
        GitCommandError: With the command and combined output on failure
    """
    result = subprocess.run(
        ['git', *args],
        cwd=work_dir,
        capture_output=True,
        text=True
    )
    if result.returncode != 0:
        output = (result.stdout + result.stderr).strip()
        raise GitCommandError(f"git {' '.join(args)} failed:\n{output}")
    return result.stdout


def branch_name_for(repo_name: str) -> str:
    return f"add-repo/{repo_name}"


def split_reviewers(owners: List[str]) -> Tuple[List[str], List[str]]:
    """
    Split owner handles into user logins and team slugs.

    '@org/team' becomes team 'team', '@user' becomes user 'user'.
    """
    users: List[str] = []
    teams: List[str] = []
    for owner in owners:
        reviewer = owner.lstrip('@')
        if not reviewer:
            continue
        if '/' in reviewer:
            parts = reviewer.split('/')
            if len(parts) == 2 and parts[1]:
                teams.append(parts[1])
        else:
            users.append(reviewer)
    return users, teams


class PRCreator:
    """Creates pull requests for repository configurations."""

    def __init__(self, client: GitHubClient, work_dir: Path, org: str, repo: str,
                 base_branch: str = "main", repos_dir: str = "repos",
                 codeowners_file: str = "CODEOWNERS"):
        self.client = client
        self.work_dir = Path(work_dir)
        self.org = org
        self.repo = repo
        self.base_branch = base_branch
        self.repos_dir = repos_dir
        self.codeowners_file = codeowners_file

    def create_pull_request(self, cfg: RepositoryConfig) -> str:
        """
        Branch, commit, push and open a PR for one configuration.

        The config file and CODEOWNERS must already be written.

        Returns:
            PR URL

        Raises:
            GitCommandError: If a git step fails
            GitHubError: If the PR cannot be opened
        """
        branch_name = branch_name_for(cfg.repo_name)

        self._create_branch(branch_name)
        self._commit_changes(cfg)
        run_git(self.work_dir, 'push', '-u', 'origin', branch_name, '--force')

        pr = self.client.create_pull_request(
            self.org,
            self.repo,
            title=f"chore: add coverage tracking for {cfg.repo_name}",
            body=self.generate_pr_body(cfg),
            head=branch_name,
            base=self.base_branch
        )

        try:
            self._add_reviewers(pr['number'], cfg.owners)
        except (GitHubError, requests.RequestException) as e:
            Console.warning(f"Failed to add reviewers: {e}")

        try:
            run_git(self.work_dir, 'checkout', self.base_branch)
        except GitCommandError as e:
            Console.warning(f"Failed to checkout {self.base_branch}: {e}")

        return pr.get('html_url', '')

    def generate_pr_body(self, cfg: RepositoryConfig) -> str:
        return PR_BODY_TEMPLATE.format(name=cfg.name)

    def branch_exists(self, branch_name: str) -> bool:
        """Check if branch exists locally."""
        try:
            run_git(self.work_dir, 'rev-parse', '--verify', branch_name)
            return True
        except GitCommandError:
            return False

    def _create_branch(self, branch_name: str):
        """
        Create a fresh branch from the latest base branch.

        Falls back to the local base branch when fetching from origin fails.
        """
        if self.branch_exists(branch_name):
            run_git(self.work_dir, 'branch', '-D', branch_name)

        try:
            run_git(self.work_dir, 'fetch', 'origin', self.base_branch)
            fetched = True
        except GitCommandError as e:
            logger.debug(f"fetch of {self.base_branch} failed: {e}")
            fetched = False

        if fetched:
            run_git(self.work_dir, 'checkout', '-B', self.base_branch, 'FETCH_HEAD')
        elif self.branch_exists(self.base_branch):
            run_git(self.work_dir, 'checkout', self.base_branch)
            Console.warning(f"Using local {self.base_branch} branch (fetch failed)")
        else:
            raise GitCommandError(
                f"base branch {self.base_branch} does not exist locally and fetch from origin failed"
            )

        run_git(self.work_dir, 'checkout', '-b', branch_name)

    def _commit_changes(self, cfg: RepositoryConfig):
        run_git(self.work_dir, 'config', 'user.name', BOT_NAME)
        run_git(self.work_dir, 'config', 'user.email', BOT_EMAIL)

        config_file = str(Path(self.repos_dir) / config_filename(cfg.name))
        run_git(self.work_dir, 'add', config_file, str(self.codeowners_file))
        run_git(self.work_dir, 'commit', '-m', COMMIT_MSG_TEMPLATE.format(name=cfg.name))

    def _add_reviewers(self, number: int, owners: List[str]) -> Optional[dict]:
        users, teams = split_reviewers(owners)
        if not users and not teams:
            return None
        return self.client.request_reviewers(self.org, self.repo, number, users, teams)
