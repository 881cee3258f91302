"""
GitHub REST operations for repository discovery.
Handles organization listing, team/collaborator queries, raw file fetches and PRs.
"""
import logging
from typing import Optional, Dict, Any, List

import requests


logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
RAW_BASE = "https://raw.githubusercontent.com"
DEFAULT_TIMEOUT = 30
PER_PAGE = 100


class GitHubError(Exception):
    """Raised when the GitHub API answers with an unexpected status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"GitHub API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class FileNotFoundInRepoError(GitHubError):
    """Raised when a file cannot be fetched from a repository."""
    pass


class GitHubClient:
    """Thin wrapper around the GitHub REST API."""

    def __init__(self, token: Optional[str] = None, api_base: str = API_BASE,
                 raw_base: str = RAW_BASE, timeout: int = DEFAULT_TIMEOUT):
        self.token = token or None
        self.api_base = api_base.rstrip('/')
        self.raw_base = raw_base.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': '2022-11-28'
        })
        if self.token:
            self.session.headers['Authorization'] = f'Bearer {self.token}'

    @property
    def is_authenticated(self) -> bool:
        """True when requests carry a token."""
        return self.token is not None

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Make GET request to the API and decode JSON."""
        url = f"{self.api_base}{path}"
        response = self.session.get(url, params=params, timeout=self.timeout)
        if response.status_code != 200:
            raise GitHubError(response.status_code, f"GET {path} failed: {response.text[:200]}")
        return response.json()

    def _post(self, path: str, data: Dict[str, Any]) -> Any:
        """Make POST request to the API and decode JSON."""
        url = f"{self.api_base}{path}"
        response = self.session.post(url, json=data, timeout=self.timeout)
        if response.status_code not in (200, 201):
            raise GitHubError(response.status_code, f"POST {path} failed: {response.text[:200]}")
        return response.json()

    def list_org_repositories(self, org: str) -> List[Dict[str, Any]]:
        """
        List every repository of an organization.

        Follows pagination until a page comes back shorter than PER_PAGE.

        Args:
            org: Organization login

        Returns:
            List of repository dicts as returned by the API
        """
        repos: List[Dict[str, Any]] = []
        page = 1
        while True:
            batch = self._get(
                f"/orgs/{org}/repos",
                params={'type': 'all', 'per_page': PER_PAGE, 'page': page}
            )
            repos.extend(batch)
            if len(batch) < PER_PAGE:
                break
            page += 1
        logger.debug(f"Listed {len(repos)} repositories in {org} ({page} pages)")
        return repos

    def list_repo_teams(self, org: str, repo: str) -> List[Dict[str, Any]]:
        """List teams with access to a repository, in API order."""
        return self._get(f"/repos/{org}/{repo}/teams", params={'per_page': PER_PAGE})

    def list_collaborators(self, org: str, repo: str, affiliation: str = "direct") -> List[Dict[str, Any]]:
        """
        List repository collaborators.

        Args:
            org: Organization login
            repo: Repository name
            affiliation: 'direct' excludes access inherited through teams or org membership

        Returns:
            List of collaborator dicts, each with 'login' and a 'permissions' mapping
        """
        return self._get(
            f"/repos/{org}/{repo}/collaborators",
            params={'affiliation': affiliation, 'per_page': PER_PAGE}
        )

    def fetch_file(self, org: str, repo: str, path: str, ref: str = "HEAD") -> str:
        """
        Fetch raw file content from a repository.

        Args:
            org: Organization login
            repo: Repository name
            path: File path inside the repository
            ref: Branch, tag or commit; HEAD follows the default branch

        Returns:
            File content as text

        Raises:
            FileNotFoundInRepoError: If the file cannot be fetched
        """
        url = f"{self.raw_base}/{org}/{repo}/{ref}/{path}"
        headers = {}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        response = requests.get(url, headers=headers, timeout=self.timeout)
        if response.status_code != 200:
            raise FileNotFoundInRepoError(response.status_code, f"file not found: {path}")
        return response.text

    def find_open_pull_request(self, owner: str, repo: str, head: str, base: str = "main") -> Optional[Dict[str, Any]]:
        """
        Find an open PR for a head branch.

        Args:
            owner: Repository owner
            repo: Repository name
            head: Head in 'owner:branch' form
            base: Base branch

        Returns:
            PR data if one is open, None otherwise
        """
        prs = self._get(
            f"/repos/{owner}/{repo}/pulls",
            params={'state': 'open', 'head': head, 'base': base}
        )
        return prs[0] if prs else None

    def create_pull_request(self, owner: str, repo: str, title: str, body: str,
                            head: str, base: str = "main") -> Dict[str, Any]:
        """Open a pull request that maintainers can modify."""
        data = {
            'title': title,
            'body': body,
            'head': head,
            'base': base,
            'maintainer_can_modify': True
        }
        return self._post(f"/repos/{owner}/{repo}/pulls", data)

    def request_reviewers(self, owner: str, repo: str, number: int,
                          reviewers: List[str], team_reviewers: List[str]) -> Dict[str, Any]:
        """Request user and team reviews on a pull request."""
        data = {
            'reviewers': reviewers,
            'team_reviewers': team_reviewers
        }
        return self._post(f"/repos/{owner}/{repo}/pulls/{number}/requested_reviewers", data)
