"""
Repository ownership detection.

Owners are detected with a fallback chain, first non-empty result wins:
1. CODEOWNERS file (most authoritative)
2. Repository teams with admin/maintain permission
3. Direct collaborators with admin/maintain permission
4. Configured default owner
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import requests

from coverage_discovery.github import GitHubClient, GitHubError


logger = logging.getLogger(__name__)

DEFAULT_OWNER = "@konflux-ci/Vanguard"

# Tried in order; the first path that can be fetched is the only one parsed
CODEOWNERS_PATHS: Tuple[str, ...] = (
    ".github/CODEOWNERS",
    "CODEOWNERS",
    "docs/CODEOWNERS",
)

ELEVATED_PERMISSIONS = ("admin", "maintain")

MAX_CODEOWNERS_OWNERS = 5
MAX_TEAM_OWNERS = 3
MAX_COLLABORATOR_OWNERS = 5

OWNER_PATTERN = re.compile(r'@[a-zA-Z0-9_-]+(?:/[a-zA-Z0-9_-]+)?')

# Malformed API payloads surface as TypeError/AttributeError while iterating
STRATEGY_ERRORS = (GitHubError, requests.RequestException, ValueError, TypeError, AttributeError)


@dataclass(frozen=True)
class OwnershipResult:
    """Owners for one repository and the strategy that found them."""
    owners: List[str] = field(default_factory=list)
    strategy: str = "default"

    @property
    def is_default(self) -> bool:
        return self.strategy == "default"


def extract_owners_from_codeowners(content: str) -> List[str]:
    """
    Extract owner handles from CODEOWNERS content.

    Args:
        content: Raw CODEOWNERS text

    Returns:
        Up to MAX_CODEOWNERS_OWNERS handles, deduplicated, in first-seen order
    """
    owners: List[str] = []
    for match in OWNER_PATTERN.finditer(content):
        handle = match.group(0)
        if handle in owners:
            continue
        owners.append(handle)
        if len(owners) >= MAX_CODEOWNERS_OWNERS:
            break
    return owners


def detect_from_codeowners(client: Optional[GitHubClient], org: str, repo: str) -> Optional[List[str]]:
    """Read owners from the first CODEOWNERS file that can be fetched."""
    if client is None:
        return None

    for path in CODEOWNERS_PATHS:
        try:
            content = client.fetch_file(org, repo, path)
        except (GitHubError, requests.RequestException) as e:
            logger.debug(f"{org}/{repo}: no CODEOWNERS at {path}: {e}")
            continue
        owners = extract_owners_from_codeowners(content)
        if not owners:
            logger.debug(f"{org}/{repo}: {path} has no owner handles")
        return owners

    return None


def detect_from_teams(client: Optional[GitHubClient], org: str, repo: str) -> Optional[List[str]]:
    """Read owners from repository teams with admin or maintain permission."""
    if client is None or not client.is_authenticated:
        return None

    owners: List[str] = []
    for team in client.list_repo_teams(org, repo):
        if team.get('permission') not in ELEVATED_PERMISSIONS or not team.get('slug'):
            continue
        owners.append(f"@{org}/{team['slug']}")
        if len(owners) >= MAX_TEAM_OWNERS:
            break
    return owners


def detect_from_collaborators(client: Optional[GitHubClient], org: str, repo: str) -> Optional[List[str]]:
    """Read owners from direct collaborators with admin or maintain permission."""
    if client is None or not client.is_authenticated:
        return None

    owners: List[str] = []
    for collaborator in client.list_collaborators(org, repo, affiliation="direct"):
        permissions = collaborator.get('permissions') or {}
        if not (permissions.get('admin') or permissions.get('maintain')) or not collaborator.get('login'):
            continue
        owners.append(f"@{collaborator['login']}")
        if len(owners) >= MAX_COLLABORATOR_OWNERS:
            break
    return owners


Strategy = Callable[[Optional[GitHubClient], str, str], Optional[List[str]]]

STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("codeowners", detect_from_codeowners),
    ("teams", detect_from_teams),
    ("collaborators", detect_from_collaborators),
)


def normalize_default_owner(default_owner: Optional[str]) -> str:
    """Return the default handle, '@'-prefixed, or DEFAULT_OWNER when unset."""
    owner = (default_owner or "").strip()
    if not owner:
        return DEFAULT_OWNER
    if not owner.startswith('@'):
        owner = '@' + owner
    return owner


class OwnershipDetector:
    """
    Detects repository owners.

    The detector holds no state besides its client and default owner, so a
    single instance can be reused for every repository of a run.
    """

    def __init__(self, client: Optional[GitHubClient], default_owner: str = DEFAULT_OWNER):
        self.client = client
        self.default_owner = normalize_default_owner(default_owner)

    def detect(self, org: str, repo: str) -> OwnershipResult:
        """
        Detect owners for a repository. Never raises.

        Args:
            org: Organization login
            repo: Repository name

        Returns:
            OwnershipResult with 1-5 handles
        """
        for name, strategy in STRATEGIES:
            try:
                owners = strategy(self.client, org, repo)
            except STRATEGY_ERRORS as e:
                logger.debug(f"{org}/{repo}: {name} strategy failed: {e}")
                continue
            if owners:
                logger.debug(f"{org}/{repo}: owners from {name}: {owners}")
                return OwnershipResult(owners=list(owners), strategy=name)

        logger.info(f"{org}/{repo}: no ownership signal, using default {self.default_owner}")
        return OwnershipResult(owners=[self.default_owner], strategy="default")

    def detect_owners(self, org: str, repo: str) -> List[str]:
        """Detect owners and return only the handles."""
        return self.detect(org, repo).owners
