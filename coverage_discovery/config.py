"""
Configuration for repository discovery.

Paths and mode come from the command line, tokens from environment variables.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from coverage_discovery.ownership import DEFAULT_OWNER
from coverage_discovery.repo_config import ConfigError


DEFAULT_ORG = "konflux-ci"


@dataclass
class DiscoveryConfig:
    """Settings for one discovery run."""
    organization: str = DEFAULT_ORG
    repos_dir: Path = Path("repos")
    codeowners_file: Path = Path("CODEOWNERS")
    dry_run: bool = True
    default_owner: str = DEFAULT_OWNER
    read_token: Optional[str] = None
    write_token: Optional[str] = None
    base_branch: str = "main"

    @classmethod
    def from_env(cls, organization: str = DEFAULT_ORG, repos_dir: str = "repos",
                 codeowners_file: str = "CODEOWNERS", dry_run: bool = True,
                 default_owner: Optional[str] = None) -> 'DiscoveryConfig':
        """
        Build configuration, reading tokens from the environment.

        Environment:
            GITHUB_READ_TOKEN: Token for ownership detection (teams/collaborators)
            GITHUB_WRITE_TOKEN: Token for PR creation, required unless dry run
            COVERAGE_DEFAULT_OWNER: Fallback owner when default_owner is not given

        Raises:
            ConfigError: If apply mode is requested without a write token
        """
        write_token = os.getenv("GITHUB_WRITE_TOKEN") or None
        if not dry_run and not write_token:
            raise ConfigError("GITHUB_WRITE_TOKEN is required for --apply (needed for creating PRs)")

        if not default_owner:
            default_owner = os.getenv("COVERAGE_DEFAULT_OWNER") or DEFAULT_OWNER

        return cls(
            organization=organization,
            repos_dir=Path(repos_dir),
            codeowners_file=Path(codeowners_file),
            dry_run=dry_run,
            default_owner=default_owner,
            read_token=os.getenv("GITHUB_READ_TOKEN") or None,
            write_token=write_token,
        )
