"""
Repository configuration records for the coverage dashboard.

Writes repos/<name>.yaml files and keeps the CODEOWNERS ownership map in sync.
"""
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import yaml


logger = logging.getLogger(__name__)

# org/repo with alphanumerics, underscores and hyphens only
REPO_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+/[a-zA-Z0-9_-]+$')

DRY_RUN_DIR = "discovered-repos"

# Common exclusions, repository owners can adjust them in the PR
DEFAULT_EXCLUDE_DIRS = [
    "vendor/",
    ".github/",
    ".tekton/",
    "hack/",
    "proto/",
    "test/",
    "tests/",
    "integration-tests/",
    "/fake(/|$)",
    "/mock(s)?(/|$)",
    "/e2e(-tests)?(/|$)",
    "docs/",
]

DEFAULT_EXCLUDE_FILES = [
    "zz_generated.deepcopy.go",
    "openapi_generated.go",
    "*.pb.go",
    "mock_*.go",
    "*_mock.go",
]


class ConfigError(Exception):
    """Raised when a configuration cannot be validated or written."""
    pass


@dataclass
class RepositoryConfig:
    """A tracked repository; owners go to CODEOWNERS, not to the YAML file."""
    name: str
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    exclude_files: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_FILES))
    owners: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'exclude_dirs': list(self.exclude_dirs),
            'exclude_files': list(self.exclude_files),
        }

    @property
    def repo_name(self) -> str:
        """Repository part of 'org/repo'."""
        return self.name.split('/')[-1]


def validate_repo_name(name: str) -> None:
    """
    Validate a repository name.

    Raises:
        ConfigError: If name is empty or not in org/repo format
    """
    if not name or not name.strip():
        raise ConfigError("repository name cannot be empty")
    if not REPO_NAME_PATTERN.match(name):
        raise ConfigError(
            f"invalid repository name: {name!r} "
            f"(must be in org/repo format with only alphanumerics, underscores, and hyphens)"
        )


def config_filename(name: str) -> str:
    """Config filename for an 'org/repo' name."""
    return name.split('/')[1] + ".yaml"


def normalize_owners(owners: List[str]) -> List[str]:
    """Trim whitespace, ensure '@' prefix and deduplicate, keeping order."""
    result: List[str] = []
    for owner in owners:
        owner = owner.strip()
        if not owner:
            continue
        if not owner.startswith('@'):
            owner = '@' + owner
        if owner not in result:
            result.append(owner)
    return result


def _matches_entry(line: str, pattern: str) -> bool:
    """True if the CODEOWNERS line's path token is exactly pattern."""
    trimmed = line.split('#', 1)[0].strip()
    return trimmed == pattern or trimmed.startswith(pattern + ' ')


def update_codeowners(codeowners_file: Path, filename: str, owners: List[str]) -> None:
    """
    Update or add the /repos/<filename> entry in a CODEOWNERS file.

    Args:
        codeowners_file: Path to CODEOWNERS
        filename: Config filename under repos/
        owners: Owner handles for the entry

    Raises:
        ConfigError: If no valid owners remain after normalization
    """
    if not owners:
        raise ConfigError(f"no owners specified for {filename}")

    normalized = normalize_owners(owners)
    if not normalized:
        raise ConfigError(f"all owners for {filename} were invalid after normalization")

    lines: List[str] = []
    if codeowners_file.exists():
        lines = codeowners_file.read_text().split('\n')

    pattern = f"/repos/{filename}"
    new_entry = f"{pattern} {' '.join(normalized)}"

    for i, line in enumerate(lines):
        if _matches_entry(line, pattern):
            lines[i] = new_entry
            break
    else:
        if lines and lines[-1] != "":
            lines.append("")
        lines.append(new_entry)

    content = '\n'.join(lines)
    if not content.endswith('\n'):
        content += '\n'
    codeowners_file.write_text(content)


def load_repository_config(path: Path) -> RepositoryConfig:
    """
    Load a repository configuration from YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If the file isn't a mapping with a 'name'
    """
    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or 'name' not in data:
        raise ConfigError(f"Invalid repository config in {path}: expected a mapping with 'name'")

    return RepositoryConfig(
        name=data['name'],
        exclude_dirs=list(data.get('exclude_dirs') or []),
        exclude_files=list(data.get('exclude_files') or []),
    )


class ConfigWriter:
    """Writes repository configurations to disk."""

    def __init__(self, repos_dir: Path, codeowners_file: Path):
        self.repos_dir = Path(repos_dir)
        self.codeowners_file = Path(codeowners_file)

    def target_path(self, cfg: RepositoryConfig, dry_run: bool) -> Path:
        """Where a config lands: repos_dir, or a sibling discovered-repos/ in dry run."""
        filename = config_filename(cfg.name)
        if dry_run:
            return self.repos_dir.parent / DRY_RUN_DIR / filename
        return self.repos_dir / filename

    def write(self, cfg: RepositoryConfig, dry_run: bool) -> Path:
        """
        Write a repository configuration.

        In apply mode the CODEOWNERS entry is updated too.

        Returns:
            Path of the written YAML file

        Raises:
            ConfigError: If the name is invalid or CODEOWNERS can't be updated
        """
        validate_repo_name(cfg.name)

        target = self.target_path(cfg, dry_run)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w') as f:
            yaml.safe_dump(cfg.to_dict(), f, default_flow_style=False, sort_keys=False)
        logger.debug(f"Wrote {target}")

        if not dry_run:
            update_codeowners(self.codeowners_file, target.name, cfg.owners)

        return target
