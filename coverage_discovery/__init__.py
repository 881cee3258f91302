"""
Coverage dashboard repository auto-discovery.
"""
from coverage_discovery.ownership import (
    CODEOWNERS_PATHS,
    DEFAULT_OWNER,
    OwnershipDetector,
    OwnershipResult,
)

__all__ = ['CODEOWNERS_PATHS', 'DEFAULT_OWNER', 'OwnershipDetector', 'OwnershipResult']
