"""
Console output and status display for repository discovery.
"""
from typing import List


class Console:
    """Handles console output with formatting."""

    @staticmethod
    def header(text: str):
        """Print a header."""
        print(f"\n{'=' * 50}")
        print(f"  {text}")
        print(f"{'=' * 50}\n")

    @staticmethod
    def step(text: str):
        """Print a step of the discovery run."""
        print(f"→ {text}")

    @staticmethod
    def info(text: str):
        """Print info message."""
        print(f"ℹ️  {text}")

    @staticmethod
    def success(text: str):
        """Print success message."""
        print(f"✅ {text}")

    @staticmethod
    def warning(text: str):
        """Print warning message."""
        print(f"⚠️  {text}")

    @staticmethod
    def error(text: str):
        """Print error message."""
        print(f"❌ {text}")

    @staticmethod
    def repo_progress(index: int, total: int, name: str):
        print(f"\n📦 [{index}/{total}] {name}")

    @staticmethod
    def owners(owners: List[str], strategy: str):
        """Print detected owners, flagging the default fallback."""
        if strategy == "default":
            print(f"   👥 Owners: {' '.join(owners)} (default fallback, no ownership signal found)")
        else:
            print(f"   👥 Owners: {' '.join(owners)} (from {strategy})")

    @staticmethod
    def summary(total: int, tracked: int, new: int, created: int, dry_run: bool):
        """Print discovery summary."""
        Console.header("Discovery Summary")
        print("📊 Statistics:")
        print(f"  • Total Go repositories: {total}")
        print(f"  • Currently tracked: {tracked}")
        print(f"  • New repositories: {new}")
        print(f"  • Configurations created: {created}")
        print()

        if dry_run:
            print("💡 Next Steps:")
            print("  • Review files in discovered-repos/")
            print("  • Run: discover-repos --apply")
            print("  • Set GITHUB_READ_TOKEN and GITHUB_WRITE_TOKEN if not already set")
        else:
            print("🎉 Repository configurations created.")
            print("💡 Next Steps:")
            print("  • Repository owners will receive PR notifications")
            print("  • PRs can be reviewed and approved by teams")
            print("  • Dashboard will update within 24 hours")
