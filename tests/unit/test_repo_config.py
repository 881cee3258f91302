"""
Unit tests for repository configuration files and CODEOWNERS updates.
"""
import pytest
import yaml

from coverage_discovery.repo_config import (
    DEFAULT_EXCLUDE_DIRS,
    ConfigError,
    ConfigWriter,
    RepositoryConfig,
    config_filename,
    load_repository_config,
    normalize_owners,
    update_codeowners,
    validate_repo_name,
)


class TestValidateRepoName:
    """Test repository name validation."""

    @pytest.mark.parametrize("name", ["konflux-ci/build-service", "org/repo_1", "A/B"])
    def test_valid(self, name):
        validate_repo_name(name)

    @pytest.mark.parametrize("name", ["", "   ", "repo", "org/repo/extra", "../etc/passwd", "org/re po"])
    def test_invalid(self, name):
        with pytest.raises(ConfigError):
            validate_repo_name(name)


class TestNormalizeOwners:
    """Test owner normalization."""

    def test_adds_prefix_and_dedupes(self):
        assert normalize_owners([" alice ", "@alice", "", "org/team"]) == ["@alice", "@org/team"]

    def test_preserves_order(self):
        assert normalize_owners(["@b", "@a", "@b"]) == ["@b", "@a"]


class TestUpdateCodeowners:
    """Test CODEOWNERS entry upserts."""

    def test_creates_file(self, tmp_path):
        codeowners = tmp_path / "CODEOWNERS"

        update_codeowners(codeowners, "cli.yaml", ["@alice"])

        assert codeowners.read_text() == "/repos/cli.yaml @alice\n"

    def test_appends_after_blank_line(self, tmp_path):
        codeowners = tmp_path / "CODEOWNERS"
        codeowners.write_text("* @konflux-ci/Vanguard")

        update_codeowners(codeowners, "cli.yaml", ["@alice", "@org/team"])

        assert codeowners.read_text() == "* @konflux-ci/Vanguard\n\n/repos/cli.yaml @alice @org/team\n"

    def test_replaces_existing_entry(self, tmp_path):
        codeowners = tmp_path / "CODEOWNERS"
        codeowners.write_text(
            "* @konflux-ci/Vanguard\n"
            "/repos/cli.yaml @old  # previous owner\n"
            "/repos/cli.yaml.bak @other\n"
        )

        update_codeowners(codeowners, "cli.yaml", ["@new"])

        lines = codeowners.read_text().splitlines()
        assert lines[1] == "/repos/cli.yaml @new"
        assert lines[2] == "/repos/cli.yaml.bak @other"

    def test_no_owners_rejected(self, tmp_path):
        with pytest.raises(ConfigError, match="no owners"):
            update_codeowners(tmp_path / "CODEOWNERS", "cli.yaml", [])

    def test_blank_owners_rejected(self, tmp_path):
        with pytest.raises(ConfigError, match="invalid after normalization"):
            update_codeowners(tmp_path / "CODEOWNERS", "cli.yaml", ["  ", ""])


class TestConfigWriter:
    """Test config file writing."""

    def test_dry_run_writes_to_discovered_repos(self, tmp_path):
        repos_dir = tmp_path / "repos"
        codeowners = tmp_path / "CODEOWNERS"
        writer = ConfigWriter(repos_dir, codeowners)

        path = writer.write(RepositoryConfig(name="org/cli", owners=["@alice"]), dry_run=True)

        assert path == tmp_path / "discovered-repos" / "cli.yaml"
        assert path.exists()
        assert not codeowners.exists()

    def test_apply_writes_yaml_and_codeowners(self, tmp_path):
        repos_dir = tmp_path / "repos"
        codeowners = tmp_path / "CODEOWNERS"
        writer = ConfigWriter(repos_dir, codeowners)

        path = writer.write(RepositoryConfig(name="org/cli", owners=["@alice"]), dry_run=False)

        data = yaml.safe_load(path.read_text())
        assert data['name'] == "org/cli"
        assert data['exclude_dirs'] == DEFAULT_EXCLUDE_DIRS
        assert 'owners' not in data
        assert codeowners.read_text() == "/repos/cli.yaml @alice\n"

    def test_invalid_name_rejected(self, tmp_path):
        writer = ConfigWriter(tmp_path / "repos", tmp_path / "CODEOWNERS")

        with pytest.raises(ConfigError):
            writer.write(RepositoryConfig(name="bad name", owners=["@a"]), dry_run=True)

    def test_written_config_loads_back(self, tmp_path):
        writer = ConfigWriter(tmp_path / "repos", tmp_path / "CODEOWNERS")
        path = writer.write(RepositoryConfig(name="org/cli", owners=["@a"]), dry_run=False)

        cfg = load_repository_config(path)

        assert cfg.name == "org/cli"
        assert cfg.repo_name == "cli"
        assert config_filename(cfg.name) == "cli.yaml"


class TestLoadRepositoryConfig:
    """Test config loading."""

    def test_rejects_non_mapping(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError):
            load_repository_config(path)
