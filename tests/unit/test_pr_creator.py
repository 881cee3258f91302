"""
Unit tests for PR creation and git operations.
"""
import subprocess
import pytest
from pathlib import Path
from unittest.mock import Mock, patch

from coverage_discovery.github import GitHubClient, GitHubError
from coverage_discovery.pr_creator import (
    GitCommandError,
    PRCreator,
    branch_name_for,
    run_git,
    split_reviewers,
)
from coverage_discovery.repo_config import RepositoryConfig


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestRunGit:
    """Test the git command helper."""

    @patch('coverage_discovery.pr_creator.subprocess.run')
    def test_returns_stdout(self, mock_run):
        mock_run.return_value = completed(stdout="origin\n")

        assert run_git(Path("/work"), 'remote') == "origin\n"
        assert mock_run.call_args.args[0] == ['git', 'remote']
        assert mock_run.call_args.kwargs['cwd'] == Path("/work")

    @patch('coverage_discovery.pr_creator.subprocess.run')
    def test_failure_raises_with_output(self, mock_run):
        mock_run.return_value = completed(returncode=128, stderr="fatal: not a git repository")

        with pytest.raises(GitCommandError, match="git status failed:\nfatal: not a git repository"):
            run_git(Path("/work"), 'status')


class TestSplitReviewers:
    """Test owner to reviewer conversion."""

    def test_users_and_teams(self):
        users, teams = split_reviewers(["@alice", "@konflux-ci/integration", "@bob"])

        assert users == ["alice", "bob"]
        assert teams == ["integration"]

    def test_skips_empty_and_malformed(self):
        users, teams = split_reviewers(["@", "@a/b/c", "@org/"])

        assert users == []
        assert teams == []

    def test_branch_name(self):
        assert branch_name_for("cli") == "add-repo/cli"


class TestPRCreator:
    """Test the branch/commit/push/PR sequence."""

    def make_creator(self):
        client = Mock(spec=GitHubClient)
        client.create_pull_request.return_value = {'number': 42, 'html_url': 'https://github.com/org/dash/pull/42'}
        return PRCreator(client, Path("/work"), "org", "dash"), client

    @patch('coverage_discovery.pr_creator.run_git')
    def test_full_sequence(self, mock_git):
        def git(work_dir, *args):
            if args[0] == 'rev-parse':
                raise GitCommandError("git rev-parse failed")
            return ""

        mock_git.side_effect = git
        creator, client = self.make_creator()
        cfg = RepositoryConfig(name="org/cli", owners=["@alice", "@org/team"])

        url = creator.create_pull_request(cfg)

        assert url == "https://github.com/org/dash/pull/42"
        commands = [call.args[1:] for call in mock_git.call_args_list]
        assert ('fetch', 'origin', 'main') in commands
        assert ('checkout', '-B', 'main', 'FETCH_HEAD') in commands
        assert ('checkout', '-b', 'add-repo/cli') in commands
        assert ('add', 'repos/cli.yaml', 'CODEOWNERS') in commands
        assert ('push', '-u', 'origin', 'add-repo/cli', '--force') in commands
        assert commands[-1] == ('checkout', 'main')

        kwargs = client.create_pull_request.call_args.kwargs
        assert kwargs['title'] == "chore: add coverage tracking for cli"
        assert kwargs['head'] == "add-repo/cli"
        assert "`org/cli`" in kwargs['body']
        client.request_reviewers.assert_called_once_with("org", "dash", 42, ["alice"], ["team"])

    @patch('coverage_discovery.pr_creator.run_git')
    def test_stale_branch_deleted(self, mock_git):
        mock_git.return_value = ""
        creator, _ = self.make_creator()

        creator.create_pull_request(RepositoryConfig(name="org/cli", owners=["@a"]))

        commands = [call.args[1:] for call in mock_git.call_args_list]
        assert ('branch', '-D', 'add-repo/cli') in commands

    @patch('coverage_discovery.pr_creator.run_git')
    def test_fetch_failure_without_local_base_raises(self, mock_git):
        def git(work_dir, *args):
            if args[0] in ('rev-parse', 'fetch'):
                raise GitCommandError(f"git {args[0]} failed")
            return ""

        mock_git.side_effect = git
        creator, client = self.make_creator()

        with pytest.raises(GitCommandError, match="does not exist locally"):
            creator.create_pull_request(RepositoryConfig(name="org/cli", owners=["@a"]))

        client.create_pull_request.assert_not_called()

    @patch('coverage_discovery.pr_creator.run_git')
    def test_reviewer_failure_is_warning(self, mock_git, capsys):
        mock_git.return_value = ""
        creator, client = self.make_creator()
        client.request_reviewers.side_effect = GitHubError(422, "not a collaborator")

        url = creator.create_pull_request(RepositoryConfig(name="org/cli", owners=["@a"]))

        assert url.endswith("/pull/42")
        assert "Failed to add reviewers" in capsys.readouterr().out
