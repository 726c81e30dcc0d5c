"""Unit tests for the deploy_notifier.main CLI module.

Covers:
- run / keys commands and their exit codes
- configuration errors
- provider wiring in the async helpers
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from deploy_notifier.exceptions import CommitRetrievalError, DeployNotifierError
from deploy_notifier.main import SUCCESS_MESSAGE, _preview_keys, _run, cli
from deploy_notifier.models.domain import RunResult, RunState

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep structlog pointed at pytest's streams, not the runner's."""
    with patch("deploy_notifier.main.configure_logging"):
        yield


# =============================================================================
# run command
# =============================================================================


class TestRunCommand:
    """Tests for the run command."""

    def test_success_prints_keys(self, cli_runner, action_env):
        result_value = RunResult(state=RunState.DONE, issue_keys=["ABC-1", "ABC-2"])

        with patch("deploy_notifier.main._run", new=AsyncMock(return_value=result_value)):
            result = cli_runner.invoke(cli, ["run"])

        assert result.exit_code == 0
        assert SUCCESS_MESSAGE in result.output
        assert "ABC-1\nABC-2" in result.output

    def test_aborted_exits_zero(self, cli_runner, action_env):
        result_value = RunResult(state=RunState.ABORTED, error="There are no issue keys found. Aborting...")

        with patch("deploy_notifier.main._run", new=AsyncMock(return_value=result_value)):
            result = cli_runner.invoke(cli, ["run"])

        assert result.exit_code == 0
        assert SUCCESS_MESSAGE not in result.output

    def test_failed_exits_nonzero(self, cli_runner, action_env):
        result_value = RunResult(state=RunState.FAILED, error="An error occurred while tagging latest commit: x")

        with patch("deploy_notifier.main._run", new=AsyncMock(return_value=result_value)):
            result = cli_runner.invoke(cli, ["run"])

        assert result.exit_code == 1
        assert SUCCESS_MESSAGE not in result.output

    def test_notifier_error(self, cli_runner, action_env):
        with patch("deploy_notifier.main._run", new=AsyncMock(side_effect=DeployNotifierError("broken"))):
            result = cli_runner.invoke(cli, ["run"])

        assert result.exit_code == 1
        assert "Error: broken" in result.output

    def test_unexpected_error(self, cli_runner, action_env):
        with patch("deploy_notifier.main._run", new=AsyncMock(side_effect=RuntimeError("surprise"))):
            result = cli_runner.invoke(cli, ["run"])

        assert result.exit_code == 1
        assert "Unexpected error: surprise" in result.output

    def test_missing_configuration(self, cli_runner):
        result = cli_runner.invoke(cli, ["run"])

        assert result.exit_code == 1
        assert "Error: Missing or invalid configuration" in result.output

    def test_missing_config_file(self, cli_runner, action_env, tmp_path):
        result = cli_runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "run"])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_config_file_used(self, cli_runner, action_env, tmp_path):
        config = tmp_path / "notifier.yaml"
        config.write_text("tag_name: staging\n")
        run_mock = AsyncMock(return_value=RunResult(state=RunState.ABORTED))

        with patch("deploy_notifier.main._run", new=run_mock):
            result = cli_runner.invoke(cli, ["--config", str(config), "run"])

        assert result.exit_code == 0
        settings = run_mock.await_args.args[0]
        assert settings.inputs.tag_name == "staging"

    def test_help(self, cli_runner):
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "run" in result.output
        assert "keys" in result.output


# =============================================================================
# keys command
# =============================================================================


class TestKeysCommand:
    """Tests for the keys preview command."""

    def test_prints_sorted_keys(self, cli_runner, action_env):
        with patch("deploy_notifier.main._preview_keys", new=AsyncMock(return_value=["XYZ-2", "ABC-1"])):
            result = cli_runner.invoke(cli, ["keys"])

        assert result.exit_code == 0
        assert "ABC-1\nXYZ-2" in result.output

    def test_no_keys_warns(self, cli_runner, action_env):
        with patch("deploy_notifier.main._preview_keys", new=AsyncMock(return_value=[])):
            result = cli_runner.invoke(cli, ["keys"])

        assert result.exit_code == 0
        assert "::warning::There are no issue keys found. Aborting..." in result.output

    def test_retrieval_error(self, cli_runner, action_env):
        error = CommitRetrievalError.from_cause(RuntimeError("404 Not Found"))

        with patch("deploy_notifier.main._preview_keys", new=AsyncMock(side_effect=error)):
            result = cli_runner.invoke(cli, ["keys"])

        assert result.exit_code == 1
        assert "An error occurred while retrieving commit messages: 404 Not Found" in result.output


# =============================================================================
# Async helpers
# =============================================================================


class TestRunHelper:
    """Tests for _run provider wiring."""

    @pytest.mark.asyncio
    async def test_wires_providers(self, settings):
        github = AsyncMock()
        jira = AsyncMock()
        jira.__aenter__.return_value = jira
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(return_value=RunResult(state=RunState.DONE, issue_keys=["ABC-1"]))

        with (
            patch("deploy_notifier.main.GitHubRestProvider", return_value=github) as github_class,
            patch("deploy_notifier.main.JiraDeploymentsClient", return_value=jira) as jira_class,
            patch("deploy_notifier.main.DeploymentOrchestrator", return_value=orchestrator) as orchestrator_class,
        ):
            result = await _run(settings)

        assert result.state == RunState.DONE
        github_class.assert_called_once_with(
            token="ghs_test_token",
            owner="acme",
            repo="shop",
            base_url="https://api.github.com",
        )
        jira_class.assert_called_once_with(
            cloud_instance_base_url="https://acme.atlassian.net",
            client_id="client-id",
            client_secret="client-secret",
        )
        orchestrator_class.assert_called_once_with(settings, github, jira)
        github.connect.assert_awaited_once()
        github.disconnect.assert_awaited_once()
        jira.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure_is_retrieval_failure(self, settings, capsys):
        github = AsyncMock()
        github.connect.side_effect = RuntimeError("401 Bad credentials")

        with (
            patch("deploy_notifier.main.GitHubRestProvider", return_value=github),
            patch("deploy_notifier.main.JiraDeploymentsClient") as jira_class,
        ):
            result = await _run(settings)

        assert result.state == RunState.FAILED
        assert result.error == "An error occurred while retrieving commit messages: 401 Bad credentials"
        assert "::error::An error occurred while retrieving commit messages" in capsys.readouterr().out
        jira_class.assert_not_called()

    @pytest.mark.asyncio
    async def test_disconnects_when_run_raises(self, settings):
        github = AsyncMock()
        jira = AsyncMock()
        jira.__aenter__.return_value = jira
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(side_effect=RuntimeError("boom"))

        with (
            patch("deploy_notifier.main.GitHubRestProvider", return_value=github),
            patch("deploy_notifier.main.JiraDeploymentsClient", return_value=jira),
            patch("deploy_notifier.main.DeploymentOrchestrator", return_value=orchestrator),
        ):
            with pytest.raises(RuntimeError):
                await _run(settings)

        github.disconnect.assert_awaited_once()


class TestPreviewKeysHelper:
    """Tests for _preview_keys."""

    @pytest.mark.asyncio
    async def test_extracts_keys(self, settings):
        github = AsyncMock()
        github.get_commit_messages.return_value = ["ABC-1 fix", "nothing", "ABC-1 again"]

        with patch("deploy_notifier.main.GitHubRestProvider", return_value=github):
            keys = await _preview_keys(settings)

        assert keys == ["ABC-1"]
        github.get_commit_messages.assert_awaited_once_with(base="production", head="master")
        github.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_wraps_errors(self, settings):
        github = AsyncMock()
        github.get_commit_messages.side_effect = RuntimeError("Not Found")

        with patch("deploy_notifier.main.GitHubRestProvider", return_value=github):
            with pytest.raises(CommitRetrievalError, match="Not Found"):
                await _preview_keys(settings)

        github.disconnect.assert_awaited_once()
