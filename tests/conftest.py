"""Pytest configuration and shared fixtures."""

import json
import os
from pathlib import Path

import pytest

from deploy_notifier.config.settings import ActionInputs, CIContext, NotifierSettings, RepositoryInfo


@pytest.fixture(autouse=True)
def clean_ci_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the runner's own GITHUB_* and INPUT_* variables out of tests."""
    for name in list(os.environ):
        if name.upper().startswith(("GITHUB_", "INPUT_")):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def repository() -> RepositoryInfo:
    """Triggering repository."""
    return RepositoryInfo(
        owner="acme",
        name="shop",
        full_name="acme/shop",
        html_url="https://github.com/acme/shop",
    )


@pytest.fixture
def action_inputs() -> ActionInputs:
    """Fully populated action inputs."""
    return ActionInputs(
        tag_name="production",
        branch="master",
        cloud_instance_base_url="https://acme.atlassian.net",
        client_id="client-id",
        client_secret="client-secret",
        display_name="Shop production deploy",
        description="Deploys the web shop",
        label="release",
        environment_id="prod-eu",
        environment_display_name="Production EU",
        environment_type="production",
    )


@pytest.fixture
def ci_context() -> CIContext:
    """CI context of a workflow run."""
    return CIContext(
        github_token="ghs_test_token",
        github_run_id=4242,
        github_run_number="17",
        github_workflow="Deploy",
        github_event_path=None,
        github_repository="acme/shop",
        github_server_url="https://github.com",
        github_api_url="https://api.github.com",
    )


@pytest.fixture
def settings(action_inputs: ActionInputs, ci_context: CIContext, repository: RepositoryInfo) -> NotifierSettings:
    """Settings for a run of acme/shop."""
    return NotifierSettings(inputs=action_inputs, ci=ci_context, repository=repository)


@pytest.fixture
def event_payload_file(tmp_path: Path) -> Path:
    """A push event payload as written by the runner."""
    path = tmp_path / "event.json"
    path.write_text(
        json.dumps(
            {
                "ref": "refs/heads/master",
                "repository": {
                    "name": "shop",
                    "full_name": "acme/shop",
                    "html_url": "https://github.com/acme/shop",
                    "url": "https://api.github.com/repos/acme/shop",
                    "owner": {"login": "acme"},
                },
            }
        )
    )
    return path


@pytest.fixture
def action_env(monkeypatch: pytest.MonkeyPatch, event_payload_file: Path) -> None:
    """Environment of a runner executing the action."""
    env = {
        "GITHUB_TOKEN": "ghs_env_token",
        "GITHUB_RUN_ID": "987654",
        "GITHUB_RUN_NUMBER": "31",
        "GITHUB_WORKFLOW": "Release",
        "GITHUB_EVENT_PATH": str(event_payload_file),
        "INPUT_TAG-NAME": "production",
        "INPUT_CLOUD-INSTANCE-BASE-URL": "https://acme.atlassian.net/",
        "INPUT_CLIENT-ID": "env-client",
        "INPUT_CLIENT-SECRET": "env-secret",
        "INPUT_ENVIRONMENT-TYPE": "production",
    }
    for name, value in env.items():
        monkeypatch.setenv(name, value)
