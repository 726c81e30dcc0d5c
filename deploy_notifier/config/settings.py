"""
Configuration system using Pydantic for type-safe settings management.

Two sources feed a run:

- ``ActionInputs``: the action's declared inputs. GitHub Actions exposes an
  input ``tag-name`` as the environment variable ``INPUT_TAG-NAME``; the same
  values can instead come from a YAML file (snake_case keys).
- ``CIContext``: ambient values the runner sets for every job
  (``GITHUB_TOKEN``, ``GITHUB_RUN_ID``, ``GITHUB_EVENT_PATH``, ...).

``NotifierSettings`` bundles both with the triggering repository's identity
and is passed explicitly to every stage.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from deploy_notifier.exceptions import ConfigurationError

REPOSITORY_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


class ActionInputs(BaseSettings):
    """Inputs of the deployment notifier action."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        populate_by_name=True,
    )

    tag_name: str = Field(..., min_length=1, validation_alias="INPUT_TAG-NAME", description="Release tag")
    branch: str = Field(default="master", min_length=1, validation_alias="INPUT_BRANCH", description="Head ref")
    head_repository: str | None = Field(
        default=None,
        validation_alias="INPUT_HEAD-REPOSITORY",
        description="owner/name of the repository whose branch HEAD gets tagged",
    )

    cloud_instance_base_url: str = Field(..., validation_alias="INPUT_CLOUD-INSTANCE-BASE-URL")
    client_id: str = Field(..., validation_alias="INPUT_CLIENT-ID")
    client_secret: SecretStr = Field(..., validation_alias="INPUT_CLIENT-SECRET")

    display_name: str = Field(default="", validation_alias="INPUT_DISPLAY-NAME")
    description: str = Field(default="", validation_alias="INPUT_DESCRIPTION")
    label: str = Field(default="", validation_alias="INPUT_LABEL")
    environment_id: str = Field(default="", validation_alias="INPUT_ENVIRONMENT-ID")
    environment_display_name: str = Field(default="", validation_alias="INPUT_ENVIRONMENT-DISPLAY-NAME")
    environment_type: str = Field(default="", validation_alias="INPUT_ENVIRONMENT-TYPE")

    @field_validator("cloud_instance_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("head_repository")
    @classmethod
    def validate_head_repository(cls, value: str | None) -> str | None:
        # An empty action input means "not set".
        if not value:
            return None
        if not REPOSITORY_PATTERN.match(value):
            raise ValueError(f"head-repository must look like owner/name, got: {value}")
        return value


class RepositoryInfo(BaseModel):
    """Identity of the repository that triggered the run."""

    owner: str
    name: str
    full_name: str
    html_url: str

    @classmethod
    def from_event_payload(cls, payload: dict[str, Any]) -> RepositoryInfo:
        """Build from the ``repository`` object of a webhook event payload."""
        repository = payload.get("repository")
        if not isinstance(repository, dict):
            raise ConfigurationError("Event payload has no repository")

        owner = repository.get("owner") or {}
        try:
            return cls(
                owner=owner.get("login", ""),
                name=repository["name"],
                full_name=repository["full_name"],
                html_url=repository["html_url"],
            )
        except KeyError as e:
            raise ConfigurationError(f"Event payload repository is missing {e}") from e


class CIContext(BaseSettings):
    """Values provided by the GitHub Actions runner."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    github_token: SecretStr
    github_run_id: int
    github_run_number: str = ""
    github_workflow: str = ""
    github_event_path: Path | None = None
    github_repository: str = ""
    github_server_url: str = "https://github.com"
    github_api_url: str = "https://api.github.com"

    @field_validator("github_event_path", mode="before")
    @classmethod
    def empty_path_is_none(cls, value: Any) -> Any:
        return value or None

    def load_repository(self) -> RepositoryInfo:
        """Resolve the triggering repository.

        Prefers the event payload; falls back to ``GITHUB_REPOSITORY`` when
        the job has no payload file.
        """
        if self.github_event_path and self.github_event_path.exists():
            try:
                payload = json.loads(self.github_event_path.read_text())
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigurationError(f"Cannot read event payload: {self.github_event_path}") from e
            return RepositoryInfo.from_event_payload(payload)

        if not REPOSITORY_PATTERN.match(self.github_repository):
            raise ConfigurationError("No event payload and GITHUB_REPOSITORY is not set")

        owner, name = self.github_repository.split("/", 1)
        return RepositoryInfo(
            owner=owner,
            name=name,
            full_name=self.github_repository,
            html_url=f"{self.github_server_url.rstrip('/')}/{self.github_repository}",
        )


class NotifierSettings(BaseModel):
    """Everything a run needs, resolved once up front."""

    inputs: ActionInputs
    ci: CIContext
    repository: RepositoryInfo

    @property
    def run_url(self) -> str:
        """Link back to the CI run."""
        return f"{self.repository.html_url}/actions/runs/{self.ci.github_run_id}"

    @property
    def head_owner_repo(self) -> tuple[str, str]:
        """Repository whose branch HEAD is resolved for tagging."""
        if self.inputs.head_repository:
            owner, name = self.inputs.head_repository.split("/", 1)
            return owner, name
        return self.repository.owner, self.repository.name

    @classmethod
    def load(cls, config_path: str | None = None) -> NotifierSettings:
        """Load inputs, CI context and repository identity.

        Args:
            config_path: Optional YAML file with action inputs. Values found
                there take precedence over ``INPUT_*`` variables.

        Raises:
            ConfigurationError: If any value is missing or invalid
        """
        overrides = load_yaml_inputs(config_path) if config_path else {}

        try:
            inputs = ActionInputs(**overrides)
            ci = CIContext()  # type: ignore[call-arg]
        except ValidationError as e:
            raise ConfigurationError(f"Missing or invalid configuration: {e}") from e

        return cls(inputs=inputs, ci=ci, repository=ci.load_repository())


def load_yaml_inputs(config_path: str) -> dict[str, Any]:
    """Read action inputs from YAML with ``${VAR}`` interpolation."""
    config_file = Path(config_path)
    if not config_file.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        content = config_file.read_text()
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

    try:
        content = interpolate_env_vars(content)
    except ValueError as e:
        raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")
    return data


def interpolate_env_vars(content: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` with environment values.

    YAML comment lines are left untouched.

    Raises:
        ValueError: If a variable without default is not set
    """
    pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default_value = match.group(2)
        value = os.getenv(var_name)

        if value is not None:
            return value
        if default_value is not None:
            return default_value
        raise ValueError(f"Environment variable {var_name} is not set")

    def process_line(line: str) -> str:
        if line.lstrip().startswith("#"):
            return line
        return pattern.sub(replace_var, line)

    return "\n".join(process_line(line) for line in content.split("\n"))
