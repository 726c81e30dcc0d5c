"""
Domain models for the deployment notifier.

These dataclasses are the internal representation of everything the run
sends to or reads from Jira. ``Deployment.to_payload()`` produces the
camelCase JSON accepted by Jira's deployment ingestion API.

Example:
    Building the event for a run::

        deployment = Deployment(
            issue_keys=["ABC-1", "ABC-7"],
            sequence_number=4242,
            display_name="Production deploy",
            url="https://github.com/acme/shop/actions/runs/4242",
            description="Release of the web shop",
            last_updated=datetime.now(UTC),
            label="v1.4.0",
            pipeline=Pipeline(id="acme/shop Deploy", display_name="Workflow: Deploy (#17)", url=run_url),
            environment=Environment(id="prod", display_name="Production", type="production"),
        )
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

SCHEMA_VERSION = "1.0"

# Jira expects a UTC timestamp with a literal Z suffix and no fraction.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class DeploymentState(str, Enum):
    """States Jira accepts for a deployment. The notifier only sends SUCCESSFUL."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    CANCELLED = "cancelled"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"
    SUCCESSFUL = "successful"
    UNKNOWN = "unknown"


class RunState(str, Enum):
    """Terminal states of a notifier run."""

    DONE = "done"
    """Jira was informed and the tag was moved."""

    ABORTED = "aborted"
    """No issue keys were found; nothing was reported."""

    FAILED = "failed"
    """A guarded stage failed; later stages did not run."""


@dataclass(frozen=True)
class Pipeline:
    """The CI pipeline that performed the deployment."""

    id: str
    display_name: str
    url: str

    def to_payload(self) -> dict[str, str]:
        return {"id": self.id, "displayName": self.display_name, "url": self.url}


@dataclass(frozen=True)
class Environment:
    """The environment deployed to."""

    id: str
    display_name: str
    type: str

    def to_payload(self) -> dict[str, str]:
        return {"id": self.id, "displayName": self.display_name, "type": self.type}


@dataclass
class Deployment:
    """A deployment event as reported to Jira.

    ``sequence_number`` is used for both the deployment and the update
    sequence numbers; the CI run id grows with every run, which keeps it
    monotonic.
    """

    issue_keys: list[str]
    sequence_number: int
    display_name: str
    url: str
    description: str
    last_updated: datetime
    label: str
    pipeline: Pipeline
    environment: Environment
    state: DeploymentState = DeploymentState.SUCCESSFUL
    schema_version: str = SCHEMA_VERSION

    def to_payload(self) -> dict[str, Any]:
        """Serialise to Jira's deployment JSON shape."""
        return {
            "schemaVersion": self.schema_version,
            "deploymentSequenceNumber": self.sequence_number,
            "updateSequenceNumber": self.sequence_number,
            "issueKeys": list(self.issue_keys),
            "displayName": self.display_name,
            "url": self.url,
            "description": self.description,
            "lastUpdated": self.last_updated.strftime(TIMESTAMP_FORMAT),
            "label": self.label,
            "state": self.state.value,
            "pipeline": self.pipeline.to_payload(),
            "environment": self.environment.to_payload(),
        }


@dataclass(frozen=True)
class RejectedDeployment:
    """A deployment Jira refused, with its error messages."""

    errors: list[str]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "RejectedDeployment":
        return cls(errors=[error.get("message", "") for error in data.get("errors") or []])


@dataclass
class RunResult:
    """Outcome of one notifier run.

    Attributes:
        state: Terminal state reached
        issue_keys: Keys extracted from the commit range (empty if not reached)
        error: Reported failure or warning message, if any
    """

    state: RunState
    issue_keys: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Whether the process should exit with status 0."""
        return self.state != RunState.FAILED
