"""Domain models for the deployment notifier."""

from deploy_notifier.models.domain import (
    Deployment,
    DeploymentState,
    Environment,
    Pipeline,
    RejectedDeployment,
    RunResult,
    RunState,
)

__all__ = [
    "Deployment",
    "DeploymentState",
    "Environment",
    "Pipeline",
    "RejectedDeployment",
    "RunResult",
    "RunState",
]
