"""
Deployment run orchestrator.

A run walks a fixed sequence of stages, each fed by the previous one:

    fetch_commits -> extract_keys -> notify_jira -> create_tag

``fetch_commits``, ``notify_jira`` and ``create_tag`` each sit behind a
failure boundary. An error there is wrapped in the stage's error type,
reported through ``report_failure`` and ends the run; later stages never
execute and earlier side effects are not undone (a deployment recorded in
Jira stays recorded if tagging then fails). An empty key set ends the run
early with a warning.

Example:
    >>> async with JiraDeploymentsClient(...) as jira:
    ...     orchestrator = DeploymentOrchestrator(settings, github, jira)
    ...     result = await orchestrator.run()
    >>> result.state
    <RunState.DONE: 'done'>
"""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from deploy_notifier.config.settings import NotifierSettings
from deploy_notifier.engine.extractor import extract_issue_keys
from deploy_notifier.exceptions import (
    CommitRetrievalError,
    NotificationError,
    StageError,
    TaggingError,
)
from deploy_notifier.models.domain import Deployment, Environment, Pipeline, RunResult, RunState
from deploy_notifier.providers.github_rest import GitHubRestProvider
from deploy_notifier.providers.jira_rest import JiraDeploymentsClient
from deploy_notifier.utils import actions

log = structlog.get_logger(__name__)

TAG_MESSAGE = "Deployment to production"
NO_KEYS_MESSAGE = "There are no issue keys found. Aborting..."


class DeploymentOrchestrator:
    """Run the notify-then-tag pipeline once.

    Attributes:
        settings: Inputs, CI context and repository identity of the run.
        github: Source-control provider for the triggering repository.
        jira: Client for the Jira deployments API.
        report_failure: Called with the message of a failed stage.
        report_warning: Called with the message of an aborted run.
    """

    def __init__(
        self,
        settings: NotifierSettings,
        github: GitHubRestProvider,
        jira: JiraDeploymentsClient,
        report_failure: actions.Reporter = actions.set_failed,
        report_warning: actions.Reporter = actions.warning,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self.github = github
        self.jira = jira
        self.report_failure = report_failure
        self.report_warning = report_warning
        self.clock = clock or (lambda: datetime.now(UTC))

    async def run(self) -> RunResult:
        """Execute the pipeline and return its terminal state."""
        log.info(
            "run_started",
            repository=self.settings.repository.full_name,
            tag=self.settings.inputs.tag_name,
            branch=self.settings.inputs.branch,
        )

        try:
            messages = await self.fetch_commits()
        except StageError as e:
            return self._fail(e)

        keys = extract_issue_keys(messages)
        log.info("issue_keys_extracted", count=len(keys), issue_keys=keys)

        if not keys:
            self.report_warning(NO_KEYS_MESSAGE)
            return RunResult(state=RunState.ABORTED, error=NO_KEYS_MESSAGE)

        try:
            await self.notify_jira(keys)
            await self.create_tag()
        except StageError as e:
            return self._fail(e, keys)

        log.info("run_completed", issue_keys=keys)
        return RunResult(state=RunState.DONE, issue_keys=keys)

    async def fetch_commits(self) -> list[str]:
        """Commit messages between the release tag and the branch head."""
        try:
            return await self.github.get_commit_messages(
                base=self.settings.inputs.tag_name,
                head=self.settings.inputs.branch,
            )
        except Exception as e:
            raise CommitRetrievalError.from_cause(e) from e

    async def notify_jira(self, issue_keys: list[str]) -> None:
        """Report a successful deployment of ``issue_keys`` to Jira."""
        deployment = self.build_deployment(issue_keys)

        try:
            token = await self.jira.get_access_token()
            cloud_id = await self.jira.get_cloud_id()
            await self.jira.submit_deployment(cloud_id, token, deployment)
        except Exception as e:
            raise NotificationError.from_cause(e) from e

    async def create_tag(self) -> str:
        """Point the release tag at the head of the branch."""
        owner, repo = self.settings.head_owner_repo
        if (owner, repo) != (self.settings.repository.owner, self.settings.repository.name):
            log.warning(
                "head_repository_differs",
                head_repository=f"{owner}/{repo}",
                repository=self.settings.repository.full_name,
            )

        try:
            sha = await self.github.get_head_sha(self.settings.inputs.branch, owner=owner, repo=repo)
            return await self.github.create_tag(self.settings.inputs.tag_name, TAG_MESSAGE, sha)
        except Exception as e:
            raise TaggingError.from_cause(e) from e

    def build_deployment(self, issue_keys: list[str]) -> Deployment:
        """Assemble the deployment event for this run."""
        inputs = self.settings.inputs
        ci = self.settings.ci
        run_url = self.settings.run_url

        return Deployment(
            issue_keys=issue_keys,
            sequence_number=ci.github_run_id,
            display_name=inputs.display_name,
            url=run_url,
            description=inputs.description,
            last_updated=self.clock(),
            label=inputs.label,
            pipeline=Pipeline(
                id=f"{self.settings.repository.full_name} {ci.github_workflow}",
                display_name=f"Workflow: {ci.github_workflow} (#{ci.github_run_number})",
                url=run_url,
            ),
            environment=Environment(
                id=inputs.environment_id,
                display_name=inputs.environment_display_name,
                type=inputs.environment_type,
            ),
        )

    def _fail(self, error: StageError, issue_keys: list[str] | None = None) -> RunResult:
        log.error("stage_failed", stage=error.stage, error=error.message)
        self.report_failure(error.message)
        return RunResult(state=RunState.FAILED, issue_keys=issue_keys or [], error=error.message)
