"""CLI entry point for the deployment notifier."""

import asyncio
import sys

import click

from deploy_notifier.config.settings import NotifierSettings
from deploy_notifier.engine.extractor import extract_issue_keys
from deploy_notifier.engine.orchestrator import NO_KEYS_MESSAGE, DeploymentOrchestrator
from deploy_notifier.exceptions import CommitRetrievalError, ConfigurationError, DeployNotifierError
from deploy_notifier.models.domain import RunResult, RunState
from deploy_notifier.providers.github_rest import GitHubRestProvider
from deploy_notifier.providers.jira_rest import JiraDeploymentsClient
from deploy_notifier.utils import actions
from deploy_notifier.utils.logging_config import configure_logging, get_logger

log = get_logger(__name__)

SUCCESS_MESSAGE = "Successfully informed Jira about production deployment for issue-keys: "


@click.group()
@click.option(
    "--config",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML file with action inputs (defaults to INPUT_* variables)",
)
@click.option("--log-level", default="INFO", help="Logging level")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str) -> None:
    """deploy-notifier: report production deployments to Jira."""
    configure_logging(log_level)
    ctx.obj = {"config": config}


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Report the deployment to Jira and move the release tag."""
    settings = _load_settings(ctx)

    try:
        result = asyncio.run(_run(settings))
    except DeployNotifierError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("run_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        log.error("run_unexpected", exc_info=True)
        sys.exit(1)

    if result.state == RunState.DONE:
        click.echo(SUCCESS_MESSAGE)
        click.echo("\n".join(result.issue_keys))

    if not result.succeeded:
        sys.exit(1)


@cli.command()
@click.pass_context
def keys(ctx: click.Context) -> None:
    """Print the issue keys that the next run would report."""
    settings = _load_settings(ctx)

    try:
        issue_keys = asyncio.run(_preview_keys(settings))
    except DeployNotifierError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("keys_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    if not issue_keys:
        actions.warning(NO_KEYS_MESSAGE)
        return

    click.echo("\n".join(sorted(issue_keys)))


def _load_settings(ctx: click.Context) -> NotifierSettings:
    try:
        return NotifierSettings.load(ctx.obj["config"])
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)


def _create_github(settings: NotifierSettings) -> GitHubRestProvider:
    return GitHubRestProvider(
        token=settings.ci.github_token.get_secret_value(),
        owner=settings.repository.owner,
        repo=settings.repository.name,
        base_url=settings.ci.github_api_url,
    )


def _create_jira(settings: NotifierSettings) -> JiraDeploymentsClient:
    return JiraDeploymentsClient(
        cloud_instance_base_url=settings.inputs.cloud_instance_base_url,
        client_id=settings.inputs.client_id,
        client_secret=settings.inputs.client_secret.get_secret_value(),
    )


async def _run(settings: NotifierSettings) -> RunResult:
    """Connect providers and run the pipeline once."""
    github = _create_github(settings)

    try:
        await github.connect()
    except Exception as e:
        error = CommitRetrievalError.from_cause(e)
        actions.set_failed(error.message)
        return RunResult(state=RunState.FAILED, error=error.message)

    try:
        async with _create_jira(settings) as jira:
            orchestrator = DeploymentOrchestrator(settings, github, jira)
            return await orchestrator.run()
    finally:
        await github.disconnect()


async def _preview_keys(settings: NotifierSettings) -> list[str]:
    """Fetch the commit range and extract keys without reporting anything."""
    github = _create_github(settings)

    try:
        await github.connect()
        messages = await github.get_commit_messages(base=settings.inputs.tag_name, head=settings.inputs.branch)
    except Exception as e:
        raise CommitRetrievalError.from_cause(e) from e
    finally:
        await github.disconnect()

    return extract_issue_keys(messages)


if __name__ == "__main__":
    cli()
