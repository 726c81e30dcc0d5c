"""Jira Cloud client for the deployments API.

Covers the three calls a run makes: the OAuth client-credentials exchange,
the tenant lookup of the Jira instance, and the bulk deployment submission.
Non-2xx responses raise ``httpx.HTTPStatusError``; nothing is retried.
"""

from typing import Any

import httpx
import structlog

from deploy_notifier.exceptions import DeploymentRejectedError, ExternalServiceError
from deploy_notifier.models.domain import Deployment, RejectedDeployment

log = structlog.get_logger(__name__)

ATLASSIAN_API_URL = "https://api.atlassian.com"
TOKEN_AUDIENCE = "api.atlassian.com"


class JiraDeploymentsClient:
    """Reports deployments to a Jira Cloud site."""

    def __init__(
        self,
        cloud_instance_base_url: str,
        client_id: str,
        client_secret: str,
        api_url: str = ATLASSIAN_API_URL,
        timeout: float = 30.0,
    ):
        """Initialize Jira client.

        Args:
            cloud_instance_base_url: Site URL, e.g. https://acme.atlassian.net
            client_id: OAuth client id of the deployments integration
            client_secret: OAuth client secret
            api_url: Atlassian API gateway
            timeout: Request timeout in seconds
        """
        self.cloud_instance_base_url = cloud_instance_base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout, headers={"Accept": "application/json"})

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "JiraDeploymentsClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_access_token(self) -> str:
        """Exchange the client credentials for a bearer token."""
        log.info("jira_token_requested", client_id=self.client_id)

        response = await self.client.post(
            f"{self.api_url}/oauth/token",
            json={
                "audience": TOKEN_AUDIENCE,
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
        )
        response.raise_for_status()

        token = response.json().get("access_token")
        if not token:
            raise ExternalServiceError(
                "Jira token response has no access_token",
                status_code=response.status_code,
            )
        return token

    async def get_cloud_id(self) -> str:
        """Look up the tenant id of the configured Jira site."""
        response = await self.client.get(f"{self.cloud_instance_base_url}/_edge/tenant_info")
        response.raise_for_status()

        cloud_id = response.json().get("cloudId")
        if not cloud_id:
            raise ExternalServiceError(
                f"Tenant info of {self.cloud_instance_base_url} has no cloudId",
                status_code=response.status_code,
            )

        log.info("jira_cloud_id_resolved", site=self.cloud_instance_base_url, cloud_id=cloud_id)
        return cloud_id

    async def submit_deployment(self, cloud_id: str, token: str, deployment: Deployment) -> None:
        """Send a deployment to the bulk ingestion endpoint.

        Raises:
            httpx.HTTPStatusError: If the request is not accepted
            DeploymentRejectedError: If Jira rejects the deployment
        """
        response = await self.client.post(
            f"{self.api_url}/jira/deployments/0.1/cloud/{cloud_id}/bulk",
            json={"deployments": [deployment.to_payload()]},
            headers={"Authorization": f"Bearer {token}"},
        )
        response.raise_for_status()

        rejected = [RejectedDeployment.from_payload(item) for item in response.json().get("rejectedDeployments") or []]
        if rejected:
            log.error("jira_deployment_rejected", cloud_id=cloud_id, errors=rejected[0].errors)
            raise DeploymentRejectedError(rejected[0].errors)

        log.info(
            "jira_deployment_submitted",
            cloud_id=cloud_id,
            sequence_number=deployment.sequence_number,
            issue_keys=deployment.issue_keys,
        )
