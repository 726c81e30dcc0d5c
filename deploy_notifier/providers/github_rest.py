"""Source-control collaborator for the notifier, using PyGithub."""

import asyncio
from collections.abc import Callable
from typing import TypeVar

import structlog
from github import Github, GithubException  # type: ignore[import-not-found]
from github.GitTag import GitTag  # type: ignore[import-not-found]
from github.Repository import Repository as GHRepository  # type: ignore[import-not-found]

log = structlog.get_logger(__name__)

T = TypeVar("T")


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous PyGithub call in a worker thread."""
    return await asyncio.to_thread(func)


class GitHubRestProvider:
    """Reads the commit range and advances the release tag on GitHub."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
    ):
        """Initialize GitHub provider.

        Args:
            token: Token of the workflow run (GITHUB_TOKEN) or a PAT
            owner: Owner of the triggering repository
            repo: Name of the triggering repository
            base_url: GitHub API base URL (for GitHub Enterprise)
        """
        self.token = token.strip() if token else token
        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self._client: Github | None = None
        self._repo: GHRepository | None = None

    async def connect(self) -> None:
        """Initialize GitHub client and load the triggering repository."""

        def _connect() -> tuple[Github, GHRepository]:
            client = Github(self.token, base_url=self.base_url)
            repo = client.get_repo(f"{self.owner}/{self.repo}")
            return client, repo

        self._client, self._repo = await _run_sync(_connect)
        log.info("github_connected", base_url=self.base_url, owner=self.owner, repo=self.repo)

    async def disconnect(self) -> None:
        """Close GitHub client."""
        if self._client:
            await _run_sync(self._client.close)
            self._client = None
            self._repo = None

    async def get_commit_messages(self, base: str, head: str) -> list[str]:
        """Messages of the commits reachable from ``head`` but not from ``base``.

        Raises:
            GithubException: If either ref does not exist or the call fails
        """
        log.info("get_commit_messages", base=base, head=head)

        try:

            def _compare() -> list[str]:
                comparison = self._repo.compare(base, head)
                return [commit.commit.message for commit in comparison.commits]

            messages = await _run_sync(_compare)

        except GithubException as e:
            log.error("github_compare_failed", base=base, head=head, error=str(e))
            raise

        log.info("commit_messages_fetched", base=base, head=head, count=len(messages))
        return messages

    async def get_head_sha(self, ref: str, owner: str | None = None, repo: str | None = None) -> str:
        """Resolve the SHA of ``ref``.

        Args:
            ref: Branch, tag or SHA to resolve
            owner: Repository owner; defaults to the triggering repository
            repo: Repository name; defaults to the triggering repository
        """
        owner = owner or self.owner
        repo = repo or self.repo
        log.info("get_head_sha", ref=ref, owner=owner, repo=repo)

        try:

            def _get_sha() -> str:
                if (owner, repo) == (self.owner, self.repo):
                    target = self._repo
                else:
                    target = self._client.get_repo(f"{owner}/{repo}")
                return target.get_commit(ref).sha

            return await _run_sync(_get_sha)

        except GithubException as e:
            log.error("github_get_commit_failed", ref=ref, owner=owner, repo=repo, error=str(e))
            raise

    async def create_tag(self, tag: str, message: str, sha: str) -> str:
        """Create an annotated tag for ``sha`` and point ``refs/tags/<tag>`` at it.

        An existing ref of the same name is moved.

        Returns:
            SHA of the new tag object
        """
        log.info("create_tag", tag=tag, sha=sha)

        try:

            def _create_tag() -> GitTag:
                tag_object = self._repo.create_git_tag(tag=tag, message=message, object=sha, type="commit")
                try:
                    ref = self._repo.get_git_ref(f"tags/{tag}")
                except GithubException as e:
                    if e.status != 404:
                        raise
                    self._repo.create_git_ref(ref=f"refs/tags/{tag}", sha=tag_object.sha)
                else:
                    ref.edit(sha=tag_object.sha, force=True)
                return tag_object

            tag_object = await _run_sync(_create_tag)

        except GithubException as e:
            log.error("github_create_tag_failed", tag=tag, sha=sha, error=str(e))
            raise

        log.info("tag_created", tag=tag, sha=sha, tag_sha=tag_object.sha)
        return tag_object.sha
