"""Custom exception hierarchy for the deployment notifier.

Exception Hierarchy:
    DeployNotifierError (base)
    ├── ConfigurationError
    ├── ExternalServiceError
    │   └── DeploymentRejectedError
    └── StageError
        ├── CommitRetrievalError
        ├── NotificationError
        └── TaggingError

Stage errors are raised by the orchestrator at each failure boundary. Their
message is a fixed, human-readable prefix naming the stage followed by the
stringified underlying error.

Example Usage:
    >>> from deploy_notifier.exceptions import CommitRetrievalError
    >>> try:
    ...     messages = await github.get_commit_messages("production", "master")
    ... except Exception as e:
    ...     raise CommitRetrievalError.from_cause(e) from e
"""


class DeployNotifierError(Exception):
    """Base exception for all deploy-notifier errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(DeployNotifierError):
    """Configuration-related errors.

    Examples:
        - Required action input missing (e.g. tag-name)
        - CI run id is not an integer
        - Event payload unreadable or without a repository
        - Invalid YAML configuration file
    """

    pass


class ExternalServiceError(DeployNotifierError):
    """External service communication errors.

    Raised when Jira returns a non-2xx response or an unusable body.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            response_text: Response body text (if applicable)
        """
        self.message = message
        self.status_code = status_code
        self.response_text = response_text

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        Exception.__init__(self, full_message)


class DeploymentRejectedError(ExternalServiceError):
    """Jira accepted the request but rejected the deployment.

    The message is the comma-joined error messages of the first rejected
    deployment, exactly as Jira reported them.

    Attributes:
        errors: Individual rejection reasons
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(",".join(errors))


class StageError(DeployNotifierError):
    """A pipeline stage failed.

    Subclasses set ``stage`` and ``prefix``. All stage errors are terminal
    for the run: later stages never execute and nothing is rolled back.

    Attributes:
        stage: Machine-friendly stage name
        prefix: Human-readable label prepended to the cause
    """

    stage = "unknown"
    prefix = "An error occurred: "

    @classmethod
    def from_cause(cls, cause: BaseException) -> "StageError":
        """Build the stage error for an underlying exception."""
        return cls(f"{cls.prefix}{cause}")


class CommitRetrievalError(StageError):
    """Fetching commit messages between the release tag and the branch failed."""

    stage = "fetch_commits"
    prefix = "An error occurred while retrieving commit messages: "


class NotificationError(StageError):
    """Reporting the deployment to Jira failed.

    Covers token exchange, tenant lookup, submission and rejection.
    """

    stage = "notify_jira"
    prefix = "An error occurred while sending deployment info to Jira: "


class TaggingError(StageError):
    """Creating or moving the release tag failed."""

    stage = "create_tag"
    prefix = "An error occurred while tagging latest commit: "
