"""Report production deployments to Jira and advance the release tag."""

__version__ = "0.1.0"
