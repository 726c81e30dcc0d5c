"""Extraction of Jira issue keys from commit messages."""

import re
from collections.abc import Iterable

ISSUE_KEY_PATTERN = re.compile(r"[A-Z]+-\d+")


def extract_issue_keys(messages: Iterable[str]) -> list[str]:
    """Return the distinct issue keys mentioned in ``messages``.

    Only the first (leftmost) key of each message is taken; a commit that
    mentions several issues is attributed to the first one. The result has
    no duplicates and no particular order.

    Example:
        >>> extract_issue_keys(["fix: ABC-1 broken", "chore: release"])
        ['ABC-1']
    """
    keys: set[str] = set()

    for message in messages:
        match = ISSUE_KEY_PATTERN.search(message)
        if match:
            keys.add(match.group(0))

    return list(keys)
