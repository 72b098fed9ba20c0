"""Idempotent label and commit status operations.

Labels are read fresh on every call. Removing a label that is already
gone (e.g. a human removed it between check and act) is a no-op.
"""

import logging

from cigate.adapters.base import GitPlatformAdapter
from cigate.errors import GitPlatformError
from cigate.models import CommitStatus
from cigate.models.status import StatusState

LOG = logging.getLogger("cigate.gate.labels")


def has_label(adapter: GitPlatformAdapter, repo: str, pr_number: int, name: str) -> bool:
    """True if the PR currently carries the label (case-insensitive)."""
    wanted = name.strip().lower()
    return any(label.strip().lower() == wanted for label in adapter.get_issue_labels(repo, pr_number))


def remove_label(adapter: GitPlatformAdapter, repo: str, pr_number: int, name: str) -> bool:
    """Remove a label from the PR.

    Returns:
        True if the label was removed, False if it was not present.

    Raises:
        GitPlatformError: any failure other than "label not present".
    """
    LOG.info("Removing label %s from %s#%s", name, repo, pr_number)
    try:
        adapter.remove_issue_label(repo, pr_number, name)
    except GitPlatformError as e:
        if e.is_not_found:
            LOG.debug("Label %s not present on %s#%s", name, repo, pr_number)
            return False
        raise
    return True


def set_status(
    adapter: GitPlatformAdapter,
    repo: str,
    sha: str,
    context: str,
    state: StatusState,
    description: str,
    target_url: str | None = None,
) -> None:
    """Post a commit status, superseding any earlier one for (sha, context)."""
    LOG.info("Status %s/%s on %s@%s: %s", context, state, repo, sha[:8], description)
    adapter.create_status(
        repo,
        sha,
        CommitStatus(context=context, state=state, description=description, target_url=target_url),
    )
