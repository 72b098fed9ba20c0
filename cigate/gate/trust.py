"""Decide whether a PR author may trigger CI without a human approving."""

import logging
from typing import AbstractSet

from cigate.adapters.base import GitPlatformAdapter
from cigate.errors import UpstreamError

LOG = logging.getLogger("cigate.gate.trust")


def is_trusted(
    adapter: GitPlatformAdapter,
    repo: str,
    username: str,
    allow_list: AbstractSet[str],
) -> bool:
    """True if the user has write access to the repo or is allow-listed.

    Write access is queried live. A failed lookup never grants trust and
    never raises: it is logged and only the allow-list decides.
    """
    try:
        if adapter.has_write_access(repo, username):
            return True
    except UpstreamError as e:
        LOG.warning("Collaborator lookup for %s on %s failed: %s", username, repo, e)
    return username in allow_list
