"""Point CI status links at the public log proxy.

Buildkite build pages need a login. The status target of any build in
the org is re-posted with a same-origin proxy URL. The proxy page shows
logs only for allow-listed pipelines. Repos whose pipelines are already
public are skipped.
"""

import logging
from typing import AbstractSet

from cigate.adapters.base import GitPlatformAdapter
from cigate.models import CommitStatus
from cigate.public_log.urls import DEFAULT_WEB_URL, parse_build_log_url, public_log_url

LOG = logging.getLogger("cigate.gate.public_log")


class PublicLogRewriter:
    """Rewrite Buildkite target URLs of commit statuses to the proxy."""

    def __init__(
        self,
        github: GitPlatformAdapter,
        org_slug: str,
        public_root: str,
        public_repos: AbstractSet[str] = frozenset(),
        web_url: str = DEFAULT_WEB_URL,
    ) -> None:
        self._github = github
        self._org = org_slug
        self._public_root = public_root
        self._public_repos = public_repos
        self._web_url = web_url

    def rewrite_if_applicable(self, repo: str, sha: str, status: CommitStatus) -> bool:
        """Re-post ``status`` with a proxy target URL when it points at Buildkite.

        Returns:
            True if a rewritten status was posted.
        """
        if repo in self._public_repos:
            LOG.debug("%s has a public pipeline, leaving %s as is", repo, status.target_url)
            return False
        ref = parse_build_log_url(status.target_url, self._org, self._web_url)
        if ref is None:
            LOG.info("Ignoring non-buildkite URL: %s", status.target_url)
            return False

        new_url = public_log_url(self._public_root, ref.url)
        LOG.info("Rewriting %s status on %s@%s to %s", status.context, repo, sha[:8], new_url)
        self._github.create_status(repo, sha, status.model_copy(update={"target_url": new_url}))
        return True
