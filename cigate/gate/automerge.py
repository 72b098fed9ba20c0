"""Merge PRs carrying the automerge label once CI is green.

The reconciler holds no state of its own: every pass re-reads the PR,
its labels and its combined status. Status webhooks do not say which PR
they belong to, so each one sweeps all open PRs of the repository; the
SweepCoordinator keeps those sweeps from overlapping and folds bursts of
requests into one trailing sweep.
"""

import logging
import threading
from enum import StrEnum
from typing import Callable, Set

from cigate.adapters.base import GitPlatformAdapter
from cigate.config import AUTOMERGE_LABEL
from cigate.gate.labels import has_label, remove_label

LOG = logging.getLogger("cigate.gate.automerge")

MERGE_METHOD = "rebase"
MERGE_COMMIT_MESSAGE = "automerge"
# A lone success is usually just the gate's own status, not a CI run
MIN_SUCCESS_STATUSES = 2

CONFLICT_COMMENT = (
    f":scissors: `{AUTOMERGE_LABEL}` label removed due to a merge conflict. "
    "Rebase the pull request and add the label again."
)
CI_FAILURE_COMMENT = f":broken_heart: `{AUTOMERGE_LABEL}` label removed due to a CI failure"
NEW_COMMIT_COMMENT = f":scissors: `{AUTOMERGE_LABEL}` label removed due to a new commit"


class MergeOutcome(StrEnum):
    """What one reconciliation pass did."""

    NOT_ELIGIBLE = "not_eligible"
    MERGEABILITY_UNKNOWN = "mergeability_unknown"
    CONFLICT = "conflict"
    CI_PENDING = "ci_pending"
    CI_FAILED = "ci_failed"
    TOO_FEW_STATUSES = "too_few_statuses"
    MERGED = "merged"


class AutoMerger:
    """Reconcile the automerge intent of PRs against GitHub state."""

    def __init__(self, github: GitPlatformAdapter) -> None:
        self._github = github

    def _drop_label(self, repo: str, pr_number: int, comment: str) -> None:
        # Comment only on the transition so redeliveries stay quiet
        if remove_label(self._github, repo, pr_number, AUTOMERGE_LABEL):
            self._github.create_comment(repo, pr_number, comment)

    def cancel_for_new_commit(self, repo: str, pr_number: int) -> bool:
        """Drop the automerge intent after new commits were pushed."""
        if not has_label(self._github, repo, pr_number, AUTOMERGE_LABEL):
            return False
        if not remove_label(self._github, repo, pr_number, AUTOMERGE_LABEL):
            return False
        self._github.create_comment(repo, pr_number, NEW_COMMIT_COMMENT)
        return True

    def reconcile(self, repo: str, pr_number: int) -> MergeOutcome:
        """Merge, cancel or leave one PR depending on its current state."""
        pr = self._github.get_pr(repo, pr_number)
        if not pr.is_open or not has_label(self._github, repo, pr_number, AUTOMERGE_LABEL):
            return MergeOutcome.NOT_ELIGIBLE

        if pr.mergeable is None:
            LOG.info("%s#%s: mergeability not computed yet", repo, pr_number)
            return MergeOutcome.MERGEABILITY_UNKNOWN
        if pr.mergeable is False:
            LOG.info("%s#%s: not mergeable, cancelling automerge", repo, pr_number)
            self._drop_label(repo, pr_number, CONFLICT_COMMENT)
            return MergeOutcome.CONFLICT

        combined = self._github.get_combined_status(repo, pr.head_sha)
        if combined.state == "success":
            if len(combined.statuses) < MIN_SUCCESS_STATUSES:
                LOG.warning(
                    "%s#%s: only %d status(es) on %s, not merging",
                    repo,
                    pr_number,
                    len(combined.statuses),
                    pr.short_sha,
                )
                return MergeOutcome.TOO_FEW_STATUSES
            LOG.info("%s#%s: merging %s", repo, pr_number, pr.short_sha)
            # sha pins the merge to the head we evaluated
            self._github.merge_pr(
                repo,
                pr_number,
                sha=pr.head_sha,
                commit_message=MERGE_COMMIT_MESSAGE,
                merge_method=MERGE_METHOD,
            )
            return MergeOutcome.MERGED
        if combined.state in ("failure", "error"):
            LOG.info("%s#%s: CI %s, cancelling automerge", repo, pr_number, combined.state)
            self._drop_label(repo, pr_number, CI_FAILURE_COMMENT)
            return MergeOutcome.CI_FAILED

        LOG.debug("%s#%s: CI %s, waiting", repo, pr_number, combined.state)
        return MergeOutcome.CI_PENDING

    def sweep(self, repo: str) -> None:
        """Reconcile every open PR of ``repo`` that shows the automerge label.

        A failure on one PR is logged and the sweep moves on.
        """
        prs = self._github.list_open_prs(repo)
        wanted = AUTOMERGE_LABEL.lower()
        candidates = [pr for pr in prs if any(label.lower() == wanted for label in pr.labels)]
        LOG.info("Automerge sweep of %s: %d open PR(s), %d labelled", repo, len(prs), len(candidates))
        for pr in candidates:
            try:
                outcome = self.reconcile(repo, pr.number)
            except Exception:
                LOG.exception("Automerge of %s#%s failed", repo, pr.number)
                continue
            LOG.info("Automerge %s#%s: %s", repo, pr.number, outcome)


class SweepCoordinator:
    """Run at most one sweep at a time and coalesce requests made meanwhile.

    ``request_sweep`` marks the repository pending. If a sweep is already
    running the call returns at once and the running loop picks the
    repository up on its next round; otherwise the caller becomes the
    sweeper and loops until nothing is pending.
    """

    def __init__(self, sweep: Callable[[str], None]) -> None:
        self._sweep = sweep
        self._lock = threading.Lock()
        self._busy = False
        self._pending: Set[str] = set()

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    def request_sweep(self, repo: str) -> bool:
        """Ask for a sweep of ``repo``.

        Returns:
            True if this call ran the sweep loop, False if it was folded
            into a sweep already in progress.
        """
        with self._lock:
            self._pending.add(repo)
            if self._busy:
                LOG.debug("Sweep busy, %s marked pending", repo)
                return False
            self._busy = True

        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._busy = False
                        return True
                    repos = sorted(self._pending)
                    self._pending.clear()
                for name in repos:
                    try:
                        self._sweep(name)
                    except Exception:
                        LOG.exception("Automerge sweep of %s failed", name)
        except BaseException:
            with self._lock:
                self._busy = False
            raise
