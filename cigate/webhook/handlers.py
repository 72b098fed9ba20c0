"""Route GitHub webhook deliveries to the gate logic.

Each delivery is handled on its own; a failure is logged and never
affects other deliveries. All handlers are safe to run again for a
redelivered event.
"""

import logging
from typing import Any, Dict

from cigate.adapters.base import GitPlatformAdapter
from cigate.config import APPROVAL_LABEL, AppConfig
from cigate.gate.automerge import AutoMerger, SweepCoordinator
from cigate.gate.labels import has_label, remove_label, set_status
from cigate.gate.public_log import PublicLogRewriter
from cigate.gate.trigger import CITrigger
from cigate.gate.trust import is_trusted
from cigate.webhook.events import (
    EventKind,
    PullRequestEvent,
    parse_pull_request_event,
    parse_status_event,
)

LOG = logging.getLogger("cigate.webhook.handlers")

AWAITING_APPROVAL = f"A project member must add the '{APPROVAL_LABEL}' label for tests to start"


class EventRouter:
    """Dispatch webhook events by kind and pull_request action."""

    def __init__(
        self,
        config: AppConfig,
        github: GitPlatformAdapter,
        trigger: CITrigger,
        rewriter: PublicLogRewriter,
        automerger: AutoMerger,
        coordinator: SweepCoordinator,
    ) -> None:
        self._github = github
        self._trigger = trigger
        self._rewriter = rewriter
        self._automerger = automerger
        self._coordinator = coordinator
        self._context = config.gate.status_context
        self._trusted_users = config.gate.trusted_users

    def handle(self, event: str, payload: Dict[str, Any], delivery: str = "") -> None:
        """Handle one delivery; never raises."""
        LOG.debug("Github webhook: %s %s", event, delivery)
        try:
            kind = EventKind.parse(event)
            if kind is EventKind.PING:
                LOG.info("Github ping: %s", payload.get("zen"))
            elif kind is EventKind.PULL_REQUEST:
                self._on_pull_request(parse_pull_request_event(payload))
            elif kind is EventKind.PULL_REQUEST_REVIEW:
                self._on_review(parse_pull_request_event(payload))
            elif kind is EventKind.STATUS:
                self._on_status(payload)
            else:
                LOG.warning("Unhandled Github webhook: %s", event)
        except Exception:
            LOG.exception("Failed to handle %s webhook %s", event, delivery)

    def _on_pull_request(self, event: PullRequestEvent) -> None:
        pr = event.pull_request
        LOG.info("pull_request %s: %s#%s @ %s", event.action, event.repo, pr.number, pr.short_sha)
        if event.action in ("opened", "reopened", "synchronize"):
            if event.action == "synchronize":
                self._automerger.cancel_for_new_commit(event.repo, pr.number)
            remove_label(self._github, event.repo, pr.number, APPROVAL_LABEL)
            if is_trusted(self._github, event.repo, pr.author, self._trusted_users):
                self._trigger.trigger(event.repo, pr.number, pr.head_sha, pr.base_branch)
            else:
                set_status(self._github, event.repo, pr.head_sha, self._context, "pending", AWAITING_APPROVAL)
        elif event.action == "labeled":
            LOG.info("Label %s added to %s#%s", event.label, event.repo, pr.number)
            if not pr.merged and has_label(self._github, event.repo, pr.number, APPROVAL_LABEL):
                self._trigger.trigger(event.repo, pr.number, pr.head_sha, pr.base_branch)
            # the label may be automerge itself
            self._automerger.reconcile(event.repo, pr.number)
        else:
            LOG.info("Ignored pull request action: %s", event.action)

    def _on_review(self, event: PullRequestEvent) -> None:
        pr = event.pull_request
        LOG.info("pull_request_review %s: %s#%s", event.action, event.repo, pr.number)
        self._automerger.reconcile(event.repo, pr.number)

    def _on_status(self, payload: Dict[str, Any]) -> None:
        event = parse_status_event(payload)
        LOG.info(
            "status %s/%s on %s@%s",
            event.status.context,
            event.status.state,
            event.repo,
            event.sha[:8],
        )
        self._rewriter.rewrite_if_applicable(event.repo, event.sha, event.status)
        self._coordinator.request_sweep(event.repo)
