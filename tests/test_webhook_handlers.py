"""Tests for webhook event routing (pull_request, review, status, ping)."""

import logging
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest

from cigate.adapters.buildkite import BuildkiteClient
from cigate.config import AppConfig
from cigate.gate.automerge import NEW_COMMIT_COMMENT, AutoMerger, SweepCoordinator
from cigate.gate.public_log import PublicLogRewriter
from cigate.gate.trigger import CITrigger
from cigate.models import Build, Pipeline, PullRequest
from cigate.webhook.events import EventKind, parse_pull_request_event, parse_status_event
from cigate.webhook.handlers import AWAITING_APPROVAL, EventRouter

from conftest import FakeGitHub

REPO = "org/repo"
SHA = "abcdef0123456789abcdef0123456789abcdef01"


def _pr_payload(
    action: str, author: str = "stranger", merged: bool = False, label: str | None = None
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "action": action,
        "repository": {"full_name": REPO},
        "pull_request": {
            "number": 7,
            "state": "open",
            "merged": merged,
            "head": {"sha": SHA},
            "base": {"ref": "main"},
            "user": {"login": author},
            "labels": [],
        },
    }
    if label:
        payload["label"] = {"name": label}
    return payload


@pytest.fixture
def buildkite(github: FakeGitHub) -> MagicMock:
    client = MagicMock(spec=BuildkiteClient)
    client.get_pipeline.return_value = Pipeline(slug="repo")

    def create_build(*args: Any, **kwargs: Any) -> Build:
        github.calls.append("create_build")
        return Build(id="b-1", number=3, state="scheduled")

    client.create_build.side_effect = create_build
    return client


@pytest.fixture
def coordinator() -> MagicMock:
    return MagicMock(spec=SweepCoordinator)


@pytest.fixture
def router(app_config: AppConfig, github: FakeGitHub, buildkite: MagicMock, coordinator: MagicMock) -> EventRouter:
    github.add_pr(PullRequest(repo=REPO, number=7, head_sha=SHA, base_branch="main", author="stranger"))
    rewriter = PublicLogRewriter(
        github,
        org_slug="acme",
        public_root=app_config.server.public_root,
        public_repos=app_config.gate.public_repos,
    )
    return EventRouter(
        app_config,
        github,
        trigger=CITrigger(github, buildkite, app_config.gate.status_context),
        rewriter=rewriter,
        automerger=AutoMerger(github),
        coordinator=coordinator,
    )


def _latest_statuses(github: FakeGitHub) -> Dict[Any, Any]:
    return {(sha, s.context): (s.state, s.description) for _, sha, s in github.statuses}


def test_event_kind_parse() -> None:
    assert EventKind.parse("status") is EventKind.STATUS
    assert EventKind.parse("issues") is None


def test_parse_events() -> None:
    event = parse_pull_request_event(_pr_payload("labeled", label="CI"))
    assert event.repo == REPO
    assert event.label == "CI"
    assert event.pull_request.author == "stranger"
    status = parse_status_event(
        {"repository": {"full_name": REPO}, "sha": SHA, "context": "bk", "state": "success", "target_url": None}
    )
    assert status.status.state == "success"
    with pytest.raises(ValueError):
        parse_pull_request_event({"repository": {"full_name": REPO}})


def test_opened_by_stranger_waits_for_approval(github: FakeGitHub, buildkite: MagicMock, router: EventRouter) -> None:
    """Untrusted author: CI label removed (no-op) and one pending status under ci-gate."""
    router.handle("pull_request", _pr_payload("opened"), "d-1")

    assert github.calls == ["remove_label:CI", "create_status:pending"]
    _, sha, status = github.statuses[0]
    assert sha[:8] == "abcdef01"
    assert status.context == "ci-gate"
    assert status.description == AWAITING_APPROVAL
    assert "CI" in status.description
    buildkite.create_build.assert_not_called()


def test_opened_is_idempotent(github: FakeGitHub, router: EventRouter) -> None:
    router.handle("pull_request", _pr_payload("opened"), "d-1")
    labels_once = list(github.labels[(REPO, 7)])
    statuses_once = _latest_statuses(github)

    for _ in range(3):
        router.handle("pull_request", _pr_payload("opened"), "d-1")
    assert github.labels[(REPO, 7)] == labels_once
    assert _latest_statuses(github) == statuses_once
    assert github.comments == []


def test_opened_removes_stale_approval(github: FakeGitHub, router: EventRouter) -> None:
    github.labels[(REPO, 7)] = ["CI"]
    router.handle("pull_request", _pr_payload("reopened"), "d-1")
    assert github.labels[(REPO, 7)] == []


def test_opened_by_allow_listed_user_triggers(github: FakeGitHub, buildkite: MagicMock, router: EventRouter) -> None:
    router.handle("pull_request", _pr_payload("opened", author="friend"), "d-1")
    buildkite.create_build.assert_called_once()
    assert github.statuses[-1][2].state == "success"


def test_opened_by_collaborator_triggers(github: FakeGitHub, buildkite: MagicMock, router: EventRouter) -> None:
    github.writers.add("maintainer")
    router.handle("pull_request", _pr_payload("opened", author="maintainer"), "d-1")
    buildkite.create_build.assert_called_once()


def test_synchronize_cancels_automerge(github: FakeGitHub, router: EventRouter) -> None:
    github.labels[(REPO, 7)] = ["automerge", "CI"]
    router.handle("pull_request", _pr_payload("synchronize"), "d-1")
    assert github.labels[(REPO, 7)] == []
    assert github.comments == [(REPO, 7, NEW_COMMIT_COMMENT)]
    assert github.statuses[-1][2].state == "pending"


def test_labeled_ci_triggers_build(github: FakeGitHub, buildkite: MagicMock, router: EventRouter) -> None:
    """Approval label: build on pull/7/head at head, then success status, then label removal."""
    github.labels[(REPO, 7)] = ["CI"]
    router.handle("pull_request", _pr_payload("labeled", author="anyone", label="CI"), "d-2")

    args, kwargs = buildkite.create_build.call_args
    assert args[0] == "repo"
    assert kwargs["branch"] == "pull/7/head"
    assert kwargs["commit"] == SHA
    assert github.calls == ["create_build", "create_status:success", "remove_label:CI"]
    assert github.labels[(REPO, 7)] == []


def test_labeled_on_merged_pr_does_not_trigger(github: FakeGitHub, buildkite: MagicMock, router: EventRouter) -> None:
    github.labels[(REPO, 7)] = ["CI"]
    router.handle("pull_request", _pr_payload("labeled", merged=True, label="CI"), "d-2")
    buildkite.create_build.assert_not_called()


def test_labeled_automerge_reconciles(github: FakeGitHub, buildkite: MagicMock, router: EventRouter) -> None:
    """Adding automerge to a conflicting PR removes it with a comment."""
    github.add_pr(PullRequest(repo=REPO, number=7, head_sha=SHA, mergeable=False), labels=["automerge"])
    router.handle("pull_request", _pr_payload("labeled", label="automerge"), "d-3")
    buildkite.create_build.assert_not_called()
    assert github.labels[(REPO, 7)] == []
    assert len(github.comments) == 1


def test_labeled_logs_label_name(
    github: FakeGitHub, router: EventRouter, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="cigate.webhook.handlers")
    router.handle("pull_request", _pr_payload("labeled", label="needs-review"), "d-4")
    assert f"Label needs-review added to {REPO}#7" in caplog.text


def test_review_reconciles(github: FakeGitHub, router: EventRouter) -> None:
    github.add_pr(PullRequest(repo=REPO, number=7, head_sha=SHA, mergeable=False), labels=["automerge"])
    router.handle("pull_request_review", _pr_payload("submitted"), "d-4")
    assert github.labels[(REPO, 7)] == []


def test_other_actions_ignored(github: FakeGitHub, router: EventRouter) -> None:
    router.handle("pull_request", _pr_payload("closed"), "d-5")
    assert github.calls == []


def test_status_rewrites_and_requests_sweep(github: FakeGitHub, coordinator: MagicMock, router: EventRouter) -> None:
    payload = {
        "repository": {"full_name": REPO},
        "sha": SHA,
        "context": "buildkite/widget",
        "state": "failure",
        "description": "Build failed",
        "target_url": "https://buildkite.com/acme/widget/builds/42",
    }
    router.handle("status", payload, "d-6")
    assert github.statuses[0][2].target_url == (
        "https://ci.example.com/buildkite_public_log?https://buildkite.com/acme/widget/builds/42"
    )
    coordinator.request_sweep.assert_called_once_with(REPO)


def test_unknown_event_and_ping_ignored(github: FakeGitHub, router: EventRouter) -> None:
    router.handle("ping", {"zen": "Keep it logically awesome."}, "d-7")
    router.handle("issues", {"action": "opened"}, "d-8")
    assert github.calls == []


def test_handler_errors_never_escape(github: FakeGitHub, router: EventRouter) -> None:
    """Malformed payloads and upstream failures are logged, not raised."""
    router.handle("pull_request", {"action": "opened"}, "d-9")
    router.handle("status", {"repository": {"full_name": REPO}}, "d-10")
    assert github.calls == []
