"""Tests for rewriting Buildkite status links to the public log proxy."""

import pytest

from cigate.gate.public_log import PublicLogRewriter
from cigate.models import CommitStatus

from conftest import FakeGitHub

BUILD_URL = "https://buildkite.com/acme/widget/builds/12"


@pytest.fixture
def rewriter(github: FakeGitHub) -> PublicLogRewriter:
    return PublicLogRewriter(
        github,
        org_slug="acme",
        public_root="https://ci.example.com",
        public_repos=frozenset({"acme/open"}),
    )


def _status(url: str | None) -> CommitStatus:
    return CommitStatus(context="buildkite/widget", state="failure", description="Build #12 failed", target_url=url)


def test_buildkite_url_is_rewritten(github: FakeGitHub, rewriter: PublicLogRewriter) -> None:
    """The status is re-posted unchanged except for the proxy target URL."""
    assert rewriter.rewrite_if_applicable("acme/widget", "abc", _status(BUILD_URL)) is True
    repo, sha, status = github.statuses[0]
    assert (repo, sha) == ("acme/widget", "abc")
    assert status.target_url == f"https://ci.example.com/buildkite_public_log?{BUILD_URL}"
    assert status.context == "buildkite/widget"
    assert status.state == "failure"
    assert status.description == "Build #12 failed"


def test_latest_branch_url_is_rewritten(github: FakeGitHub, rewriter: PublicLogRewriter) -> None:
    url = "https://buildkite.com/acme/widget/builds/latest/main"
    assert rewriter.rewrite_if_applicable("acme/widget", "abc", _status(url))


@pytest.mark.parametrize(
    "url",
    [
        None,
        "https://ci.example.com/buildkite_public_log?https://buildkite.com/acme/widget/builds/12",
        "https://travis-ci.org/acme/widget/builds/1",
        "https://buildkite.com/acme/widget/builds/012",
    ],
)
def test_other_urls_are_ignored(github: FakeGitHub, rewriter: PublicLogRewriter, url: str | None) -> None:
    """Non-Buildkite URLs (including already rewritten ones) are left alone."""
    assert rewriter.rewrite_if_applicable("acme/widget", "abc", _status(url)) is False
    assert github.statuses == []


def test_any_pipeline_in_org_is_rewritten(github: FakeGitHub, rewriter: PublicLogRewriter) -> None:
    """The log allow-list is applied by the proxy page, not when rewriting."""
    url = "https://buildkite.com/acme/secret/builds/3"
    assert rewriter.rewrite_if_applicable("acme/secret", "abc", _status(url)) is True
    _, _, status = github.statuses[0]
    assert status.target_url == f"https://ci.example.com/buildkite_public_log?{url}"


def test_other_org_is_ignored(github: FakeGitHub, rewriter: PublicLogRewriter) -> None:
    url = "https://buildkite.com/evil/widget/builds/3"
    assert rewriter.rewrite_if_applicable("acme/widget", "abc", _status(url)) is False
    assert github.statuses == []


def test_public_repo_never_rewritten(github: FakeGitHub, rewriter: PublicLogRewriter) -> None:
    assert rewriter.rewrite_if_applicable("acme/open", "abc", _status(BUILD_URL)) is False
    assert github.statuses == []
