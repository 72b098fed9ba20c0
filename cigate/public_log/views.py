"""Public build log and artifact proxy views.

Both views take the raw query string of the request, which holds a
Buildkite URL verbatim. Only pipelines on the public log whitelist are
served; anything else is a 400 with a short body.
"""

import logging
from dataclasses import dataclass
from typing import List
from urllib.parse import unquote

from cigate.adapters.buildkite import BuildkiteClient
from cigate.config import BuildkiteConfig
from cigate.models import Build, Job
from cigate.public_log.ansi import ansi_to_html
from cigate.public_log.render import ArtifactLink, JobSection, render_build_page, render_not_found
from cigate.public_log.urls import (
    parse_artifact_url,
    parse_build_log_url,
    public_artifact_url,
    public_log_url,
)

LOG = logging.getLogger("cigate.public_log.views")

HTML = "text/html; charset=utf-8"
TEXT = "text/plain; charset=utf-8"


@dataclass
class ViewResponse:
    status: int
    body: str = ""
    content_type: str = HTML
    location: str | None = None


def _bad_request(message: str) -> ViewResponse:
    return ViewResponse(status=400, body=message + "\n", content_type=TEXT)


def _target(query: str) -> str:
    # Browsers may percent-encode the embedded URL
    return query if "://" in query else unquote(query)


class PublicLogViews:
    """Render Buildkite builds of whitelisted pipelines for anonymous readers."""

    def __init__(self, buildkite: BuildkiteClient, config: BuildkiteConfig, public_root: str) -> None:
        self._buildkite = buildkite
        self._config = config
        self._pipelines = config.public_log_pipelines
        self._public_root = public_root

    def _job_is_public(self, job: Job) -> bool:
        return self._config.expose_all_logs or job.is_public

    def _find_build(self, pipeline: str, number: int | None, branch: str | None) -> Build | None:
        if branch is not None:
            builds = self._buildkite.list_builds(pipeline, branch=branch, per_page=1)
            return builds[0] if builds else None
        for build in self._buildkite.list_builds(pipeline):
            if build.number == number:
                return build
        return None

    def _section(self, build: Build, job: Job) -> JobSection:
        section = JobSection(job=job, anchor=f"job-{job.id}", public=self._job_is_public(job))
        if not section.public or job.started is None:
            return section
        section.log_html = ansi_to_html(self._buildkite.get_job_log(build.pipeline, build.number, job.id))
        section.artifacts = [
            ArtifactLink(artifact=a, href=public_artifact_url(self._public_root, a.download_url))
            for a in self._buildkite.list_artifacts(build.pipeline, build.number, job.id)
            if a.download_url
        ]
        return section

    def build_log(self, query: str) -> ViewResponse:
        """GET /buildkite_public_log?<build URL>"""
        url = _target(query)
        ref = parse_build_log_url(url, self._buildkite.org_slug, self._config.web_url)
        if ref is None:
            LOG.warning("Invalid public log url: %s", url)
            return _bad_request("Not a Buildkite build URL")
        if ref.pipeline not in self._pipelines:
            LOG.warning("Pipeline is not in whitelist: %s", ref.pipeline)
            return _bad_request("Pipeline logs are not public")

        self_url = public_log_url(self._public_root, ref.url)
        build = self._find_build(ref.pipeline, ref.build_number, ref.branch)
        if build is None:
            what = f"Build {ref.pipeline} #{ref.build_number}" if ref.branch is None else f"Latest build of {ref.branch}"
            LOG.warning("%s not found", what)
            return ViewResponse(status=400, body=render_not_found(what, self_url))
        if not build.pipeline:
            build = build.model_copy(update={"pipeline": ref.pipeline})

        sections: List[JobSection] = [self._section(build, job) for job in build.script_jobs]
        LOG.info("Emitting log for %s", url)
        return ViewResponse(status=200, body=render_build_page(build, sections, self_url))

    def artifact(self, query: str) -> ViewResponse:
        """GET /buildkite_public_artifact?<artifact download API URL>"""
        url = _target(query)
        ref = parse_artifact_url(url, self._buildkite.org_slug, self._config.api_url)
        if ref is None:
            LOG.warning("Invalid public artifact url: %s", url)
            return _bad_request("Not a Buildkite artifact URL")
        if ref.pipeline not in self._pipelines:
            LOG.warning("Pipeline is not in whitelist: %s", ref.pipeline)
            return _bad_request("Pipeline artifacts are not public")

        build = self._buildkite.get_build(ref.pipeline, ref.build_number)
        job = next((j for j in build.jobs if j.id == ref.job_id), None)
        if job is None or not self._job_is_public(job):
            LOG.warning("Artifact of non-public job requested: %s", url)
            return _bad_request("Job artifacts are not public")

        location = self._buildkite.get_artifact_download_url(
            ref.pipeline, ref.build_number, ref.job_id, ref.artifact_id
        )
        return ViewResponse(status=302, content_type=TEXT, location=location)
