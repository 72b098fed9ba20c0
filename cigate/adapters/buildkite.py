"""Buildkite REST API client."""

from typing import Any, Dict, List

import requests

from cigate.errors import BuildkiteError, ErrorReason
from cigate.models import Artifact, Build, Job, Pipeline

RECENT_BUILDS = 30


def build_from_api(data: Dict[str, Any]) -> Build:
    """Build a Build model from a Buildkite build object."""
    pipeline = data.get("pipeline")
    jobs = [
        Job.model_validate({**j, "state": j.get("state") or ""})
        for j in (data.get("jobs") or [])
        if isinstance(j, dict) and j.get("id")
    ]
    return Build(
        id=data["id"],
        number=data["number"],
        state=data.get("state", ""),
        message=data.get("message") or "",
        branch=data.get("branch") or "",
        commit=data.get("commit") or "",
        web_url=data.get("web_url"),
        pipeline=pipeline.get("slug", "") if isinstance(pipeline, dict) else str(pipeline or ""),
        scheduled_at=data.get("scheduled_at"),
        started_at=data.get("started_at"),
        finished_at=data.get("finished_at"),
        jobs=jobs,
    )


class BuildkiteClient:
    """Buildkite REST API (v2) bound to one organization."""

    def __init__(
        self,
        token: str,
        org_slug: str,
        api_url: str = "https://api.buildkite.com/v2",
        timeout: float = 30,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._org = org_slug
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"Bearer {token}"
        self._session.headers["Accept"] = "application/json"

    @property
    def org_slug(self) -> str:
        return self._org

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
        allow_redirects: bool = True,
    ) -> requests.Response:
        url = f"{self._api_url}/organizations/{self._org}{path}"
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=json,
                timeout=self._timeout,
                allow_redirects=allow_redirects,
            )
        except requests.RequestException as e:
            raise BuildkiteError(f"{method} {path}: {e}", reason=ErrorReason.NETWORK) from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("message", msg)
            except (ValueError, AttributeError):
                pass
            raise BuildkiteError(f"{method} {path}: {resp.status_code}: {msg}", status_code=resp.status_code)
        return resp

    def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = self._request(method, path, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise BuildkiteError(f"{method} {path}: invalid JSON response: {e}", reason=ErrorReason.OTHER) from e

    def _build_path(self, pipeline: str, number: int) -> str:
        return f"/pipelines/{pipeline}/builds/{number}"

    def get_organization(self) -> Dict[str, Any]:
        """Fetch the organization (used at startup to validate access)."""
        return self._request_json("GET", "")

    def get_pipeline(self, slug: str) -> Pipeline | None:
        """Return the pipeline, or None if it does not exist."""
        try:
            data = self._request_json("GET", f"/pipelines/{slug}")
        except BuildkiteError as e:
            if e.is_not_found:
                return None
            raise
        return Pipeline(slug=data.get("slug", slug), name=data.get("name") or "", web_url=data.get("web_url"))

    def create_build(
        self,
        pipeline: str,
        commit: str,
        branch: str,
        message: str,
        meta_data: Dict[str, str] | None = None,
        pull_request: Dict[str, Any] | None = None,
    ) -> Build:
        """Create a build; ``pull_request`` holds pull_request_* attributes."""
        body: Dict[str, Any] = {"commit": commit, "branch": branch, "message": message}
        if meta_data:
            body["meta_data"] = meta_data
        if pull_request:
            body.update(pull_request)
        return build_from_api(self._request_json("POST", f"/pipelines/{pipeline}/builds", json=body))

    def list_builds(
        self,
        pipeline: str,
        branch: str | None = None,
        per_page: int = RECENT_BUILDS,
    ) -> List[Build]:
        """List the most recent builds of a pipeline, newest first."""
        params: Dict[str, Any] = {"per_page": per_page}
        if branch:
            params["branch"] = branch
        data = self._request_json("GET", f"/pipelines/{pipeline}/builds", params=params) or []
        return [build_from_api(d) for d in data]

    def get_build(self, pipeline: str, number: int) -> Build:
        return build_from_api(self._request_json("GET", self._build_path(pipeline, number)))

    def get_job_log(self, pipeline: str, number: int, job_id: str) -> str:
        data = self._request_json("GET", f"{self._build_path(pipeline, number)}/jobs/{job_id}/log") or {}
        return data.get("content") or ""

    def list_artifacts(self, pipeline: str, number: int, job_id: str) -> List[Artifact]:
        data = self._request_json("GET", f"{self._build_path(pipeline, number)}/jobs/{job_id}/artifacts") or []
        return [Artifact.model_validate(d) for d in data]

    def get_artifact_download_url(self, pipeline: str, number: int, job_id: str, artifact_id: str) -> str:
        """Resolve an artifact to its short-lived signed download URL."""
        path = f"{self._build_path(pipeline, number)}/jobs/{job_id}/artifacts/{artifact_id}/download"
        resp = self._request("GET", path, allow_redirects=False)
        location = resp.headers.get("Location")
        if location:
            return location
        try:
            url = (resp.json() or {}).get("url")
        except ValueError:
            url = None
        if not url:
            raise BuildkiteError(f"GET {path}: no download URL in response", status_code=resp.status_code)
        return url
