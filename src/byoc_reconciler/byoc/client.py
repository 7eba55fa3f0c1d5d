"""Async HTTP client for the BYOC control-plane API.

Provides create, describe and delete for BYOC-I projects plus the agent
describe view. Auth uses a static bearer API key. Responses arrive in a
``{"code", "message", "data"}`` envelope; a code other than 0 or 200 is an
application error even when the HTTP status is 200.

Transport failures from httpx are deliberately left unwrapped so the poll
engine's network classifier sees the httpx exception types.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .models import CreatedProject, CreateProjectRequest, ProjectDescription, ProjectHandle

logger = logging.getLogger(__name__)

GLOBAL_BASE_URL = "https://api.cloud.zilliz.com/v2"
CN_BASE_URL = "https://api.cloud.zilliz.com.cn/v2"

# Cloud prefixes of region ids served by the China endpoint.
_CN_CLOUDS = frozenset({"ali", "tc"})

_SUCCESS_CODES = frozenset({0, 200})


def base_url_for_region(cloud_region_id: str) -> str:
    """Pick the API endpoint for a region id such as ``aws-us-east-2``."""
    cloud = cloud_region_id.split("-", 1)[0].lower()
    if cloud in _CN_CLOUDS:
        return CN_BASE_URL
    return GLOBAL_BASE_URL


# ── Exception hierarchy ─────────────────────────────────────────


class ByocAPIError(Exception):
    """The control plane rejected a request."""

    def __init__(
        self,
        code: int,
        message: str = "",
        *,
        request_id: str = "",
    ) -> None:
        self.code = code
        self.message = message
        self.request_id = request_id
        super().__init__(self._render())

    def _render(self) -> str:
        detail = f"code:{self.code},Message:{self.message}"
        if self.request_id:
            detail += f", requestId: {self.request_id}"
        return detail


class ByocHTTPError(ByocAPIError):
    """Non-2xx HTTP status from the control plane."""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        *,
        code: int | None = None,
        request_id: str = "",
    ) -> None:
        self.status_code = status_code
        super().__init__(
            code if code is not None else status_code,
            message,
            request_id=request_id,
        )

    def _render(self) -> str:
        detail = f"http status code: {self.status_code}, error: {self.message}"
        if self.request_id:
            detail += f", requestId: {self.request_id}"
        return detail


# ── Module-level shared client ───────────────────────────────────

_shared_async_client: httpx.AsyncClient | None = None


def _get_shared_async_client() -> httpx.AsyncClient:
    global _shared_async_client
    if _shared_async_client is None:
        _shared_async_client = httpx.AsyncClient()
    return _shared_async_client


def _reset_shared_async_client_for_tests() -> None:
    global _shared_async_client
    _shared_async_client = None


# ── Client ───────────────────────────────────────────────────────


class ByocClient:
    """Async HTTP client for BYOC project operations."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = GLOBAL_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
        log_http_traffic: bool = False,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")

        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._client = http_client or _get_shared_async_client()
        self._timeout = float(timeout_seconds)
        self._log_http_traffic = log_http_traffic

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    async def _do(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and return the envelope's ``data``."""
        url = f"{self._base_url}/{path}"
        if self._log_http_traffic:
            logger.debug(
                "BYOC request: %s %s",
                method,
                url,
                extra={"method": method, "url": url, "params": params},
            )

        resp = await self._client.request(
            method,
            url,
            headers=self._headers(),
            json=json,
            params=params,
            timeout=self._timeout,
        )
        request_id = resp.headers.get("requestid", "")

        if self._log_http_traffic:
            logger.debug(
                "BYOC response: %s %s -> %d",
                method,
                url,
                resp.status_code,
                extra={"status_code": resp.status_code, "request_id": request_id},
            )

        if resp.status_code >= 400:
            code, message = _parse_error(resp)
            raise ByocHTTPError(
                resp.status_code,
                message,
                code=code,
                request_id=request_id,
            )

        if not resp.content:
            return None
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ByocAPIError(0, f"invalid JSON response: {exc}", request_id=request_id) from exc

        if isinstance(payload, dict):
            code = payload.get("code", 0)
            if code not in _SUCCESS_CODES:
                raise ByocAPIError(
                    int(code),
                    str(payload.get("message", "")),
                    request_id=request_id,
                )
            return payload.get("data")
        return payload

    # ── Public API ───────────────────────────────────────────────

    async def create_op_project(self, request: CreateProjectRequest) -> CreatedProject:
        """Ask the control plane to provision a BYOC-I data plane."""
        data = await self._do("POST", "byoc/op/dataplane/create", json=request.to_payload())
        data = data or {}
        created = CreatedProject(
            project_id=str(data.get("projectId", "")),
            data_plane_id=str(data.get("dataPlaneId") or request.data_plane_id),
            job_id=str(data.get("jobId", "")),
        )
        logger.info(
            "BYOC project create accepted: project=%s data_plane=%s",
            created.project_id,
            created.data_plane_id,
            extra={"project_id": created.project_id, "job_id": created.job_id},
        )
        return created

    async def describe_op_project(self, handle: ProjectHandle) -> ProjectDescription:
        """Describe a project's data plane, including its raw status code."""
        data = await self._do("GET", "byoc/dataplane/describe", params=handle.as_params())
        return _description_from(data or {}, handle)

    async def delete_op_project(self, handle: ProjectHandle) -> None:
        """Request teardown of a project's data plane."""
        await self._do("DELETE", "byoc/dataplane/delete", json=handle.as_params())
        logger.info(
            "BYOC project delete requested: project=%s data_plane=%s",
            handle.project_id,
            handle.data_plane_id,
            extra={"project_id": handle.project_id},
        )

    async def describe_agent(self, handle: ProjectHandle) -> ProjectDescription:
        """Describe the data-plane agent; its status shares the project codes."""
        data = await self._do("GET", "byoc/dataplane/describe", params=handle.as_params())
        return _description_from(data or {}, handle)


def _parse_error(resp: httpx.Response) -> tuple[int | None, str]:
    body = resp.text
    message = body[:200] if body else f"HTTP {resp.status_code}"
    try:
        payload = resp.json()
    except ValueError:
        return None, message
    if not isinstance(payload, dict):
        return None, message
    code = payload.get("code")
    return (int(code) if isinstance(code, int) else None), str(
        payload.get("message", message)
    )


def _description_from(data: dict[str, Any], handle: ProjectHandle) -> ProjectDescription:
    op_config = data.get("vpcOpConfig") or {}
    status = data.get("status")
    return ProjectDescription(
        project_id=str(data.get("projectId") or handle.project_id),
        data_plane_id=str(data.get("dataPlaneId") or handle.data_plane_id),
        status_code=int(status) if status is not None else -1,
        op_token=op_config.get("token"),
        message=str(data.get("message") or ""),
    )
