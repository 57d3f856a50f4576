import logging
from typing import Any

import httpx

from rangers_portal.core.result import ErrorKind, Result
from rangers_portal.services.data_service import DataService
from rangers_portal.services.storage import path_from_url

logger = logging.getLogger(__name__)

_STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.PERMISSION,
    403: ErrorKind.PERMISSION,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONSTRAINT,
    422: ErrorKind.VALIDATION,
}


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        return "; ".join(str(item.get("msg", item)) for item in detail)
    return str(detail or body)


class HttpDataService(DataService):
    """Data Service client for a remote portal backend.

    ``client`` is any ``httpx.Client`` (FastAPI's ``TestClient`` included);
    when omitted one is created for ``base_url``. Admin-only calls need
    :meth:`authenticate_admin` (or :meth:`set_token`) first.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        client: httpx.Client | None = None,
        bucket: str = "applications",
        timeout: float = 30.0,
    ):
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self.bucket = bucket
        self._token: str | None = None

    def set_token(self, token: str | None) -> None:
        self._token = token

    def _headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def _request(self, method: str, url: str, **kwargs: Any) -> Result:
        try:
            response = self.client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            return Result.fail(ErrorKind.SERVICE, f"Network error: {exc}")
        if response.is_success:
            if response.status_code == 204 or not response.content:
                return Result.ok(None)
            return Result.ok(response.json())
        kind = _STATUS_KINDS.get(response.status_code, ErrorKind.SERVICE)
        message = _error_detail(response)
        logger.warning("%s %s -> %s: %s", method, url, response.status_code, message)
        return Result.fail(kind, message)

    def create_record(self, payload: dict[str, Any]) -> Result:
        return self._request("POST", "/applications", json=payload)

    def get_records(self, status: str | None = None, limit: int | None = 50, offset: int = 0) -> Result:
        params: dict[str, Any] = {"offset": offset}
        if limit is not None:
            params["limit"] = limit
        if status:
            params["status"] = status
        return self._request("GET", "/applications", params=params)

    def get_record(self, record_id: str) -> Result:
        return self._request("GET", f"/applications/{record_id}")

    def update_record(self, record_id: str, fields: dict[str, Any]) -> Result:
        return self._request("PATCH", f"/applications/{record_id}", json=fields)

    def delete_record(self, record_id: str) -> Result:
        return self._request("DELETE", f"/applications/{record_id}")

    def upload_object(self, data: bytes, path: str, content_type: str | None = None) -> Result:
        filename = path.rsplit("/", 1)[-1]
        files = {"file": (filename, data, content_type or "application/octet-stream")}
        return self._request("POST", f"/storage/{path}", files=files)

    def remove_objects(self, paths: list[str]) -> Result:
        return self._request("DELETE", "/storage", json={"paths": paths})

    def search_records(self, term: str, field: str = "full_name") -> Result:
        return self._request("GET", "/applications/search", params={"term": term, "field": field})

    def delete_dependent_logs(self, record_id: str) -> Result:
        result = self._request("DELETE", f"/applications/{record_id}/email-logs")
        if result.success:
            return Result.ok(result.data["deleted"])
        return result

    def call_procedure(self, name: str, **params: Any) -> Result:
        return self._request("POST", f"/rpc/{name}", json=params)

    def authenticate_admin(self, email: str, password: str) -> Result:
        result = self._request("POST", "/auth/login", json={"email": email, "password": password})
        if not result.success:
            return result
        self._token = result.data["access_token"]
        return Result.ok(result.data["admin"])

    def get_stats(self) -> Result:
        return self._request("GET", "/applications/stats")

    def path_from_url(self, url: str | None) -> str | None:
        return path_from_url(url, self.bucket)
