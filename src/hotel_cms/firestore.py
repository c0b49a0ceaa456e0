"""Firestore REST client implementing DocumentStoreProtocol."""

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import requests
from loguru import logger

from hotel_cms.config import CREDENTIAL_FILES, FIRESTORE_BASE_URL, LIST_PAGE_SIZE, REQUEST_TIMEOUT
from hotel_cms.core.sync.firestore_codec import decode_fields, encode_fields
from hotel_cms.core.sync.writes import RemoteStoreError, Write


def load_credentials(paths: Sequence[Path] = tuple(CREDENTIAL_FILES)) -> dict[str, str]:
    """Read the first credentials file found.

    The file is JSON with ``projectId``, ``apiKey`` and optionally ``idToken``.
    """
    for path in paths:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            continue
        if "projectId" not in data:
            msg = f"Credentials file {str(path)!r} has no projectId"
            raise RuntimeError(msg)
        logger.debug("Using Firestore credentials from {}", path)
        return data  # type: ignore[no-any-return]
    msg = f"Cannot find Firestore credentials file, was looking at {[str(p) for p in paths]!r}"
    raise RuntimeError(msg)


class FirestoreClient:
    """Minimal Firestore v1 REST client: get, list, atomic commit."""

    def __init__(
        self,
        *,
        project_id: str | None = None,
        api_key: str | None = None,
        id_token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        if project_id is None:
            creds = load_credentials()
            project_id = creds["projectId"]
            api_key = api_key or creds.get("apiKey")
            id_token = id_token or creds.get("idToken")

        self.project_id = project_id
        self.api_key = api_key
        self.timeout = timeout
        self.sess = session or requests.Session()
        if id_token:
            self.sess.headers["Authorization"] = f"Bearer {id_token}"

        self.database_name = f"projects/{project_id}/databases/(default)"
        self.documents_name = f"{self.database_name}/documents"
        logger.debug("Firestore client ready: project {!r}, api key set {}", project_id, bool(api_key))

    def _url(self, suffix: str) -> str:
        return f"{FIRESTORE_BASE_URL}/{self.documents_name}{suffix}"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        params = kwargs.pop("params", {})
        if self.api_key:
            params = {**params, "key": self.api_key}
        try:
            r = self.sess.request(method, url, params=params, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            msg = f"Firestore request failed: {method} {url}: {e}"
            raise RemoteStoreError(msg) from e
        return r

    def _check(self, r: requests.Response, what: str) -> None:
        if r.ok:
            return
        try:
            detail = r.json().get("error", {}).get("message", r.text)
        except ValueError:
            detail = r.text
        msg = f"Firestore {what} failed: HTTP {r.status_code}: {detail}"
        raise RemoteStoreError(msg)

    def get(self, path: str) -> dict[str, Any] | None:
        """Return the fields of a document, or None if it does not exist."""
        logger.debug("Firestore get {!r}", path)
        r = self._request("GET", self._url(f"/{path}"))
        if r.status_code == 404:
            return None
        self._check(r, f"get {path!r}")
        return decode_fields(r.json().get("fields", {}))

    def list_documents(
        self, collection: str, *, fields: Sequence[str] | None = None
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return (document id, fields) for every document in a collection, following pages."""
        out: list[tuple[str, dict[str, Any]]] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"pageSize": LIST_PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            if fields is not None:
                params["mask.fieldPaths"] = list(fields)
            r = self._request("GET", self._url(f"/{collection}"), params=params)
            self._check(r, f"list {collection!r}")
            body = r.json()
            for doc in body.get("documents", []):
                doc_id = doc["name"].rsplit("/", 1)[-1]
                out.append((doc_id, decode_fields(doc.get("fields", {}))))
            page_token = body.get("nextPageToken")
            if not page_token:
                break
        logger.debug("Firestore list {!r}: {} documents", collection, len(out))
        return out

    def commit(self, writes: Sequence[Write]) -> None:
        """Apply all writes in one atomic commit."""
        body_writes: list[dict[str, Any]] = []
        for w in writes:
            name = f"{self.documents_name}/{w.path}"
            if w.op == "delete":
                body_writes.append({"delete": name})
            else:
                body_writes.append({"update": {"name": name, "fields": encode_fields(w.data or {})}})

        logger.debug("Firestore commit: {} write(s)", len(body_writes))
        r = self._request(
            "POST",
            f"{FIRESTORE_BASE_URL}/{self.database_name}/documents:commit",
            json={"writes": body_writes},
        )
        self._check(r, "commit")
