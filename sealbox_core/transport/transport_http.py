# sealbox_core/transport/transport_http.py
from __future__ import annotations
from typing import Any, Dict, Optional
import requests

from sealbox_core.errors import InvalidEncoding, RecipientUnknown
from sealbox_core.logger import get_logger
from sealbox_core.storage.models import RemoteKey
from sealbox_core.transport.transport_base import (
    BaseTransport,
    TransportError,
    TransportPermanentError,
    TransportTransientError,
)
from sealbox_core.utils import b64d, b64e

log = get_logger("Sealbox.Transport.HTTP")


class HTTPTransport(BaseTransport):
    """
    HTTP adapter for the mailbox server.

    Endpoints (relative to ``base_url``):
    - POST key              {identifier, keyVersion, publicKey}
    - GET  key?identifier=  -> {keyVersion, publicKey} | 404
    - POST push             {identifier, keyVersion, blob}
    - GET  pull?identifier= -> newline-delimited base64 blobs
    - GET  healthz

    No retries. A non-2xx status raises TransportError with the status
    attached; connection problems raise TransportTransientError.
    """
    name = "http"

    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}/{path}"
        log.debug(f"[HTTP {method}] → {url}")
        try:
            res = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            log.error(f"[HTTP {method}] {url} failed: {e}")
            raise TransportTransientError(f"{method} {path}: {e}") from e
        log.info(f"[HTTP {method}] {path} {res.status_code} {res.reason}")
        return res

    @staticmethod
    def _raise_for_status(res: requests.Response, what: str) -> None:
        if res.ok:
            return
        msg = f"{what} failed: {res.status_code} {res.text.strip()}"
        log.error(f"[HTTP] {msg}")
        if res.status_code >= 500 or res.status_code == 429:
            raise TransportTransientError(msg, status=res.status_code)
        raise TransportPermanentError(msg, status=res.status_code)

    # ------------------------------------------------------------------
    # Mailbox operations
    # ------------------------------------------------------------------
    def register_key(self, identifier: str, key_version: int, public_key: bytes) -> None:
        body = {"identifier": identifier, "keyVersion": key_version, "publicKey": b64e(public_key)}
        res = self._request("POST", "key", json=body)
        self._raise_for_status(res, "register key")

    def fetch_key(self, identifier: str) -> RemoteKey:
        res = self._request("GET", "key", params={"identifier": identifier})
        if res.status_code == 404:
            raise RecipientUnknown(identifier)
        self._raise_for_status(res, "fetch key")
        try:
            data = res.json()
            version = data["keyVersion"]
            public_key = b64d(data["publicKey"])
        except (ValueError, KeyError, TypeError, InvalidEncoding) as e:
            raise TransportPermanentError(f"malformed key response: {e}", status=res.status_code) from e
        if isinstance(version, bool) or not isinstance(version, int):
            raise TransportPermanentError("malformed key response: keyVersion", status=res.status_code)
        return RemoteKey(key_version=version, public_key=public_key)

    def push(self, identifier: str, key_version: int, blob: bytes) -> None:
        body = {"identifier": identifier, "keyVersion": key_version, "blob": b64e(blob)}
        res = self._request("POST", "push", json=body)
        if res.status_code == 404:
            raise RecipientUnknown(identifier)
        self._raise_for_status(res, "push")

    def pull(self, identifier: str) -> str:
        res = self._request("GET", "pull", params={"identifier": identifier})
        self._raise_for_status(res, "pull")
        return res.text

    def healthz(self) -> Dict[str, Any]:
        try:
            res = self._request("GET", "healthz")
        except TransportError as e:
            return {"status": "unreachable", "transport": self.name, "error": str(e)}
        return {
            "status": "ok" if res.ok else "error",
            "transport": self.name,
            "code": res.status_code,
        }

    def close(self) -> None:
        self.session.close()
