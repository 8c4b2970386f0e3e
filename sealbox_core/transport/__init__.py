# sealbox_core/transport/__init__.py
from __future__ import annotations
import os
from sealbox_core.transport.transport_base import BaseTransport
from sealbox_core.transport.transport_local import LocalTransport, DEFAULT_MAX_BLOB_BYTES
from sealbox_core.transport.transport_http import HTTPTransport


def transport_factory(config: dict | None = None) -> BaseTransport:
    """
    Select the mailbox transport.

      - "http"  → remote mailbox server (default)
      - "local" → in-process mailbox
    """
    config = config or {}
    mode = (config.get("transport") or os.getenv("SEALBOX_TRANSPORT", "http")).lower()

    if mode == "local":
        max_blob = config.get("max_blob_bytes") or os.getenv("SEALBOX_MAX_BLOB_BYTES", DEFAULT_MAX_BLOB_BYTES)
        return LocalTransport(max_blob_bytes=int(max_blob))

    if mode == "http":
        return HTTPTransport(
            config.get("api_url") or os.getenv("SEALBOX_API_URL", "http://localhost:8080/api/nb/v1"),
            timeout=float(config.get("timeout") or os.getenv("SEALBOX_HTTP_TIMEOUT", "5")),
        )

    raise ValueError(f"Unknown transport: {mode}")


__all__ = ["BaseTransport", "HTTPTransport", "LocalTransport", "transport_factory"]
