import pytest

from sealbox_core.transport import transport_factory
from sealbox_core.transport.transport_http import HTTPTransport
from sealbox_core.transport.transport_local import LocalTransport

# CMD Line Usage: pytest -v -s --log-cli-level=DEBUG tests/test_transport_factory.py


def test_transport_factory_modes(monkeypatch):
    """Verify that transport_factory returns the adapter named by SEALBOX_TRANSPORT."""
    # HTTP mode (default)
    monkeypatch.delenv("SEALBOX_TRANSPORT", raising=False)
    monkeypatch.delenv("SEALBOX_API_URL", raising=False)
    monkeypatch.delenv("SEALBOX_HTTP_TIMEOUT", raising=False)
    t =transport_factory()
    assert isinstance(t, HTTPTransport)
    assert t.base_url == "http://localhost:8080/api/nb/v1"
    assert t.timeout == 5.0

    monkeypatch.setenv("SEALBOX_API_URL", "https://mail.example/api/")
    monkeypatch.setenv("SEALBOX_HTTP_TIMEOUT", "2.5")
    t = transport_factory()
    assert t.base_url == "https://mail.example/api"
    assert t.timeout == 2.5

    # Local mode
    monkeypatch.setenv("SEALBOX_TRANSPORT", "local")
    monkeypatch.setenv("SEALBOX_MAX_BLOB_BYTES", "1024")
    t = transport_factory()
    assert isinstance(t, LocalTransport)
    assert t.max_blob_bytes == 1024

    assert isinstance(transport_factory({"transport": "http"}), HTTPTransport)

    with pytest.raises(ValueError):
        transport_factory({"transport": "carrier-pigeon"})


def test_local_healthz():
    assert LocalTransport().healthz() == {"status": "ok", "transport": "local"}
