import json

import pytest

from sealbox_core.cli import main
from sealbox_core.client import MailboxClient
from sealbox_core.keystore import KeyStore
from sealbox_core.storage import InMemoryStorage
from sealbox_core.transport.transport_local import LocalTransport


@pytest.fixture
def server():
    return LocalTransport()


def device(server):
    return MailboxClient(KeyStore(InMemoryStorage()), server)


def test_publish_push_pull(server, capsys):
    alice, sender = device(server), device(server)
    assert main(["publish", "alice"], client=alice) == 0
    assert main(["push", "alice", "hello"], client=sender) == 0
    capsys.readouterr()

    assert main(["pull", "alice", "--json"], client=alice) == 0
    out = capsys.readouterr().out.strip().splitlines()
    assert json.loads(out[-1]) == ["hello"]


def test_pull_empty(server, capsys):
    alice = device(server)
    main(["publish", "alice"], client=alice)
    assert main(["pull", "alice"], client=alice) == 0
    assert "(no messages)" in capsys.readouterr().out


def test_push_unknown_recipient_exit_code(server, capsys):
    assert main(["push", "ghost", "hi"], client=device(server)) == 3
    assert "no public key registered" in capsys.readouterr().err


def test_export_import(server, tmp_path, capsys):
    laptop = device(server)
    laptop.keystore.set_active_identifier("alice")
    assert main(["export", "--out", str(tmp_path)], client=laptop) == 0
    path = tmp_path / "sealbox-keypair-alice.json"
    assert path.exists()

    phone = device(server)
    assert main(["import", str(path)], client=phone) == 0
    assert phone.keystore.get("alice") == laptop.keystore.get("alice")
    assert "imported for alice" in capsys.readouterr().out


def test_import_bad_file(server, tmp_path, capsys):
    bad = tmp_path / "sealbox-keypair-x.json"
    bad.write_text("{}")
    assert main(["import", str(bad)], client=device(server)) == 4
    assert "invalid access file" in capsys.readouterr().err


def test_whoami_and_health(server, capsys):
    c = device(server)
    assert main(["whoami"], client=c) == 0
    out = capsys.readouterr().out
    assert c.keystore.active_identifier() in out
    assert main(["health"], client=c) == 0


def test_bad_storage_provider_is_config_error(monkeypatch, capsys):
    monkeypatch.setenv("SEALBOX_STORAGE_PROVIDER", "vault")
    assert main(["whoami"]) == 2
    err = capsys.readouterr().err
    assert "error: configuration:" in err
    assert "Traceback" not in err


def test_bad_log_level_is_config_error(server, capsys):
    assert main(["--log-level", "chatty", "whoami"], client=device(server)) == 2
    assert "error: configuration:" in capsys.readouterr().err


def test_logs_stay_off_stdout(server, capsys):
    alice = device(server)
    assert main(["--log-level", "debug", "publish", "alice"], client=alice) == 0
    device(server).push("alice", "hi")
    capsys.readouterr()

    assert main(["--log-level", "debug", "pull", "alice", "--json"], client=alice) == 0
    captured = capsys.readouterr()
    assert captured.out.strip().splitlines() == ['["hi"]']
    assert '"name": "Sealbox.' in captured.err
