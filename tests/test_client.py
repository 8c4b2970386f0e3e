import pytest

from sealbox_core.client import MailboxClient
from sealbox_core.codec import to_text
from sealbox_core.crypto import SUITE
from sealbox_core.errors import InvalidBundle, RecipientUnknown, TransportPermanentError
from sealbox_core.keystore import KeyStore
from sealbox_core.sealing import seal
from sealbox_core.storage import AccessBundle, InMemoryStorage
from sealbox_core.transport.transport_local import LocalTransport


@pytest.fixture
def server():
    return LocalTransport()


def device(server):
    return MailboxClient(KeyStore(InMemoryStorage()), server)


def test_alice_hello_scenario(server):
    alice = device(server)
    sender = device(server)

    rec = alice.publish("alice")
    assert rec.key_version == 0
    sender.push("alice", "hello")
    assert alice.pull("alice") == ["hello"]

    # LocalTransport does not delete on read, so a second pull sees it again
    assert alice.pull("alice") == ["hello"]


def test_messages_arrive_in_order(server):
    alice = device(server)
    alice.publish("alice")
    sender = device(server)
    for m in ["first", "second", "third"]:
        sender.push("alice", m)
    assert alice.pull("alice") == ["first", "second", "third"]


def test_pull_empty_mailbox(server):
    alice = device(server)
    alice.publish("alice")
    assert alice.pull("alice") == []


def test_pull_unregistered_identifier_is_empty_not_error(server):
    # RecipientUnknown only applies to key fetch and push
    assert device(server).pull("nobody") == []


def test_push_to_unknown_recipient(server):
    with pytest.raises(RecipientUnknown):
        device(server).push("ghost", "hi")


def test_pull_skips_corrupt_and_foreign_entries(server):
    alice = device(server)
    alice.publish("alice")
    bob = device(server)
    bob.publish("bob")
    sender = device(server)

    sender.push("alice", "one")
    server.inject("alice", "!!! not base64 !!!")
    server.inject("alice", to_text(b"too short"))
    # sealed to bob, queued in alice's mailbox
    bob_key = server.fetch_key("bob")
    server.inject("alice", to_text(seal(b"for bob", SUITE.deserialize_public_key(bob_key.public_key))))
    sender.push("alice", "two")

    assert alice.pull("alice") == ["one", "two"]


def test_pull_bytes_and_non_utf8(server):
    alice = device(server)
    alice.publish("alice")
    sender = device(server)
    sender.push("alice", b"\xff\xfe")
    sender.push("alice", "ok")
    assert alice.pull_bytes("alice") == [b"\xff\xfe", b"ok"]
    assert alice.pull("alice") == ["ok"]


def test_rotation_orphans_old_messages(server):
    alice = device(server)
    alice.publish("alice")
    sender = device(server)
    sender.push("alice", "old")

    rec = alice.rotate_and_publish("alice")
    assert rec.key_version == 1
    assert server.fetch_key("alice").key_version == 1
    sender.push("alice", "new")
    assert alice.pull("alice") == ["new"]


def test_publish_uses_active_identifier(server):
    alice = device(server)
    rec = alice.publish()
    assert rec.identifier == alice.keystore.active_identifier()
    assert server.fetch_key(rec.identifier).public_key == rec.public_key


def test_bundle_moves_mailbox_between_devices(server):
    laptop = device(server)
    laptop.publish("alice")
    device(server).push("alice", "carried over")

    phone = device(server)
    rec = phone.import_bundle(AccessBundle.from_json(laptop.export_bundle("alice").to_json()))
    assert rec.identifier == "alice"
    assert phone.keystore.active_identifier() == "alice"
    assert phone.pull() == ["carried over"]


def test_import_invalid_bundle_propagates(server):
    with pytest.raises(InvalidBundle):
        device(server).import_bundle(AccessBundle("alice", 0, b"x", b"y"))


def test_oversized_blob_is_refused(server):
    small = LocalTransport(max_blob_bytes=1200)
    alice = device(small)
    alice.publish("alice")
    with pytest.raises(TransportPermanentError) as exc:
        device(small).push("alice", "x" * 500)
    assert exc.value.status == 413


def test_from_env(monkeypatch):
    monkeypatch.setenv("SEALBOX_STORAGE_PROVIDER", "memory")
    monkeypatch.setenv("SEALBOX_TRANSPORT", "local")
    client = MailboxClient.from_env()
    client.publish("alice")
    client.push("alice", "self note")
    assert client.pull("alice") == ["self note"]
    client.close()
