"""
Command-line front end for a Sealbox mailbox.

    python -m sealbox_core whoami
    python -m sealbox_core publish
    python -m sealbox_core push <identifier> "hello"
    python -m sealbox_core pull
    python -m sealbox_core export --out keys/
    python -m sealbox_core import keys/sealbox-keypair-<identifier>.json

Storage and transport come from SEALBOX_* environment variables.
"""

from __future__ import annotations
import argparse
import json
import sys
from typing import List, Optional

from .client import MailboxClient
from .crypto import compute_pubkey_fingerprint
from .errors import (
    InvalidBundle,
    InvalidKey,
    NotFound,
    RecipientUnknown,
    SealboxError,
    TransportError,
)
from .logger import configure_logging


def _print_record(rec) -> None:
    print(f"identifier:  {rec.identifier}")
    print(f"key version: {rec.key_version}")
    print(f"fingerprint: {compute_pubkey_fingerprint(rec.public_key)}")


def cmd_whoami(client: MailboxClient, args) -> int:
    _print_record(client.keystore.load_or_create(client.keystore.active_identifier()))
    return 0


def cmd_publish(client: MailboxClient, args) -> int:
    rec = client.publish(args.identifier)
    _print_record(rec)
    print("registered")
    return 0


def cmd_rotate(client: MailboxClient, args) -> int:
    rec = client.rotate_and_publish(args.identifier)
    _print_record(rec)
    print("rotated and registered")
    return 0


def cmd_push(client: MailboxClient, args) -> int:
    message = args.message if args.message != "-" else sys.stdin.read()
    client.push(args.identifier, message)
    print(f"pushed to {args.identifier}")
    return 0


def cmd_pull(client: MailboxClient, args) -> int:
    messages = client.pull(args.identifier)
    if args.json:
        print(json.dumps(messages))
    elif not messages:
        print("(no messages)")
    else:
        for m in messages:
            print(m)
    return 0


def cmd_export(client: MailboxClient, args) -> int:
    identifier = args.identifier or client.keystore.active_identifier()
    client.keystore.load_or_create(identifier)
    path = client.keystore.write_bundle_file(identifier, args.out)
    print(f"key-pair written to {path}")
    return 0


def cmd_import(client: MailboxClient, args) -> int:
    bundle = client.keystore.read_bundle_file(args.file)
    rec = client.import_bundle(bundle)
    print(f"access file imported for {rec.identifier}")
    return 0


def cmd_health(client: MailboxClient, args) -> int:
    status = client.transport.healthz()
    print(json.dumps(status))
    return 0 if status.get("status") == "ok" else 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sealbox", description="Sealed mailbox client")
    p.add_argument("--log-level", help="log level (default: SEALBOX_LOG_LEVEL or INFO)")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("whoami", help="show the active identifier and key")
    sp.set_defaults(func=cmd_whoami)

    sp = sub.add_parser("publish", help="register this mailbox's public key")
    sp.add_argument("identifier", nargs="?")
    sp.set_defaults(func=cmd_publish)

    sp = sub.add_parser("rotate", help="replace the keypair and register the new key")
    sp.add_argument("identifier", nargs="?")
    sp.set_defaults(func=cmd_rotate)

    sp = sub.add_parser("push", help="seal a message to another mailbox")
    sp.add_argument("identifier")
    sp.add_argument("message", help="message text, or - to read stdin")
    sp.set_defaults(func=cmd_push)

    sp = sub.add_parser("pull", help="fetch and decrypt this mailbox")
    sp.add_argument("identifier", nargs="?")
    sp.add_argument("--json", action="store_true", help="print messages as a JSON list")
    sp.set_defaults(func=cmd_pull)

    sp = sub.add_parser("export", help="write an access bundle file")
    sp.add_argument("identifier", nargs="?")
    sp.add_argument("--out", default=".", help="directory for the bundle file")
    sp.set_defaults(func=cmd_export)

    sp = sub.add_parser("import", help="install an access bundle file")
    sp.add_argument("file")
    sp.set_defaults(func=cmd_import)

    sp = sub.add_parser("health", help="check the mailbox server")
    sp.set_defaults(func=cmd_health)

    return p


def main(argv: Optional[List[str]] = None, client: Optional[MailboxClient] = None) -> int:
    args = build_parser().parse_args(argv)
    own_client = client is None
    try:
        # command output owns stdout; log records go to stderr
        configure_logging(level=args.log_level, stream="stderr")
        client = client or MailboxClient.from_env()
    except ValueError as e:
        print(f"error: configuration: {e}", file=sys.stderr)
        return 2
    try:
        return args.func(client, args)
    except RecipientUnknown as e:
        print(f"error: {e}", file=sys.stderr)
        return 3
    except InvalidBundle as e:
        print(f"error: invalid access file: {e}", file=sys.stderr)
        return 4
    except NotFound as e:
        print(f"error: {e}", file=sys.stderr)
        return 4
    except InvalidKey as e:
        print(f"error: registered key is unusable: {e}", file=sys.stderr)
        return 5
    except TransportError as e:
        status = f" (HTTP {e.status})" if e.status else ""
        print(f"error: mailbox server{status}: {e}", file=sys.stderr)
        return 6
    except SealboxError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        if own_client:
            client.close()
