"""
Command-line front end for SecretBox.

Examples:

    secretbox save                 # prompt for token + password, store the blob
    secretbox load --reveal        # prompt for password, print the token
    secretbox decrypt <blob>
    secretbox genpass --length 40

Passwords and tokens are always read with :mod:`getpass`, never from argv.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import Callable, List, Optional

from secretbox.core.config import SecretBoxConfig
from secretbox.core.exceptions import ErrorKind, PersistenceError, SecretBoxError
from secretbox.frontend.cli.logging_config import configure_logging
from secretbox.security.box import SecretBox, validate_format
from secretbox.security.credentials import TokenHolder
from secretbox.security.keystore import (
    DEFAULT_SERVICE,
    JsonFileStore,
    KeyringStore,
    KeyValueStore,
    MemoryStore,
    assess_keyring_backend,
)
from secretbox.security.passwords import generate_secure_password

logger = logging.getLogger(__name__)

DEFAULT_FILE = "~/.secretbox/store.json"

_MESSAGES = {
    ErrorKind.INVALID_INPUT: "invalid input",
    ErrorKind.DECODE_ERROR: "stored value is corrupted; clear it and re-enter the token",
    ErrorKind.MALFORMED_BLOB: "stored value is corrupted; clear it and re-enter the token",
    ErrorKind.DECRYPTION_FAILED: "wrong password or corrupted data",
    ErrorKind.PERSISTENCE_ERROR: "storage unavailable",
    ErrorKind.CONFIG_ERROR: "invalid configuration",
}

Prompt = Callable[[str], str]


def build_store(args: argparse.Namespace) -> KeyValueStore:
    if args.store == "memory":
        return MemoryStore()
    if args.store == "file":
        return JsonFileStore(args.file)
    secure, msg = assess_keyring_backend()
    if not secure:
        logger.warning("Keyring backend: %s", msg)
    return KeyringStore(args.service)


def _prompt_password(prompt: Prompt, confirm: bool = False) -> str:
    password = prompt("Encryption password: ")
    if confirm and prompt("Repeat password: ") != password:
        raise SystemExit("error: passwords do not match")
    return password


def _show(token: str, reveal: bool) -> str:
    if reveal:
        return token
    holder = TokenHolder(SecretBoxConfig(validate_on_set=False))
    holder.set_token(token, encrypted=False)
    return holder.masked()


def cmd_encrypt(box: SecretBox, args, prompt: Prompt) -> int:
    token = prompt("API token: ")
    print(box.encrypt(token, _prompt_password(prompt, confirm=True)))
    return 0


def cmd_decrypt(box: SecretBox, args, prompt: Prompt) -> int:
    token = box.decrypt(args.blob, _prompt_password(prompt))
    print(_show(token, args.reveal))
    return 0


def cmd_save(box: SecretBox, args, prompt: Prompt) -> int:
    token = prompt("API token: ")
    blob = box.encrypt(token, _prompt_password(prompt, confirm=True))
    try:
        box.store_blob(blob)
    except PersistenceError as e:
        # continue without persistence: hand the blob to the user instead
        logger.warning("Could not store encrypted token: %s", e)
        print(blob)
        return 1
    print(f"Encrypted token stored under '{box.config.slot_key}'")
    return 0


def cmd_load(box: SecretBox, args, prompt: Prompt) -> int:
    blob = box.load_blob()
    if blob is None:
        print(f"No encrypted token stored under '{box.config.slot_key}'", file=sys.stderr)
        return 1
    token = box.decrypt(blob, _prompt_password(prompt))
    print(_show(token, args.reveal))
    return 0


def cmd_clear(box: SecretBox, args, prompt: Prompt) -> int:
    box.clear_blob()
    print(f"Cleared '{box.config.slot_key}'")
    return 0


def cmd_check(box: SecretBox, args, prompt: Prompt) -> int:
    # advisory only; a mismatch is reported but is not an error
    if validate_format(args.token):
        print("Token format looks valid")
    else:
        print("Warning: token format may be invalid (expected 'hf_' followed by 30+ letters or digits)")
    return 0


def cmd_genpass(box: SecretBox, args, prompt: Prompt) -> int:
    print(generate_secure_password(args.length))
    return 0


def cmd_selftest(box: SecretBox, args, prompt: Prompt) -> int:
    ok = box.self_test()
    print("Self-test passed" if ok else "Self-test FAILED")
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secretbox",
        description="Password-protected storage for an inference API token.",
    )
    parser.add_argument("--store", choices=("keyring", "file", "memory"), default="keyring")
    parser.add_argument("--file", default=DEFAULT_FILE, help="JSON file for --store file")
    parser.add_argument("--service", default=DEFAULT_SERVICE, help="keyring service name")
    parser.add_argument("--slot", default=None, help="storage key (default: hf_encrypted_key)")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("encrypt", help="encrypt a token and print the blob").set_defaults(func=cmd_encrypt)

    p = sub.add_parser("decrypt", help="decrypt a blob")
    p.add_argument("blob")
    p.add_argument("--reveal", action="store_true", help="print the full token")
    p.set_defaults(func=cmd_decrypt)

    sub.add_parser("save", help="encrypt a token and store it").set_defaults(func=cmd_save)

    p = sub.add_parser("load", help="decrypt the stored token")
    p.add_argument("--reveal", action="store_true", help="print the full token")
    p.set_defaults(func=cmd_load)

    sub.add_parser("clear", help="remove the stored token").set_defaults(func=cmd_clear)

    p = sub.add_parser("check", help="check a token's format")
    p.add_argument("token")
    p.set_defaults(func=cmd_check)

    p = sub.add_parser("genpass", help="print a random password")
    p.add_argument("--length", type=int, default=32)
    p.set_defaults(func=cmd_genpass)

    sub.add_parser("selftest", help="run an encrypt/decrypt round trip").set_defaults(func=cmd_selftest)
    return parser


def main(argv: Optional[List[str]] = None, prompt: Prompt = getpass.getpass) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = SecretBoxConfig.from_env(slot_key=args.slot)
        box = SecretBox(config, store=build_store(args))
        return args.func(box, args, prompt)
    except SecretBoxError as e:
        print(f"error: {_MESSAGES.get(e.kind, 'failed')}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
