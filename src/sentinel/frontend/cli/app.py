"""
Command-line interface for Sentinel.

    sentinel create --label trading --copy
    sentinel import --label cold
    sentinel list
    sentinel show <PUBKEY>
    sentinel sign <PUBKEY> "message"
    sentinel reveal <PUBKEY>
    sentinel config

Passwords and portable keys are always read with getpass (or the
SENTINEL_MASTER_PASSWORD variable for the unlock password) and never echoed
to the log.
"""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import sys
from typing import List, Optional

import base58
import pyperclip

from sentinel.core.config import LOG_LEVELS, SentinelConfig, load_config
from sentinel.core.exceptions import (
    AuthenticationError,
    ConfigError,
    DerivationError,
    EncodingError,
    PersistenceConflict,
    SentinelError,
    WalletNotFoundError,
)
from sentinel.frontend.cli.clipboard import copy_to_clipboard
from sentinel.frontend.cli.context import AppContext, build_context, read_password
from sentinel.frontend.cli.logging_config import configure_logging
from sentinel.security.vault import VaultProfile

logger = logging.getLogger(__name__)

# Exit codes, one per error kind
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ENCODING = 2
EXIT_AUTH = 3
EXIT_CONFLICT = 4
EXIT_NOT_FOUND = 5
EXIT_DERIVATION = 6
EXIT_CONFIG = 7

_EXIT_CODES = (
    (EncodingError, EXIT_ENCODING, "invalid key encoding"),
    (AuthenticationError, EXIT_AUTH, "authentication failed"),
    (PersistenceConflict, EXIT_CONFLICT, "already exists"),
    (WalletNotFoundError, EXIT_NOT_FOUND, "not found"),
    (DerivationError, EXIT_DERIVATION, "key derivation failed"),
    (ConfigError, EXIT_CONFIG, "configuration error"),
)


def exit_code_for(error: SentinelError) -> int:
    for kind, code, _ in _EXIT_CODES:
        if isinstance(error, kind):
            return code
    return EXIT_ERROR


def _hand_out_key(portable: str, copy: bool) -> None:
    # The portable key goes to stdout or the clipboard, never to logging.
    if copy:
        try:
            copy_to_clipboard(portable)
        except pyperclip.PyperclipException as e:
            logger.warning("Clipboard unavailable: %s", e)
            print("warning: clipboard unavailable, printing the key instead", file=sys.stderr)
        else:
            print("Private key copied to clipboard. Store it somewhere safe; it will not be shown again.")
            return
    print(f"Private key (shown once, store it safely): {portable}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_create(ctx: AppContext, args) -> int:
    public_key, portable = ctx.service.create(label=args.label)
    print(f"Public key: {public_key}")
    _hand_out_key(portable, args.copy)
    return EXIT_OK


def cmd_import(ctx: AppContext, args) -> int:
    portable = getpass.getpass("Portable private key: ")
    public_key = ctx.service.import_key(portable, label=args.label)
    print(f"Imported wallet {public_key}")
    return EXIT_OK


def cmd_list(ctx: AppContext, args) -> int:
    records = ctx.service.list_wallets()
    if not records:
        print("No wallets stored.")
        return EXIT_OK
    for record in records:
        created = record.created_at.isoformat() if record.created_at else "-"
        print(f"{record.public_key}  {record.label or '-'}  {created}")
    return EXIT_OK


def cmd_show(ctx: AppContext, args) -> int:
    record = ctx.service.get_wallet(args.pubkey)
    print(json.dumps(record.to_dict(), indent=2))
    return EXIT_OK


def cmd_sign(ctx: AppContext, args) -> int:
    signature = ctx.service.sign(args.pubkey, args.message.encode("utf-8"))
    print(base58.b58encode(signature).decode("ascii"))
    return EXIT_OK


def cmd_reveal(ctx: AppContext, args) -> int:
    password = getpass.getpass("Confirm master password to reveal the key: ")
    portable = ctx.service.reveal(args.pubkey, password)
    _hand_out_key(portable, args.copy)
    return EXIT_OK


def cmd_config(config: SentinelConfig, args) -> int:
    print(json.dumps(config.to_dict(), indent=2))
    return EXIT_OK


# ---------------------------------------------------------------------------
# Parser / entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sentinel",
        description="Local custody of Solana wallet keys.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a TOML config file (default: built-in defaults + SENTINEL_* env)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override the configured log level (DEBUG, INFO, WARNING, ...)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create", help="Generate and store a new wallet")
    p.add_argument("--label", default=None, help="Optional label for the wallet")
    p.add_argument("--copy", action="store_true", help="Copy the private key to the clipboard instead of printing it")
    p.set_defaults(func=cmd_create)

    p = sub.add_parser("import", help="Import a wallet from its base-58 private key")
    p.add_argument("--label", default=None, help="Optional label for the wallet")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("list", help="List stored wallets")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Show metadata of one wallet")
    p.add_argument("pubkey")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("sign", help="Sign a UTF-8 message with a stored wallet")
    p.add_argument("pubkey")
    p.add_argument("message")
    p.set_defaults(func=cmd_sign)

    p = sub.add_parser("reveal", help="Export the private key of a stored wallet (asks for the password again)")
    p.add_argument("pubkey")
    p.add_argument("--copy", action="store_true", help="Copy the private key to the clipboard instead of printing it")
    p.set_defaults(func=cmd_reveal)

    p = sub.add_parser("config", help="Print the effective configuration")
    p.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"error: configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    configure_logging((args.log_level or config.logging.level).upper())

    if args.func is cmd_config:
        return cmd_config(config, args)

    ctx = None
    try:
        first_run = not VaultProfile(config.storage.profile_file).exists
        password = read_password(first_run)
        ctx = build_context(config, password)
        del password
        if ctx.first_run:
            logger.info("Initialized new Sentinel installation in %s", config.storage.data_dir)
        return args.func(ctx, args)
    except SentinelError as e:
        code = exit_code_for(e)
        reason = next((text for kind, _, text in _EXIT_CODES if isinstance(e, kind)), "error")
        print(f"error: {reason}: {e}", file=sys.stderr)
        return code
    finally:
        if ctx is not None:
            ctx.close()


def run() -> None:  # pragma: no cover - console script entry
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover - CLI entry
    run()
