"""Command-line client: look up a credential and print its secret."""
import argparse
import logging
import os
import sys
from typing import Optional, Sequence

import orjson
from pydantic import ValidationError

from .conf import DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV
from .exceptions import PSVaultError
from .version import __version__
from .vault import ClientConfig, CredentialStore, decrypt, master_key

logger = logging.getLogger("psvault.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="psvault",
        description=(
            "Decrypt a PowerShell secure-string credential stored in a "
            "CLIXML credential store"
        ),
    )
    parser.add_argument(
        "--store", "-s",
        help="Path to the credential XML file (default: auto-detect)",
    )
    parser.add_argument(
        "--key", "-k",
        help=(
            "Path to the master key file "
            "(default: auto-detect or master.key next to the store)"
        ),
    )
    parser.add_argument(
        "--name", "-n",
        help="Credential name to look up (default: MyService)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as a single JSON document",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def log_level(verbose: bool = False) -> int:
    """Numeric level from --verbose or PSVAULT_LOG_LEVEL.

    Raises:
        ValueError: If PSVAULT_LOG_LEVEL names no logging level.
    """
    if verbose:
        return logging.DEBUG
    name = os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level in {LOG_LEVEL_ENV}: {name!r}")
    return level


def setup_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def report_error(err: BaseException) -> None:
    print(f"Error: {err}", file=sys.stderr)
    if err.__cause__ is not None:
        print(f"Inner: {err.__cause__}", file=sys.stderr)


def run(config: ClientConfig, as_json: bool = False) -> None:
    """Load the store, find the credential and print the decrypted secret.

    Raises:
        PSVaultError: On any lookup or decryption failure.
    """
    if not as_json:
        print("[PSVault Credential Client]")
        print(f"Store Path: {config.store_path.resolve()}")
        print(f"Key Path:   {config.key_path.resolve()}")

    store = CredentialStore.load(config.store_path)
    with master_key(config.key_path) as key:
        record = store.require(config.credential_name)
        if not as_json:
            print(f"\nFound Credential for User: {record.user_name}")
        secret = decrypt(record.encrypted_value, key)

    if as_json:
        payload = {
            "name": config.credential_name,
            "user_name": record.user_name,
            "encryption_type": record.encryption_type,
            "secret": secret,
        }
        print(orjson.dumps(payload).decode("utf-8"))
    else:
        print(f"Decrypted Password: {secret}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        level = log_level(args.verbose)
    except ValueError as err:
        parser.error(str(err))
    setup_logging(level)

    try:
        config = ClientConfig.resolve(
            store=args.store, key=args.key, name=args.name,
        )
    except ValidationError as err:
        parser.error(str(err))

    logger.debug(
        "Resolved store=%s key=%s name=%s",
        config.store_path, config.key_path, config.credential_name,
    )
    try:
        run(config, as_json=args.json)
    except PSVaultError as err:
        logger.debug("Credential lookup failed", exc_info=True)
        report_error(err)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
