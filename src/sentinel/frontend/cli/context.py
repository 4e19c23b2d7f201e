"""Small helper to build a Sentinel app context for the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Optional
import getpass
import os

from sentinel.core.config import SentinelConfig
from sentinel.core.exceptions import AuthenticationError
from sentinel.database.connection import DatabaseConnection
from sentinel.database.store import SqliteCredentialStore
from sentinel.security.vault import VaultProfile
from sentinel.wallet.manager import WalletManager
from sentinel.wallet.service import WalletService

PASSWORD_ENV = "SENTINEL_MASTER_PASSWORD"


@dataclass
class AppContext:
    """Container for runtime objects the commands need."""

    config: SentinelConfig
    db: DatabaseConnection
    service: WalletService
    first_run: bool = False

    def close(self) -> None:
        # wipe the master key before dropping the connection
        self.service.manager.close()
        self.db.close()


def read_password(
    first_run: bool,
    env: Optional[Mapping[str, str]] = None,
    prompt: Optional[Callable[[str], str]] = None,
) -> str:
    """
    Return the master password.

    ``SENTINEL_MASTER_PASSWORD`` wins if set, so scripts can run without a
    prompt. On a fresh installation an interactive password is asked twice.
    """
    env = os.environ if env is None else env
    prompt = prompt or getpass.getpass
    password = env.get(PASSWORD_ENV)
    if password:
        return password

    password = prompt("Master password: ")
    if first_run:
        if prompt("Repeat master password: ") != password:
            raise AuthenticationError("passwords do not match")
    if not password:
        raise AuthenticationError("empty master password")
    return password


def build_context(config: SentinelConfig, password: str | bytes) -> AppContext:
    """
    Open the database and unlock the wallet manager.

    First-run behaviour:

    - When no KDF profile exists yet, one is created with the configured salt
      mode and cost parameters, and ``first_run`` is set on the context.
    - Otherwise the stored salt and parameters are used and a wrong password
      raises AuthenticationError before the database is touched.
    """
    profile = VaultProfile(
        config.storage.profile_file,
        salt_mode=config.security.salt_mode,
        params=config.security.kdf_params,
    )
    first_run = not profile.exists
    manager = WalletManager.unlock(profile, password)

    db = DatabaseConnection(config.storage.db_file)
    try:
        db.initialize()
    except Exception:
        manager.close()
        raise

    service = WalletService(manager, SqliteCredentialStore(db))
    return AppContext(config=config, db=db, service=service, first_run=first_run)
