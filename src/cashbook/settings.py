"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Settings for one cashbook process.

    Attributes:
        db_path: Local SQLite file (None uses ~/.cashbook/cashbook.db)
        remote_url: HTTP base URL or SQLAlchemy URL of the remote store
        remote_token: Bearer token for the HTTP remote store
        identity: Identity used to key the remote snapshot
        log_level: Console log level name
        log_file: Optional log file path
        unique_document_numbers: Reject duplicate document numbers
    """

    db_path: Optional[str] = None
    remote_url: Optional[str] = None
    remote_token: Optional[str] = None
    identity: Optional[str] = None
    log_level: str = "WARNING"
    log_file: Optional[str] = None
    unique_document_numbers: bool = False

    @property
    def sync_enabled(self) -> bool:
        return bool(self.remote_url)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from CASHBOOK_* environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            db_path=env.get("CASHBOOK_DB_PATH") or None,
            remote_url=env.get("CASHBOOK_REMOTE_URL") or None,
            remote_token=env.get("CASHBOOK_REMOTE_TOKEN") or None,
            identity=env.get("CASHBOOK_IDENTITY") or None,
            log_level=(env.get("CASHBOOK_LOG_LEVEL") or "WARNING").upper(),
            log_file=env.get("CASHBOOK_LOG_FILE") or None,
            unique_document_numbers=(
                env.get("CASHBOOK_UNIQUE_NUMBERS", "").strip().lower() in TRUE_VALUES
            ),
        )
