"""Credential storage for Codex OAuth"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from settings import CREDENTIAL_FILE
from .models import PersistedCredential


logger = logging.getLogger(__name__)


class CredentialStore:
    """Reads and writes the single persisted credential record"""

    def __init__(self, credential_file: Optional[Path] = None):
        """Initialize credential storage

        Args:
            credential_file: Path to credential file (default: settings.CREDENTIAL_FILE)
        """
        if credential_file is None:
            credential_file = Path(CREDENTIAL_FILE)

        self.credential_file = Path(credential_file)

    def load(self) -> Optional[PersistedCredential]:
        """Load the credential from disk

        Returns:
            PersistedCredential, or None if missing or not recognised
        """
        if not self.credential_file.exists():
            logger.debug("No credential file found")
            return None

        try:
            data = json.loads(self.credential_file.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to load credential: {e}")
            return None

        credential = PersistedCredential.from_dict(data)
        if credential is None:
            logger.warning(f"Ignoring credential file with unrecognised shape: {self.credential_file}")
        return credential

    def save(self, credential: PersistedCredential) -> bool:
        """Replace the stored credential

        The record is written to a temporary file in the same directory and
        moved into place, so readers see either the old or the new record.

        Args:
            credential: Full replacement credential

        Returns:
            True if save was successful
        """
        tmp_path = None
        try:
            self.credential_file.parent.mkdir(parents=True, exist_ok=True)

            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.credential_file.parent),
                prefix=f".{self.credential_file.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(credential.to_dict(), f, indent=2)
            # Owner read/write only
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.credential_file)
            tmp_path = None

            logger.debug(f"Saved credential to {self.credential_file}")
            return True

        except OSError as e:
            logger.error(f"Failed to save credential: {e}")
            return False

        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def clear(self) -> bool:
        """Delete the stored credential

        Returns:
            True if the credential is gone afterwards
        """
        try:
            if self.credential_file.exists():
                self.credential_file.unlink()
                logger.info("Cleared stored credential")
            return True

        except OSError as e:
            logger.error(f"Failed to clear credential: {e}")
            return False

    def exists(self) -> bool:
        """Check whether a usable credential is stored"""
        return self.load() is not None
