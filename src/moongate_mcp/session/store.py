"""On-disk persistence for the single wallet session record."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from moongate_mcp.session.errors import CorruptSessionError
from moongate_mcp.session.models import Session

logger = logging.getLogger(__name__)

SESSION_FILE_NAME = "session.json"
_DIR_MODE = 0o700
_FILE_MODE = 0o600


class SessionStore:
    """Reads and writes ``session.json`` inside a per-user directory.

    The directory is created owner-only (0700) and the record is always
    written owner-only (0600), replacing any earlier record atomically.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory).expanduser()
        self._path = self._directory / SESSION_FILE_NAME

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def path(self) -> Path:
        return self._path

    def ensure_directory(self) -> None:
        """Create the session directory if absent. Other OS errors propagate."""
        self._directory.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)

    def load(self) -> Session | None:
        """Return the persisted session, or None when no record exists.

        Raises CorruptSessionError if the record cannot be parsed.
        """
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return None

        try:
            return Session.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptSessionError(
                f"Session record at {self._path} is corrupted."
            ) from e

    def save(self, session: Session) -> None:
        """Write the session record with owner-only permissions."""
        self.ensure_directory()
        tmp_path = self._path.with_name(f".{SESSION_FILE_NAME}.tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _FILE_MODE)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(session.to_json())
            os.chmod(tmp_path, _FILE_MODE)
            os.replace(tmp_path, self._path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug("Session saved to %s", self._path)

    def clear(self) -> None:
        """Delete the session record. A missing record is not an error."""
        self._path.unlink(missing_ok=True)
        logger.debug("Session cleared from %s", self._path)
