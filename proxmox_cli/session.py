"""Persistence of the single login session under ``~/.proxmox/session``.

The file mirrors the API's own ticket envelope::

    {"server": "pve1", "port": 8006, "httpScheme": "https",
     "response": {"data": {"username": "root@pam", "ticket": "PVE:...",
                           "CSRFPreventionToken": "..."}}}

A record is either complete or rejected on read; nothing is defaulted.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Protocol

from proxmox_cli.exceptions import (
    DecodeError,
    PersistenceError,
    SessionInvalid,
    SessionMissing,
)

SCHEMES = ("http", "https")


def default_session_path() -> Path:
    return Path.home() / ".proxmox" / "session"


@dataclass(frozen=True)
class AuthPayload:
    """Credentials returned by ``/access/ticket``."""

    username: str = ""
    ticket: str = ""
    csrf_token: str = ""

    @classmethod
    def from_envelope(cls, envelope: Any) -> AuthPayload:
        data = envelope.get("data") if isinstance(envelope, dict) else None
        if not isinstance(data, dict):
            raise DecodeError("authentication response has no 'data' object")
        return cls(
            username=str(data.get("username") or ""),
            ticket=str(data.get("ticket") or ""),
            csrf_token=str(data.get("CSRFPreventionToken") or ""),
        )

    @classmethod
    def from_json(cls, body: str) -> AuthPayload:
        try:
            envelope = json.loads(body)
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"authentication response is not valid JSON: {exc}") from exc
        return cls.from_envelope(envelope)

    def to_envelope(self) -> dict[str, Any]:
        return {
            "data": {
                "username": self.username,
                "ticket": self.ticket,
                "CSRFPreventionToken": self.csrf_token,
            }
        }


@dataclass(frozen=True)
class SessionRecord:
    server: str
    port: int
    scheme: str
    auth: AuthPayload

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.server}:{self.port}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "server": self.server,
            "port": self.port,
            "httpScheme": self.scheme,
            "response": self.auth.to_envelope(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> SessionRecord:
        response = raw.get("response")
        try:
            auth = AuthPayload.from_envelope(response)
        except DecodeError:
            auth = AuthPayload()
        port = raw.get("port")
        return cls(
            server=str(raw.get("server") or ""),
            port=port if isinstance(port, int) and not isinstance(port, bool) else 0,
            scheme=str(raw.get("httpScheme") or ""),
            auth=auth,
        )

    def validate(self) -> SessionRecord:
        """Return ``self`` or raise SessionInvalid naming the first bad field."""
        if not self.server:
            raise SessionInvalid("invalid session: missing server")
        if self.port <= 0:
            raise SessionInvalid("invalid session: missing or invalid port")
        if not self.scheme:
            raise SessionInvalid("invalid session: missing httpScheme")
        if self.scheme not in SCHEMES:
            raise SessionInvalid(f"invalid session: unsupported httpScheme '{self.scheme}'")
        if not self.auth.username:
            raise SessionInvalid("invalid session: missing 'username' field in data")
        if not self.auth.ticket:
            raise SessionInvalid("invalid session: missing 'ticket' field in data")
        if not self.auth.csrf_token:
            raise SessionInvalid("invalid session: missing 'CSRFPreventionToken' field in data")
        return self


# ---------------------------------------------------------------------------
# Update operations
# ---------------------------------------------------------------------------

class SessionUpdate:
    """One field-level change to a stored session."""

    def apply(self, record: SessionRecord) -> SessionRecord:
        raise NotImplementedError


@dataclass(frozen=True)
class SetServer(SessionUpdate):
    server: str

    def apply(self, record: SessionRecord) -> SessionRecord:
        return replace(record, server=self.server)


@dataclass(frozen=True)
class SetPort(SessionUpdate):
    port: int

    def apply(self, record: SessionRecord) -> SessionRecord:
        return replace(record, port=self.port)


@dataclass(frozen=True)
class SetScheme(SessionUpdate):
    scheme: str

    def apply(self, record: SessionRecord) -> SessionRecord:
        return replace(record, scheme=self.scheme)


@dataclass(frozen=True)
class ReplaceAuthPayload(SessionUpdate):
    """Swap in the credentials from a raw ``/access/ticket`` response body."""

    body: str

    def apply(self, record: SessionRecord) -> SessionRecord:
        return replace(record, auth=AuthPayload.from_json(self.body))


_UPDATES = (SetServer, SetPort, SetScheme, ReplaceAuthPayload)


class Store(Protocol):
    def read(self) -> SessionRecord: ...

    def write(self, record: SessionRecord) -> None: ...

    def update(self, op: SessionUpdate) -> SessionRecord: ...


class SessionStore:
    """Reads and writes the session file."""

    def __init__(self, path: Path | str | None = None, logger: logging.Logger | None = None):
        self.path = Path(path) if path else default_session_path()
        self.logger = logger or logging.getLogger(__name__)

    def write(self, record: SessionRecord) -> None:
        """Replace the session file with ``record`` in a single rename."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".session-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(record.to_dict(), fh)
                    fh.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            self.logger.error("Error writing session file %s: %s", self.path, exc)
            raise PersistenceError(f"could not write session file {self.path}: {exc}") from exc

    def read(self) -> SessionRecord:
        text = self._load_text()
        if not text.strip():
            raise SessionMissing(f"no session found in {self.path}; run 'proxmox-cli login' first")
        try:
            raw = json.loads(text)
        except ValueError as exc:
            raise SessionInvalid(f"invalid session: malformed session file ({exc})") from exc
        if not isinstance(raw, dict):
            raise SessionInvalid("invalid session: session file is not a JSON object")
        return SessionRecord.from_dict(raw).validate()

    def update(self, op: SessionUpdate) -> SessionRecord:
        """Apply one update to the stored session and write it back."""
        if not isinstance(op, _UPDATES):
            raise TypeError(f"unsupported session update: {op!r}")
        record = op.apply(self.read()).validate()
        self.write(record)
        return record

    def _load_text(self) -> str:
        """Read the raw file, leaving an empty placeholder behind on first run."""
        try:
            if not self.path.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.touch()
            return self.path.read_text(encoding="utf-8")
        except OSError as exc:
            self.logger.error("Error reading session file %s: %s", self.path, exc)
            raise PersistenceError(f"could not read session file {self.path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise SessionInvalid(f"invalid session: malformed session file ({exc})") from exc
