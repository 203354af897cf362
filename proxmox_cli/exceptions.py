"""Exceptions raised by proxmox-cli."""


class ProxmoxCliError(RuntimeError):
    """Base class for every error the CLI reports to the user."""


class ConfigError(ProxmoxCliError):
    """Raised when the settings file cannot be loaded."""


class SessionError(ProxmoxCliError):
    """Raised when the stored session cannot be used."""


class SessionMissing(SessionError):
    """No session has been written yet."""


class SessionInvalid(SessionError):
    """The stored session is malformed or incomplete."""


class TransportError(ProxmoxCliError):
    """Connection, TLS or request construction failure."""


class HttpStatusError(TransportError):
    """The API answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        message = f"received status code {status_code}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DecodeError(ProxmoxCliError):
    """Response body is not JSON or not the expected envelope."""


class PersistenceError(ProxmoxCliError):
    """The session file could not be written."""
