"""Login and ticket renewal against ``/access/ticket``."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from proxmox_cli.client import (
    API_ROOT,
    CSRF_HEADER,
    FORM_CONTENT_TYPE,
    URL_ENCODED_HEADER,
    Transport,
    auth_cookie,
)
from proxmox_cli.exceptions import ProxmoxCliError
from proxmox_cli.session import (
    AuthPayload,
    ReplaceAuthPayload,
    SessionRecord,
    Store,
)

_TICKET_PATH = f"{API_ROOT}/access/ticket"
_REALM = "pam"


def ticket_url(scheme: str, server: str, port: int) -> str:
    return f"{scheme}://{server}:{port}{_TICKET_PATH}"


class AuthManager:
    """Acquires a ticket and keeps the stored session fresh."""

    def __init__(self, transport: Transport, store: Store, logger: logging.Logger | None = None):
        self.transport = transport
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def login(
        self,
        server: str,
        port: int,
        scheme: str,
        username: str,
        password: str,
    ) -> SessionRecord:
        """Authenticate with a password and persist a brand-new session.

        Nothing is written unless the request, the decode and the validation
        of the returned credentials all succeed.
        """
        payload = urlencode({
            "username": username,
            "password": password,
            "realm": _REALM,
            "new-format": 1,
        })
        try:
            body = self.transport.post(
                ticket_url(scheme, server, port), payload, URL_ENCODED_HEADER, None,
            )
        except ProxmoxCliError as exc:
            self.logger.error("Error logging in: %s", exc)
            raise

        try:
            record = SessionRecord(
                server=server,
                port=port,
                scheme=scheme,
                auth=AuthPayload.from_json(body),
            ).validate()
        except ProxmoxCliError as exc:
            self.logger.error("Error parsing response JSON: %s", exc)
            raise

        self.store.write(record)
        self.logger.info("Authenticated!")
        return record

    def validate(self) -> bool:
        """Renew the stored ticket; False on any failure.

        The API renews a ticket when it is presented as the password, and it
        only accepts that request with the old ticket cookie and the old CSRF
        token header sent together.
        """
        try:
            session = self.store.read()
        except ProxmoxCliError as exc:
            self.logger.error("Error reading session file: %s", exc)
            return False

        auth = session.auth
        payload = urlencode({"username": auth.username, "password": auth.ticket})
        headers = {
            "Content-Type": FORM_CONTENT_TYPE,
            CSRF_HEADER: auth.csrf_token,
        }
        url = ticket_url(session.scheme, session.server, session.port)

        try:
            body = self.transport.post(url, payload, headers, auth_cookie(auth.ticket))
        except ProxmoxCliError as exc:
            self.logger.error("Error validating session: %s", exc)
            return False

        try:
            self.store.update(ReplaceAuthPayload(body))
        except ProxmoxCliError as exc:
            self.logger.error("Error updating session file: %s", exc)
            return False
        return True
