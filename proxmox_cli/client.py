"""Proxmox VE REST API transport and authenticated client."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Protocol
from urllib.parse import quote

import requests
import urllib3

from proxmox_cli.exceptions import (
    DecodeError,
    HttpStatusError,
    ProxmoxCliError,
    TransportError,
)
from proxmox_cli.session import SessionRecord, Store

API_ROOT = "/api2/json"
AUTH_COOKIE = "PVEAuthCookie"
CSRF_HEADER = "CSRFPreventionToken"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"

URL_ENCODED_HEADER = {"Content-Type": FORM_CONTENT_TYPE}


class Transport(Protocol):
    def get(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        cookies: Mapping[str, str] | None = None,
    ) -> requests.Response: ...

    def post(
        self,
        url: str,
        payload: str = "",
        headers: Mapping[str, str] | None = None,
        cookies: Mapping[str, str] | None = None,
    ) -> str: ...

    def put(
        self,
        url: str,
        payload: str = "",
        headers: Mapping[str, str] | None = None,
        cookies: Mapping[str, str] | None = None,
    ) -> str: ...

    def delete(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        cookies: Mapping[str, str] | None = None,
    ) -> str: ...


class HttpTransport:
    """Issues single HTTP requests against the cluster.

    ``trust`` disables certificate verification for every request made by
    this instance, for clusters running on self-signed certificates.
    """

    def __init__(self, trust: bool = False, logger: logging.Logger | None = None):
        self.trust = trust
        self.logger = logger or logging.getLogger(__name__)
        self.session = requests.Session()
        self.session.verify = not trust
        if trust:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def get(self, url, headers=None, cookies=None) -> requests.Response:
        """Return the still-open response; the caller closes it."""
        return self._send("GET", url, headers=headers, cookies=cookies, stream=True)

    def post(self, url, payload="", headers=None, cookies=None) -> str:
        return self._read(self._send("POST", url, payload, headers, cookies))

    def put(self, url, payload="", headers=None, cookies=None) -> str:
        return self._read(self._send("PUT", url, payload, headers, cookies))

    def delete(self, url, headers=None, cookies=None) -> str:
        return self._read(self._send("DELETE", url, None, headers, cookies))

    def _send(
        self,
        method: str,
        url: str,
        payload: str | None = None,
        headers: Mapping[str, str] | None = None,
        cookies: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> requests.Response:
        self._log_request(method, url, headers, cookies)
        try:
            resp = self.session.request(
                method,
                url,
                data=payload,
                headers=dict(headers or {}),
                cookies=dict(cookies or {}),
                stream=stream,
            )
        except (requests.RequestException, UnicodeError, ValueError) as exc:
            self.logger.error("Error executing %s request: %s", method, exc)
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if not resp.ok:
            body = resp.text
            resp.close()
            self.logger.error("%s %s returned HTTP %s", method, url, resp.status_code)
            raise HttpStatusError(resp.status_code, body)
        return resp

    def _read(self, resp: requests.Response) -> str:
        try:
            return resp.text
        except requests.RequestException as exc:
            self.logger.error("Error reading response body: %s", exc)
            raise TransportError(f"could not read response body: {exc}") from exc
        finally:
            resp.close()

    def _log_request(self, method, url, headers, cookies) -> None:
        self.logger.debug("HTTP %s Request: %s", method, url)
        if headers:
            self.logger.debug("Headers:")
            for key, value in headers.items():
                self.logger.debug("  %s: %s", key, value)
        if cookies:
            self.logger.debug("Cookies:")
            for name, value in cookies.items():
                self.logger.debug("  %s: %s", name, value)


def decode_envelope(body: str | bytes) -> Any:
    """Return the ``data`` member of a ``{"data": ...}`` response body."""
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"response is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict) or "data" not in parsed:
        raise DecodeError("response is missing the 'data' envelope")
    return parsed["data"]


class ProxmoxClient:
    """Authenticated access to ``/api2/json`` using the stored session.

    Each call reads the session before touching the network, so a missing or
    broken session fails without any request being sent.
    """

    def __init__(
        self,
        transport: Transport,
        store: Store,
        logger: logging.Logger | None = None,
    ):
        self.transport = transport
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def get(self, path: str) -> Any:
        session = self._session()
        resp = self.transport.get(self.url(session, path), None, self._cookies(session))
        try:
            body = resp.content
        except requests.RequestException as exc:
            self.logger.error("Error reading response body: %s", exc)
            raise TransportError(f"could not read response body: {exc}") from exc
        finally:
            resp.close()
        return self._decode(body)

    def post(self, path: str, payload: str = "") -> Any:
        session = self._session()
        headers = {**URL_ENCODED_HEADER, **self._csrf(session)}
        body = self.transport.post(
            self.url(session, path), payload, headers, self._cookies(session)
        )
        return self._decode(body)

    def delete(self, path: str) -> Any:
        session = self._session()
        body = self.transport.delete(
            self.url(session, path), self._csrf(session), self._cookies(session)
        )
        return self._decode(body)

    @staticmethod
    def url(session: SessionRecord, path: str) -> str:
        return f"{session.base_url}{API_ROOT}/{path.lstrip('/')}"

    def _session(self) -> SessionRecord:
        try:
            return self.store.read()
        except ProxmoxCliError as exc:
            self.logger.error("Error reading session file: %s", exc)
            raise

    def _decode(self, body: str | bytes) -> Any:
        try:
            return decode_envelope(body)
        except DecodeError as exc:
            self.logger.error("Error parsing response JSON: %s", exc)
            raise

    @staticmethod
    def _cookies(session: SessionRecord) -> dict[str, str]:
        return auth_cookie(session.auth.ticket)

    @staticmethod
    def _csrf(session: SessionRecord) -> dict[str, str]:
        return {CSRF_HEADER: session.auth.csrf_token}


def auth_cookie(ticket: str) -> dict[str, str]:
    return {AUTH_COOKIE: quote(ticket, safe="")}


def path_segment(value: object) -> str:
    """Escape a node, storage or VM id for use as one URL path segment."""
    return quote(str(value), safe="")
