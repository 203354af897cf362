"""Shared fixtures: a temporary session store and a recording fake transport."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from proxmox_cli.client import ProxmoxClient
from proxmox_cli.session import AuthPayload, SessionRecord, SessionStore

TICKET = "PVE:root@pam:6571F0A1::sig+/="
ENCODED_TICKET = "PVE%3Aroot%40pam%3A6571F0A1%3A%3Asig%2B%2F%3D"
CSRF = "6571F0A1:csrf-token"


class FakeResponse:
    def __init__(self, body: str):
        self.content = body.encode()
        self.text = body
        self.closed = False

    def close(self) -> None:
        self.closed = True


@dataclass
class Call:
    method: str
    url: str
    payload: str | None
    headers: dict
    cookies: dict


@dataclass
class FakeTransport:
    """Records every request and answers with a canned body."""

    body: str = '{"data": null}'
    error: Exception | None = None
    calls: list[Call] = field(default_factory=list)
    responses: list[FakeResponse] = field(default_factory=list)

    def _record(self, method, url, payload, headers, cookies) -> None:
        self.calls.append(Call(method, url, payload, dict(headers or {}), dict(cookies or {})))
        if self.error is not None:
            raise self.error

    def get(self, url, headers=None, cookies=None):
        self._record("GET", url, None, headers, cookies)
        resp = FakeResponse(self.body)
        self.responses.append(resp)
        return resp

    def post(self, url, payload="", headers=None, cookies=None):
        self._record("POST", url, payload, headers, cookies)
        return self.body

    def put(self, url, payload="", headers=None, cookies=None):
        self._record("PUT", url, payload, headers, cookies)
        return self.body

    def delete(self, url, headers=None, cookies=None):
        self._record("DELETE", url, None, headers, cookies)
        return self.body


@pytest.fixture
def session_path(tmp_path):
    return tmp_path / ".proxmox" / "session"


@pytest.fixture
def store(session_path) -> SessionStore:
    return SessionStore(session_path)


@pytest.fixture
def record() -> SessionRecord:
    return SessionRecord(
        server="pve1.lab",
        port=8006,
        scheme="https",
        auth=AuthPayload(username="root@pam", ticket=TICKET, csrf_token=CSRF),
    )


@pytest.fixture
def saved_session(store, record) -> SessionRecord:
    store.write(record)
    return record


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport, store) -> ProxmoxClient:
    return ProxmoxClient(transport, store)
