"""Tests for proxmox_cli.session module."""

from __future__ import annotations

import json

import pytest

from conftest import CSRF, TICKET
from proxmox_cli.exceptions import (
    DecodeError,
    PersistenceError,
    SessionInvalid,
    SessionMissing,
)
from proxmox_cli.session import (
    AuthPayload,
    ReplaceAuthPayload,
    SessionRecord,
    SessionStore,
    SetPort,
    SetScheme,
    SetServer,
)


def _raw(**overrides):
    raw = {
        "server": "pve1.lab",
        "port": 8006,
        "httpScheme": "https",
        "response": {
            "data": {
                "username": "root@pam",
                "ticket": TICKET,
                "CSRFPreventionToken": CSRF,
            }
        },
    }
    data = raw["response"]["data"]
    for key, value in overrides.items():
        if key in data:
            data[key] = value
        else:
            raw[key] = value
    return raw


class TestWriteRead:
    def test_round_trip(self, store, record):
        store.write(record)
        assert store.read() == record

    def test_file_layout_mirrors_api_envelope(self, store, record, session_path):
        store.write(record)
        on_disk = json.loads(session_path.read_text())
        assert on_disk == _raw()

    def test_write_creates_parent_directory(self, tmp_path, record):
        path = tmp_path / "a" / "b" / "session"
        SessionStore(path).write(record)
        assert path.exists()

    def test_write_leaves_no_temp_files(self, store, record, session_path):
        store.write(record)
        store.write(record)
        assert [p.name for p in session_path.parent.iterdir()] == ["session"]

    def test_write_failure_raises_persistence_error(self, tmp_path, record):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(PersistenceError):
            SessionStore(blocker / "session").write(record)

    def test_default_path_is_under_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert SessionStore().path == tmp_path / ".proxmox" / "session"


class TestReadValidation:
    def test_missing_file_creates_placeholder(self, store, session_path):
        assert not session_path.exists()
        with pytest.raises(SessionMissing):
            store.read()
        assert session_path.exists()
        # the placeholder still does not count as a session
        with pytest.raises(SessionMissing):
            store.read()

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"server": ""}, "missing server"),
            ({"port": 0}, "missing or invalid port"),
            ({"port": -1}, "missing or invalid port"),
            ({"httpScheme": ""}, "missing httpScheme"),
            ({"username": ""}, "missing 'username' field in data"),
            ({"ticket": ""}, "missing 'ticket' field in data"),
            ({"CSRFPreventionToken": ""}, "missing 'CSRFPreventionToken' field in data"),
        ],
    )
    def test_each_missing_field_is_named(self, store, session_path, overrides, message):
        session_path.parent.mkdir(parents=True)
        session_path.write_text(json.dumps(_raw(**overrides)))
        with pytest.raises(SessionInvalid, match=message):
            store.read()

    def test_absent_keys_are_rejected(self, store, session_path):
        session_path.parent.mkdir(parents=True)
        session_path.write_text('{"foo": "bar"}')
        with pytest.raises(SessionInvalid, match="missing server"):
            store.read()

    def test_unsupported_scheme(self, store, session_path):
        session_path.parent.mkdir(parents=True)
        session_path.write_text(json.dumps(_raw(httpScheme="ftp")))
        with pytest.raises(SessionInvalid, match="unsupported httpScheme"):
            store.read()

    def test_malformed_json(self, store, session_path):
        session_path.parent.mkdir(parents=True)
        session_path.write_text("{not json")
        with pytest.raises(SessionInvalid, match="malformed"):
            store.read()

    def test_undecodable_bytes_are_invalid(self, store, session_path):
        session_path.parent.mkdir(parents=True)
        session_path.write_bytes(b"\xff\xfe garbage")
        with pytest.raises(SessionInvalid, match="malformed"):
            store.read()

    def test_complete_record_is_accepted(self, store, session_path):
        session_path.parent.mkdir(parents=True)
        session_path.write_text(json.dumps(_raw()))
        session = store.read()
        assert session.server == "pve1.lab"
        assert session.port == 8006
        assert session.auth.csrf_token == CSRF


class TestUpdate:
    def test_set_server_changes_only_server(self, store, saved_session, session_path):
        before = json.loads(session_path.read_text())
        store.update(SetServer("pve2.lab"))
        after = json.loads(session_path.read_text())
        assert after["server"] == "pve2.lab"
        assert after["port"] == before["port"]
        assert after["httpScheme"] == before["httpScheme"]
        assert after["response"] == before["response"]

    def test_set_port_and_scheme(self, store, saved_session):
        store.update(SetPort(443))
        updated = store.update(SetScheme("http"))
        assert updated.port == 443
        assert updated.scheme == "http"
        assert store.read() == updated

    def test_replace_auth_payload(self, store, saved_session):
        body = json.dumps({
            "data": {"username": "root@pam", "ticket": "PVE:new", "CSRFPreventionToken": "new-csrf"}
        })
        updated = store.update(ReplaceAuthPayload(body))
        assert updated.auth == AuthPayload("root@pam", "PVE:new", "new-csrf")
        assert updated.server == saved_session.server
        assert store.read() == updated

    def test_replace_auth_payload_with_bad_json_keeps_file(self, store, saved_session, session_path):
        before = session_path.read_text()
        with pytest.raises(DecodeError):
            store.update(ReplaceAuthPayload("invalid json"))
        assert session_path.read_text() == before

    def test_update_producing_invalid_record_is_not_written(self, store, saved_session, session_path):
        before = session_path.read_text()
        with pytest.raises(SessionInvalid):
            store.update(ReplaceAuthPayload('{"data": {"username": "root@pam"}}'))
        assert session_path.read_text() == before

    def test_unknown_update_is_rejected(self, store, saved_session):
        with pytest.raises(TypeError):
            store.update("server")

    def test_update_without_session(self, store):
        with pytest.raises(SessionMissing):
            store.update(SetServer("pve2.lab"))


def test_base_url(record):
    assert record.base_url == "https://pve1.lab:8006"


def test_from_dict_ignores_non_integer_port():
    session = SessionRecord.from_dict(_raw(port="8006"))
    with pytest.raises(SessionInvalid, match="port"):
        session.validate()
