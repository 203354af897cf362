"""Tests for proxmox_cli.cli module."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from proxmox_cli import cli
from proxmox_cli.cluster import ClusterResource
from proxmox_cli.exceptions import SessionMissing
from proxmox_cli.nodes import Node
from proxmox_cli.storage import StorageContent


@pytest.fixture(autouse=True)
def _quiet_env(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("PROXMOX_TRUST", raising=False)
    monkeypatch.delenv("PROXMOX_LOG_LEVEL", raising=False)
    monkeypatch.delenv("PROXMOX_PASSWORD", raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)


class TestParser:
    def test_login_defaults(self):
        args = cli.build_parser().parse_args(["login", "-s", "pve1", "-u", "root"])
        assert (args.server, args.username, args.port, args.http_scheme) == ("pve1", "root", 8006, "https")

    def test_vm_action_requires_target(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["vm", "start", "--node", "pve1"])

    def test_every_vm_action_has_a_handler(self):
        for action in ("start", "stop", "shutdown", "reboot", "reset", "suspend", "resume", "delete"):
            args = cli.build_parser().parse_args(["vm", action, "-n", "pve1", "-i", "100"])
            assert (args.command, args.action) in cli.HANDLERS

    def test_global_trust_flag(self):
        args = cli.build_parser().parse_args(["-t", "cluster", "resources", "-t", "qemu"])
        assert args.trust is True
        assert args.type == "qemu"


class TestLogin:
    def test_prompts_for_password(self, capsys):
        auth = MagicMock()
        with (
            patch("proxmox_cli.cli._build_auth", return_value=auth),
            patch("proxmox_cli.cli.getpass.getpass", return_value="secret") as mock_getpass,
        ):
            cli.main(["login", "-s", "pve1", "-u", "root@pam"])
        mock_getpass.assert_called_once()
        auth.login.assert_called_once_with("pve1", 8006, "https", "root@pam", "secret")
        assert "Authenticated!" in capsys.readouterr().out

    def test_password_from_env(self, monkeypatch):
        monkeypatch.setenv("PROXMOX_PASSWORD", "fromenv")
        auth = MagicMock()
        with (
            patch("proxmox_cli.cli._build_auth", return_value=auth),
            patch("proxmox_cli.cli.getpass.getpass") as mock_getpass,
        ):
            cli.main(["login", "-s", "pve1", "-u", "root@pam", "-P", "443", "-S", "http"])
        mock_getpass.assert_not_called()
        auth.login.assert_called_once_with("pve1", 443, "http", "root@pam", "fromenv")


@pytest.mark.parametrize("valid, message", [(True, "Session is valid."), (False, "Session is invalid.")])
def test_validate(valid, message, capsys):
    auth = MagicMock()
    auth.validate.return_value = valid
    with patch("proxmox_cli.cli._build_auth", return_value=auth):
        cli.main(["validate"])
    assert message in capsys.readouterr().out


class TestResourceCommands:
    def test_nodes_list_table(self, capsys):
        nodes = [Node(node="pve1", status="online", cpu=0.5, mem=1, maxmem=4, uptime=3660)]
        with (
            patch("proxmox_cli.cli._build_client"),
            patch("proxmox_cli.cli.nodes.list_nodes", return_value=nodes),
        ):
            cli.main(["nodes", "list"])
        out = capsys.readouterr().out
        assert "NODE" in out
        assert "pve1" in out
        assert "50.00%" in out
        assert "25.00%" in out
        assert "1h 1m" in out

    def test_nodes_list_empty(self, capsys):
        with (
            patch("proxmox_cli.cli._build_client"),
            patch("proxmox_cli.cli.nodes.list_nodes", return_value=[]),
        ):
            cli.main(["nodes", "list"])
        assert "No nodes found" in capsys.readouterr().out

    def test_vm_start_prints_task_id(self, capsys):
        with (
            patch("proxmox_cli.cli._build_client") as mock_build,
            patch("proxmox_cli.cli.vms.vm_action", return_value="UPID:pve1:qmstart") as mock_action,
        ):
            cli.main(["vm", "start", "-n", "pve1", "-i", "100"])
        mock_action.assert_called_once_with(mock_build.return_value, "pve1", 100, "start")
        assert "VM 100 start initiated. Task ID: UPID:pve1:qmstart" in capsys.readouterr().out

    def test_vm_delete(self, capsys):
        with (
            patch("proxmox_cli.cli._build_client"),
            patch("proxmox_cli.cli.vms.delete_vm", return_value="UPID:del"),
        ):
            cli.main(["vm", "delete", "-n", "pve1", "-i", "100"])
        assert "VM 100 deletion initiated. Task ID: UPID:del" in capsys.readouterr().out

    def test_storage_content_shows_dash_without_vmid(self, capsys):
        contents = [StorageContent(volid="local:iso/a.iso", format="iso", size=2048)]
        with (
            patch("proxmox_cli.cli._build_client"),
            patch("proxmox_cli.cli.storage.list_storage_content", return_value=contents),
        ):
            cli.main(["storage", "content", "-n", "pve1", "-s", "local"])
        row = capsys.readouterr().out.splitlines()[-1]
        assert row.startswith("local:iso/a.iso")
        assert "2.00 KB" in row
        assert row.rstrip().endswith("-")

    def test_cluster_resources_filter_message(self, capsys):
        with (
            patch("proxmox_cli.cli._build_client"),
            patch("proxmox_cli.cli.cluster.list_resources", return_value=[]) as mock_list,
        ):
            cli.main(["cluster", "resources", "--type", "lxc"])
        assert mock_list.call_args.args[1] == "lxc"
        assert "No resources found of type: lxc" in capsys.readouterr().out

    def test_cluster_resources_table(self, capsys):
        resources = [ClusterResource(id="qemu/100", type="qemu", name="web", node="pve1", status="running")]
        with (
            patch("proxmox_cli.cli._build_client"),
            patch("proxmox_cli.cli.cluster.list_resources", return_value=resources),
        ):
            cli.main(["cluster", "resources"])
        assert "qemu/100" in capsys.readouterr().out


def test_errors_exit_with_message():
    with (
        patch("proxmox_cli.cli._build_client"),
        patch("proxmox_cli.cli.nodes.list_nodes", side_effect=SessionMissing("no session found")),
    ):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["nodes", "list"])
    assert excinfo.value.code == "Error: no session found"


def test_trust_flag_reaches_transport():
    with (
        patch("proxmox_cli.cli.HttpTransport") as mock_transport,
        patch("proxmox_cli.cli.nodes.list_nodes", return_value=[]),
    ):
        cli.main(["--trust", "nodes", "list"])
    mock_transport.assert_called_once_with(trust=True)
