"""Command-line interface for the Proxmox VE API.

Usage examples:

  # Log in and store a session in ~/.proxmox/session
  python -m proxmox_cli.cli login --server pve1.lab --username root

  # Renew the stored ticket
  python -m proxmox_cli.cli validate

  # Cluster nodes
  python -m proxmox_cli.cli nodes list
  python -m proxmox_cli.cli nodes status --name pve1

  # Virtual machines
  python -m proxmox_cli.cli vm list --node pve1
  python -m proxmox_cli.cli vm start --node pve1 --vmid 100

  # Storage and cluster
  python -m proxmox_cli.cli storage content --node pve1 --storage local
  python -m proxmox_cli.cli cluster resources --type qemu

  # Self-signed certificates
  python -m proxmox_cli.cli --trust nodes list
"""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import sys
from pathlib import Path

from proxmox_cli import cluster, nodes, storage, vms
from proxmox_cli.auth import AuthManager
from proxmox_cli.client import HttpTransport, ProxmoxClient
from proxmox_cli.config import Settings, configure_logging, load_settings
from proxmox_cli.exceptions import ProxmoxCliError
from proxmox_cli.formatting import (
    format_bytes,
    format_percent,
    format_ratio,
    format_uptime,
    print_table,
    yes_no,
)
from proxmox_cli.session import SessionStore

logger = logging.getLogger(__name__)

_RULE = "=" * 80


def _build_client(settings: Settings) -> ProxmoxClient:
    return ProxmoxClient(HttpTransport(trust=settings.trust), SessionStore())


def _build_auth(settings: Settings) -> AuthManager:
    return AuthManager(HttpTransport(trust=settings.trust), SessionStore())


def _read_password(args: argparse.Namespace) -> str:
    password = args.password or os.environ.get("PROXMOX_PASSWORD", "")
    if not password:
        password = getpass.getpass("Enter Password: ")
    return password


# --- Sub-commands ---

def cmd_login(args: argparse.Namespace) -> None:
    password = _read_password(args)
    _build_auth(args.settings).login(
        args.server, args.port, args.http_scheme, args.username, password,
    )
    print("Authenticated!")


def cmd_validate(args: argparse.Namespace) -> None:
    if _build_auth(args.settings).validate():
        print("Session is valid.")
    else:
        print("Session is invalid.")


def cmd_nodes_list(args: argparse.Namespace) -> None:
    items = nodes.list_nodes(_build_client(args.settings))
    if not items:
        print("No nodes found")
        return
    print_table(
        ("NODE", "STATUS", "CPU %", "MEMORY", "UPTIME"),
        (20, 10, 10, 15, 15),
        (
            (n.node, n.status, format_percent(n.cpu), format_ratio(n.mem, n.maxmem),
             format_uptime(n.uptime))
            for n in items
        ),
    )


def cmd_nodes_status(args: argparse.Namespace) -> None:
    status = nodes.get_node_status(_build_client(args.settings), args.name)
    load = ", ".join(f"{v:.2f}" for v in status.loadavg) or "N/A"
    print(f"Node Status for: {args.name}")
    print(_RULE)
    print(f"CPU Usage:       {format_percent(status.cpu)}")
    print(f"CPU Model:       {status.cpuinfo.model}")
    print(f"CPU Cores:       {status.cpuinfo.cpus}")
    print(f"Memory Used:     {format_bytes(status.memory.used)} / "
          f"{format_bytes(status.memory.total)} ({format_ratio(status.memory.used, status.memory.total)})")
    print(f"Swap Used:       {format_bytes(status.swap.used)} / {format_bytes(status.swap.total)}")
    print(f"Root FS Used:    {format_bytes(status.rootfs.used)} / "
          f"{format_bytes(status.rootfs.total)} ({format_ratio(status.rootfs.used, status.rootfs.total)})")
    print(f"Uptime:          {format_uptime(status.uptime)}")
    print(f"Load Average:    {load}")
    print(f"Kernel Version:  {status.kversion}")
    print(f"PVE Version:     {status.pveversion}")


def cmd_nodes_version(args: argparse.Namespace) -> None:
    version = nodes.get_node_version(_build_client(args.settings), args.name)
    print(f"Node: {args.name}")
    print(f"Version: {version.version}")
    print(f"Release: {version.release}")
    print(f"Repo ID: {version.repoid}")


def cmd_vm_list(args: argparse.Namespace) -> None:
    items = vms.list_vms(_build_client(args.settings), args.node)
    if not items:
        print(f"No VMs found on node: {args.node}")
        return
    print_table(
        ("VMID", "NAME", "STATUS", "CPU %", "MEMORY", "UPTIME"),
        (8, 20, 10, 10, 15, 15),
        (
            (vm.vmid, vm.name, vm.status, format_percent(vm.cpu),
             format_ratio(vm.mem, vm.maxmem), format_uptime(vm.uptime))
            for vm in items
        ),
    )


def cmd_vm_status(args: argparse.Namespace) -> None:
    status = vms.get_vm_status(_build_client(args.settings), args.node, args.vmid)
    print(f"VM Status for VMID: {args.vmid}")
    print(_RULE)
    print(f"Name:            {status.name}")
    print(f"Status:          {status.status}")
    print(f"QMP Status:      {status.qmpstatus}")
    print(f"CPU Usage:       {format_percent(status.cpu)}")
    print(f"CPU Cores:       {status.cpus}")
    if status.maxmem > 0:
        print(f"Memory Used:     {format_bytes(status.mem)} / {format_bytes(status.maxmem)} "
              f"({format_ratio(status.mem, status.maxmem)})")
    print(f"Uptime:          {format_uptime(status.uptime)}")


def cmd_vm_config(args: argparse.Namespace) -> None:
    config = vms.get_vm_config(_build_client(args.settings), args.node, args.vmid)
    print(f"VM Config for VMID: {args.vmid}")
    print(_RULE)
    print(f"Name:            {config.name}")
    print(f"Memory:          {config.memory} MB")
    print(f"Cores:           {config.cores}")
    print(f"Sockets:         {config.sockets}")
    print(f"OS Type:         {config.ostype}")
    print(f"Boot:            {config.boot or config.bootdisk}")
    if config.description:
        print(f"Description:     {config.description}")


def cmd_vm_action(args: argparse.Namespace) -> None:
    task_id = vms.vm_action(_build_client(args.settings), args.node, args.vmid, args.action)
    print(f"VM {args.vmid} {args.action} initiated. Task ID: {task_id}")


def cmd_vm_delete(args: argparse.Namespace) -> None:
    task_id = vms.delete_vm(_build_client(args.settings), args.node, args.vmid)
    print(f"VM {args.vmid} deletion initiated. Task ID: {task_id}")


def cmd_storage_list(args: argparse.Namespace) -> None:
    items = storage.list_storage(_build_client(args.settings))
    if not items:
        print("No storage found")
        return
    print_table(
        ("STORAGE", "TYPE", "SHARED", "ACTIVE", "CONTENT"),
        (20, 15, 10, 10, 30),
        ((s.storage, s.type, yes_no(s.shared), yes_no(s.active), s.content) for s in items),
    )


def cmd_storage_content(args: argparse.Namespace) -> None:
    items = storage.list_storage_content(_build_client(args.settings), args.node, args.storage)
    if not items:
        print(f"No content found in storage: {args.storage}")
        return
    print_table(
        ("VOLUME ID", "FORMAT", "SIZE", "VMID"),
        (50, 15, 15, 8),
        ((c.volid, c.format, format_bytes(c.size), c.vmid or "-") for c in items),
    )


def cmd_cluster_resources(args: argparse.Namespace) -> None:
    items = cluster.list_resources(_build_client(args.settings), args.type)
    if not items:
        if args.type:
            print(f"No resources found of type: {args.type}")
        else:
            print("No resources found")
        return
    print_table(
        ("TYPE", "ID", "NAME", "NODE", "STATUS", "UPTIME"),
        (8, 20, 20, 10, 10, 15),
        ((r.type, r.id, r.name, r.node, r.status, format_uptime(r.uptime)) for r in items),
    )


def cmd_cluster_status(args: argparse.Namespace) -> None:
    statuses = cluster.get_cluster_status(_build_client(args.settings))
    if not statuses:
        print("No cluster status found")
        return
    print("Cluster Status:")
    print(_RULE)
    for status in statuses:
        print(f"Type: {status.type}")
        if status.name:
            print(f"Name: {status.name}")
        if status.type == "cluster":
            print(f"Nodes: {status.nodes}")
            print(f"Quorate: {status.quorate}")
            print(f"Version: {status.version}")
        if status.ip:
            print(f"IP: {status.ip}")
        if status.online == 1:
            print("Online: Yes")
        print("---")


# --- Argument parser ---

def _add_vm_target(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--node", "-n", required=True, help="Name of the node")
    parser.add_argument("--vmid", "-i", type=int, required=True, help="VM ID")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proxmox-cli",
        description="A command-line client for the Proxmox VE API",
    )

    # Global args
    parser.add_argument(
        "--trust", "-t", action="store_true", default=False,
        help="Trust SSL certificates without verification",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", default=False,
        help="Log HTTP requests and debug output to stderr",
    )
    parser.add_argument("--config", type=Path, help="Path to a YAML settings file")

    sub = parser.add_subparsers(dest="command", required=True)

    # login
    p_login = sub.add_parser("login", help="Log in to a Proxmox server")
    p_login.add_argument("--server", "-s", required=True, help="Proxmox server hostname")
    p_login.add_argument("--username", "-u", required=True, help="Username for Proxmox")
    p_login.add_argument("--port", "-P", type=int, default=8006, help="Proxmox server port")
    p_login.add_argument(
        "--http-scheme", "-S", default="https", choices=["http", "https"],
        help="HTTP scheme (http or https)",
    )
    p_login.add_argument("--password", help="Password (prompted for when omitted)")

    # validate
    sub.add_parser("validate", help="Validate and renew the current session")

    # nodes
    p_nodes = sub.add_parser("nodes", help="Manage Proxmox cluster nodes")
    nodes_sub = p_nodes.add_subparsers(dest="action", required=True)
    nodes_sub.add_parser("list", help="List all cluster nodes")
    for name, help_text in (
        ("status", "Get detailed status for a specific node"),
        ("version", "Get version information for a specific node"),
    ):
        p = nodes_sub.add_parser(name, help=help_text)
        p.add_argument("--name", "-n", required=True, help="Name of the node")

    # vm
    p_vm = sub.add_parser("vm", help="Manage Proxmox virtual machines (QEMU)")
    vm_sub = p_vm.add_subparsers(dest="action", required=True)
    p_vm_list = vm_sub.add_parser("list", help="List all virtual machines on a node")
    p_vm_list.add_argument("--node", "-n", required=True, help="Name of the node")
    _add_vm_target(vm_sub.add_parser("status", help="Get the status of a specific VM"))
    _add_vm_target(vm_sub.add_parser("config", help="Show the configuration of a specific VM"))
    for action in vms.VM_ACTIONS:
        _add_vm_target(vm_sub.add_parser(action, help=f"{action.capitalize()} a virtual machine"))
    _add_vm_target(vm_sub.add_parser("delete", help="Delete a virtual machine"))

    # storage
    p_storage = sub.add_parser("storage", help="Manage Proxmox storage")
    storage_sub = p_storage.add_subparsers(dest="action", required=True)
    storage_sub.add_parser("list", help="List all storage")
    p_content = storage_sub.add_parser("content", help="List content of a specific storage")
    p_content.add_argument("--node", "-n", required=True, help="Name of the node")
    p_content.add_argument("--storage", "-s", required=True, help="Name of the storage")

    # cluster
    p_cluster = sub.add_parser("cluster", help="Manage Proxmox clusters")
    cluster_sub = p_cluster.add_subparsers(dest="action", required=True)
    p_res = cluster_sub.add_parser("resources", help="List all cluster resources")
    p_res.add_argument(
        "--type", "-t", help="Filter by resource type (qemu, lxc, node, storage, ...)",
    )
    cluster_sub.add_parser("status", help="Get cluster status")

    return parser


HANDLERS = {
    ("login", None): cmd_login,
    ("validate", None): cmd_validate,
    ("nodes", "list"): cmd_nodes_list,
    ("nodes", "status"): cmd_nodes_status,
    ("nodes", "version"): cmd_nodes_version,
    ("vm", "list"): cmd_vm_list,
    ("vm", "status"): cmd_vm_status,
    ("vm", "config"): cmd_vm_config,
    ("vm", "delete"): cmd_vm_delete,
    **{("vm", action): cmd_vm_action for action in vms.VM_ACTIONS},
    ("storage", "list"): cmd_storage_list,
    ("storage", "content"): cmd_storage_content,
    ("cluster", "resources"): cmd_cluster_resources,
    ("cluster", "status"): cmd_cluster_status,
}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        args.settings = load_settings(args.config, trust=args.trust, verbose=args.verbose)
        configure_logging(args.settings.log_level)
        handler = HANDLERS[(args.command, getattr(args, "action", None))]
        handler(args)
    except ProxmoxCliError as exc:
        logger.error("%s %s failed: %s", args.command, getattr(args, "action", "") or "", exc)
        sys.exit(f"Error: {exc}")


if __name__ == "__main__":
    main()
