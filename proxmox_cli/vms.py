"""QEMU virtual machines: inspection and power-state actions.

Actions return the UPID of the task the cluster started; completion is not
awaited.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from proxmox_cli.client import ProxmoxClient, path_segment
from proxmox_cli.models import (
    as_float,
    as_int,
    as_str,
    decode_list,
    decode_task_id,
    require_object,
)

logger = logging.getLogger(__name__)

# Power actions accepted by /nodes/{node}/qemu/{vmid}/status/{action}
VM_ACTIONS = ("start", "stop", "shutdown", "reboot", "reset", "suspend", "resume")


@dataclass(frozen=True)
class VM:
    vmid: int = 0
    name: str = ""
    status: str = ""
    cpu: float = 0.0
    cpus: int = 0
    maxcpu: int = 0
    mem: int = 0
    maxmem: int = 0
    disk: int = 0
    maxdisk: int = 0
    uptime: int = 0
    node: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> VM:
        return cls(
            vmid=as_int(raw.get("vmid")),
            name=as_str(raw.get("name")),
            status=as_str(raw.get("status")),
            cpu=as_float(raw.get("cpu")),
            cpus=as_int(raw.get("cpus")),
            maxcpu=as_int(raw.get("maxcpu")),
            mem=as_int(raw.get("mem")),
            maxmem=as_int(raw.get("maxmem")),
            disk=as_int(raw.get("disk")),
            maxdisk=as_int(raw.get("maxdisk")),
            uptime=as_int(raw.get("uptime")),
            node=as_str(raw.get("node")),
        )


@dataclass(frozen=True)
class VMStatus:
    status: str = ""
    vmid: int = 0
    cpu: float = 0.0
    cpus: int = 0
    mem: int = 0
    maxmem: int = 0
    uptime: int = 0
    name: str = ""
    qmpstatus: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> VMStatus:
        return cls(
            status=as_str(raw.get("status")),
            vmid=as_int(raw.get("vmid")),
            cpu=as_float(raw.get("cpu")),
            cpus=as_int(raw.get("cpus")),
            mem=as_int(raw.get("mem")),
            maxmem=as_int(raw.get("maxmem")),
            uptime=as_int(raw.get("uptime")),
            name=as_str(raw.get("name")),
            qmpstatus=as_str(raw.get("qmpstatus")),
        )


@dataclass(frozen=True)
class VMConfig:
    """Subset of ``/nodes/{node}/qemu/{vmid}/config``."""

    name: str = ""
    memory: int = 0
    cores: int = 0
    sockets: int = 0
    ostype: str = ""
    boot: str = ""
    bootdisk: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> VMConfig:
        return cls(
            name=as_str(raw.get("name")),
            memory=as_int(raw.get("memory")),
            cores=as_int(raw.get("cores")),
            sockets=as_int(raw.get("sockets")),
            ostype=as_str(raw.get("ostype")),
            boot=as_str(raw.get("boot")),
            bootdisk=as_str(raw.get("bootdisk")),
            description=as_str(raw.get("description")),
        )


def _vm_path(node: str, vmid: int) -> str:
    return f"nodes/{path_segment(node)}/qemu/{path_segment(vmid)}"


def list_vms(client: ProxmoxClient, node: str) -> list[VM]:
    """Return the virtual machines hosted on ``node``."""
    return decode_list(client.get(f"nodes/{path_segment(node)}/qemu"), VM.from_dict, "VM list")


def get_vm_status(client: ProxmoxClient, node: str, vmid: int) -> VMStatus:
    data = client.get(f"{_vm_path(node, vmid)}/status/current")
    return VMStatus.from_dict(require_object(data, "VM status"))


def get_vm_config(client: ProxmoxClient, node: str, vmid: int) -> VMConfig:
    data = client.get(f"{_vm_path(node, vmid)}/config")
    return VMConfig.from_dict(require_object(data, "VM config"))


def vm_action(client: ProxmoxClient, node: str, vmid: int, action: str) -> str:
    """POST a power action and return the task identifier."""
    if action not in VM_ACTIONS:
        raise ValueError(f"Invalid VM action '{action}'. Must be one of {VM_ACTIONS}")
    logger.info("Requesting %s of VM %s on %s", action, vmid, node)
    return decode_task_id(client.post(f"{_vm_path(node, vmid)}/status/{action}"))


def start_vm(client: ProxmoxClient, node: str, vmid: int) -> str:
    return vm_action(client, node, vmid, "start")


def stop_vm(client: ProxmoxClient, node: str, vmid: int) -> str:
    """Hard stop, like pulling the power cord."""
    return vm_action(client, node, vmid, "stop")


def shutdown_vm(client: ProxmoxClient, node: str, vmid: int) -> str:
    """Ask the guest OS to power off through ACPI."""
    return vm_action(client, node, vmid, "shutdown")


def reboot_vm(client: ProxmoxClient, node: str, vmid: int) -> str:
    return vm_action(client, node, vmid, "reboot")


def reset_vm(client: ProxmoxClient, node: str, vmid: int) -> str:
    return vm_action(client, node, vmid, "reset")


def suspend_vm(client: ProxmoxClient, node: str, vmid: int) -> str:
    return vm_action(client, node, vmid, "suspend")


def resume_vm(client: ProxmoxClient, node: str, vmid: int) -> str:
    return vm_action(client, node, vmid, "resume")


def delete_vm(client: ProxmoxClient, node: str, vmid: int) -> str:
    """Destroy the VM and its disks; returns the task identifier."""
    logger.info("Requesting deletion of VM %s on %s", vmid, node)
    return decode_task_id(client.delete(_vm_path(node, vmid)))
