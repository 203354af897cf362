"""Cluster node listing and per-node status."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from proxmox_cli.client import ProxmoxClient, path_segment
from proxmox_cli.models import (
    as_float,
    as_float_tuple,
    as_int,
    as_str,
    decode_list,
    require_object,
)


@dataclass(frozen=True)
class Node:
    node: str = ""
    status: str = ""
    cpu: float = 0.0
    maxcpu: int = 0
    mem: int = 0
    maxmem: int = 0
    uptime: int = 0
    level: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Node:
        return cls(
            node=as_str(raw.get("node")),
            status=as_str(raw.get("status")),
            cpu=as_float(raw.get("cpu")),
            maxcpu=as_int(raw.get("maxcpu")),
            mem=as_int(raw.get("mem")),
            maxmem=as_int(raw.get("maxmem")),
            uptime=as_int(raw.get("uptime")),
            level=as_str(raw.get("level")),
        )


@dataclass(frozen=True)
class NodeCPUInfo:
    cpus: int = 0
    model: str = ""
    sockets: int = 0
    mhz: str = ""


@dataclass(frozen=True)
class NodeMemoryInfo:
    used: int = 0
    total: int = 0
    free: int = 0


@dataclass(frozen=True)
class NodeRootFSInfo:
    used: int = 0
    total: int = 0
    avail: int = 0


@dataclass(frozen=True)
class NodeSwapInfo:
    used: int = 0
    total: int = 0
    free: int = 0


@dataclass(frozen=True)
class NodeStatus:
    """Detailed status of one node (``/nodes/{node}/status``)."""

    cpu: float = 0.0
    cpuinfo: NodeCPUInfo = field(default_factory=NodeCPUInfo)
    memory: NodeMemoryInfo = field(default_factory=NodeMemoryInfo)
    rootfs: NodeRootFSInfo = field(default_factory=NodeRootFSInfo)
    swap: NodeSwapInfo = field(default_factory=NodeSwapInfo)
    uptime: int = 0
    loadavg: tuple[float, ...] = ()
    kversion: str = ""
    wait: float = 0.0
    pveversion: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> NodeStatus:
        cpuinfo = require_object(raw.get("cpuinfo"), "cpuinfo")
        memory = require_object(raw.get("memory"), "memory")
        rootfs = require_object(raw.get("rootfs"), "rootfs")
        swap = require_object(raw.get("swap"), "swap")
        return cls(
            cpu=as_float(raw.get("cpu")),
            cpuinfo=NodeCPUInfo(
                cpus=as_int(cpuinfo.get("cpus")),
                model=as_str(cpuinfo.get("model")),
                sockets=as_int(cpuinfo.get("sockets")),
                mhz=as_str(cpuinfo.get("mhz")),
            ),
            memory=NodeMemoryInfo(
                used=as_int(memory.get("used")),
                total=as_int(memory.get("total")),
                free=as_int(memory.get("free")),
            ),
            rootfs=NodeRootFSInfo(
                used=as_int(rootfs.get("used")),
                total=as_int(rootfs.get("total")),
                avail=as_int(rootfs.get("avail")),
            ),
            swap=NodeSwapInfo(
                used=as_int(swap.get("used")),
                total=as_int(swap.get("total")),
                free=as_int(swap.get("free")),
            ),
            uptime=as_int(raw.get("uptime")),
            loadavg=as_float_tuple(raw.get("loadavg")),
            kversion=as_str(raw.get("kversion")),
            wait=as_float(raw.get("wait")),
            pveversion=as_str(raw.get("pveversion")),
        )


@dataclass(frozen=True)
class NodeVersion:
    version: str = ""
    release: str = ""
    repoid: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> NodeVersion:
        return cls(
            version=as_str(raw.get("version")),
            release=as_str(raw.get("release")),
            repoid=as_str(raw.get("repoid")),
        )


def list_nodes(client: ProxmoxClient) -> list[Node]:
    """Return every node known to the cluster."""
    return decode_list(client.get("nodes"), Node.from_dict, "node list")


def get_node_status(client: ProxmoxClient, node: str) -> NodeStatus:
    data = client.get(f"nodes/{path_segment(node)}/status")
    return NodeStatus.from_dict(require_object(data, "node status"))


def get_node_version(client: ProxmoxClient, node: str) -> NodeVersion:
    data = client.get(f"nodes/{path_segment(node)}/version")
    return NodeVersion.from_dict(require_object(data, "node version"))
