"""Cluster-wide resources and status."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from proxmox_cli.client import ProxmoxClient
from proxmox_cli.models import as_float, as_int, as_str, decode_list


@dataclass(frozen=True)
class ClusterResource:
    """One entry of ``/cluster/resources``: a VM, container, node, storage..."""

    id: str = ""
    type: str = ""
    node: str = ""
    status: str = ""
    name: str = ""
    vmid: int = 0
    maxcpu: int = 0
    cpu: float = 0.0
    maxmem: int = 0
    mem: int = 0
    maxdisk: int = 0
    disk: int = 0
    uptime: int = 0
    level: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ClusterResource:
        return cls(
            id=as_str(raw.get("id")),
            type=as_str(raw.get("type")),
            node=as_str(raw.get("node")),
            status=as_str(raw.get("status")),
            name=as_str(raw.get("name")),
            vmid=as_int(raw.get("vmid")),
            maxcpu=as_int(raw.get("maxcpu")),
            cpu=as_float(raw.get("cpu")),
            maxmem=as_int(raw.get("maxmem")),
            mem=as_int(raw.get("mem")),
            maxdisk=as_int(raw.get("maxdisk")),
            disk=as_int(raw.get("disk")),
            uptime=as_int(raw.get("uptime")),
            level=as_str(raw.get("level")),
        )


@dataclass(frozen=True)
class ClusterStatus:
    type: str = ""
    id: str = ""
    name: str = ""
    nodes: int = 0
    quorate: int = 0
    version: int = 0
    ip: str = ""
    online: int = 0
    local: int = 0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ClusterStatus:
        return cls(
            type=as_str(raw.get("type")),
            id=as_str(raw.get("id")),
            name=as_str(raw.get("name")),
            nodes=as_int(raw.get("nodes")),
            quorate=as_int(raw.get("quorate")),
            version=as_int(raw.get("version")),
            ip=as_str(raw.get("ip")),
            online=as_int(raw.get("online")),
            local=as_int(raw.get("local")),
        )


def list_resources(client: ProxmoxClient, resource_type: str | None = None) -> list[ClusterResource]:
    """Return cluster resources, optionally only those of ``resource_type``."""
    resources = decode_list(
        client.get("cluster/resources"), ClusterResource.from_dict, "cluster resources",
    )
    if resource_type:
        resources = [r for r in resources if r.type == resource_type]
    return resources


def get_cluster_status(client: ProxmoxClient) -> list[ClusterStatus]:
    return decode_list(client.get("cluster/status"), ClusterStatus.from_dict, "cluster status")
