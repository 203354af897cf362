"""Storage definitions and their content."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from proxmox_cli.client import ProxmoxClient, path_segment
from proxmox_cli.models import as_int, as_str, decode_list


@dataclass(frozen=True)
class Storage:
    storage: str = ""
    type: str = ""
    content: str = ""
    shared: int = 0
    active: int = 0
    enabled: int = 0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Storage:
        return cls(
            storage=as_str(raw.get("storage")),
            type=as_str(raw.get("type")),
            content=as_str(raw.get("content")),
            shared=as_int(raw.get("shared")),
            active=as_int(raw.get("active")),
            enabled=as_int(raw.get("enabled")),
        )


@dataclass(frozen=True)
class StorageContent:
    volid: str = ""
    format: str = ""
    size: int = 0
    used: int = 0
    vmid: int = 0
    ctime: int = 0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> StorageContent:
        return cls(
            volid=as_str(raw.get("volid")),
            format=as_str(raw.get("format")),
            size=as_int(raw.get("size")),
            used=as_int(raw.get("used")),
            vmid=as_int(raw.get("vmid")),
            ctime=as_int(raw.get("ctime")),
        )


def list_storage(client: ProxmoxClient) -> list[Storage]:
    return decode_list(client.get("storage"), Storage.from_dict, "storage list")


def list_storage_content(client: ProxmoxClient, node: str, storage: str) -> list[StorageContent]:
    """Return the volumes held by ``storage`` as seen from ``node``."""
    data = client.get(f"nodes/{path_segment(node)}/storage/{path_segment(storage)}/content")
    return decode_list(data, StorageContent.from_dict, "storage content")
