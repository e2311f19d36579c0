"""Disk module: target disk, partitioning and LUKS encryption."""

from __future__ import annotations

import re
from typing import Mapping, Optional

from nixwizard.inputs.primitive import is_true
from nixwizard.lib.blocks import nix_string
from nixwizard.lib.fields import FieldRegistry
from nixwizard.lib.modules import Module

__all__ = ["DiskModule", "partition_path"]

ENCRYPTED = "ENCRYPTION==true"
KEY_METHODS = "urandom|openssl|manual"

_NUMBERED_DEVICE = re.compile(r".*[0-9]")


def partition_path(disk: str, number: int) -> str:
    """Device path of partition ``number`` on ``disk``.

    Devices whose name ends in a digit (``nvme0n1``) take a ``p`` separator.
    """
    separator = "p" if _NUMBERED_DEVICE.fullmatch(disk) else ""
    return f"{disk}{separator}{number}"


class DiskModule(Module):
    name = "disk"
    title = "Disk"
    priority = 30

    def init_fields(self, fields: FieldRegistry) -> None:
        disk_type = fields.input_types.get("disk")
        first_disk = getattr(disk_type, "first_disk", None)

        self.declare(
            fields,
            "DISK_TARGET",
            "Target Disk",
            "disk",
            required=True,
            default=first_disk() if first_disk else "",
        )
        self.declare(
            fields, "ENCRYPTION", "Enable Encryption", "toggle", required=True, default="true"
        )
        self.declare(
            fields,
            "ENCRYPTION_KEY_METHOD",
            "Encryption Key Method",
            "choice",
            default="urandom",
            options={"options": KEY_METHODS},
            visible_all=ENCRYPTED,
        )
        self.declare(
            fields,
            "ENCRYPTION_KEY_LENGTH",
            "Encryption Key Length",
            "int",
            default="64",
            options={"min": 32, "max": 512},
            visible_all=ENCRYPTED,
        )
        self.declare(
            fields,
            "ENCRYPTION_USE_PASSPHRASE",
            "Use Passphrase",
            "toggle",
            default="false",
            visible_all=ENCRYPTED,
        )
        self.declare(
            fields,
            "ENCRYPTION_PASSPHRASE_METHOD",
            "Passphrase Generation Method",
            "choice",
            default="urandom",
            options={"options": KEY_METHODS},
            visible_all=f"{ENCRYPTED} ENCRYPTION_USE_PASSPHRASE==true",
        )
        self.declare(
            fields,
            "ENCRYPTION_PASSPHRASE_LENGTH",
            "Passphrase Length",
            "int",
            default="32",
            options={"min": 16, "max": 128},
            visible_all=f"{ENCRYPTED} ENCRYPTION_USE_PASSPHRASE==true",
        )
        self.declare(
            fields,
            "PARTITION_SCHEME",
            "Partition Scheme",
            "choice",
            default="auto",
            options={"options": "auto|manual"},
        )

    def generate(self, values: Mapping[str, str]) -> Optional[str]:
        if not is_true(values.get("ENCRYPTION", "")):
            return None

        disk = values.get("DISK_TARGET", "")
        lines = [
            f"# LUKS root on {disk} ({values.get('PARTITION_SCHEME') or 'auto'} partitioning),",
            f"# {values.get('ENCRYPTION_KEY_LENGTH') or '64'} byte key from "
            f"{values.get('ENCRYPTION_KEY_METHOD') or 'urandom'}",
            'boot.initrd.luks.devices."cryptroot" = {',
            f"  device = {nix_string(partition_path(disk, 2))};",
            "  allowDiscards = true;",
            "};",
        ]
        return "\n".join(lines)
