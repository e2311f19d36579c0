"""Disk input types and block device discovery."""

from __future__ import annotations

import logging
import os
import re
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from nixwizard.inputs.base import VALID, InputType, Invalid, Outcome, PromptRequest
from nixwizard.lib.options import OptionContext

logger = logging.getLogger(__name__)

__all__ = [
    "DiskInfo",
    "list_disks",
    "is_block_device",
    "format_size",
    "DiskType",
    "DiskSizeType",
]

_DISK_NAME = re.compile(r"sd[a-z]|vd[a-z]|nvme[0-9]+n[0-9]+")
_DISK_SIZE = re.compile(r"[0-9]+[KMGT]?")
_SECTOR_BYTES = 512


@dataclass(frozen=True)
class DiskInfo:
    """A whole-disk block device."""

    path: str
    size_bytes: Optional[int] = None

    @property
    def label(self) -> str:
        size = format_size(self.size_bytes) if self.size_bytes is not None else "unknown"
        return f"{self.path} ({size})"


def format_size(size_bytes: int) -> str:
    """Render a byte count with IEC suffixes (``500G``, ``1.5T``)."""
    size = float(size_bytes)
    for unit in ("B", "K", "M", "G", "T"):
        if size < 1024 or unit == "T":
            break
        size /= 1024
    if unit == "B":
        return f"{int(size)}B"
    text = f"{size:.1f}"
    if text.endswith(".0"):
        text = text[:-2]
    return f"{text}{unit}"


def list_disks(sys_block: str = "/sys/block", dev: str = "/dev") -> List[DiskInfo]:
    """List sdX, vdX and NVMe namespace disks with their sizes.

    Partitions and loop devices are never listed since /sys/block only
    holds whole devices and the name filter skips loops.
    """
    root = Path(sys_block)
    if not root.is_dir():
        logger.debug("No block device directory at %s", sys_block)
        return []

    disks: List[DiskInfo] = []
    for entry in sorted(root.iterdir()):
        if not _DISK_NAME.fullmatch(entry.name):
            continue
        size_bytes: Optional[int] = None
        try:
            size_bytes = int((entry / "size").read_text().strip()) * _SECTOR_BYTES
        except (OSError, ValueError) as e:
            logger.debug("Could not read size of %s: %s", entry.name, e)
        disks.append(DiskInfo(path=str(Path(dev) / entry.name), size_bytes=size_bytes))
    return disks


def is_block_device(path: str) -> bool:
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        return False


class DiskType(InputType):
    """Existing block special device, chosen from a numbered list."""

    name = "disk"
    custom_prompt = True

    def __init__(
        self,
        disk_lister: Optional[Callable[[], List[DiskInfo]]] = None,
        block_device_check: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self._disk_lister = disk_lister or list_disks
        self._is_block_device = block_device_check or is_block_device

    def disks(self) -> List[DiskInfo]:
        return self._disk_lister()

    def first_disk(self) -> str:
        """Path of the first detected disk, or "" when none are found."""
        disks = self.disks()
        return disks[0].path if disks else ""

    def validate(self, value: str, options: OptionContext) -> Outcome:
        if value and self._is_block_device(value):
            return VALID
        return Invalid()

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return f"'{value}' is not a valid block device"

    def prompt(self, console, request: PromptRequest) -> str:
        disks = self.disks()
        console.say("")
        console.say("Available disks:")
        if not disks:
            console.say("  No disks found")
        for index, disk in enumerate(disks, start=1):
            console.say(f"  {index}) {disk.label}")
        console.say("")

        while True:
            value = console.ask(f"  {request.label:<20} [{request.current}]: ").strip()
            if not value:
                value = request.current
            elif value.isdigit() and 1 <= int(value) <= len(disks):
                value = disks[int(value) - 1].path

            error = request.check(value)
            if error is None:
                return value
            console.say(f"    Error: {error}")


class DiskSizeType(InputType):
    name = "disk_size"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        return VALID if _DISK_SIZE.fullmatch(value) else Invalid()

    def prompt_hint(self, options: OptionContext) -> str:
        return "(e.g., 8G, 500M, 1T)"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return "Invalid disk size format (examples: 8G, 500M, 1T, 50G)"
