"""Priority ordered NixOS configuration blocks.

Modules render their part of ``configuration.nix`` as a text block and
register it here with a priority. Blocks are emitted in ascending
priority, ties broken by owner name and then registration order:

    00-09  headers, imports
    10     boot
    20     network
    30     disk
    40     system, region
    50     services (ssh)
    60     packages
    70     security
    80     custom additions
    90     overrides
"""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_PRIORITY",
    "NIXOS_CONFIG_PATH",
    "ConfigBlock",
    "ConfigBlockRegistry",
    "nix_string",
    "nix_bool",
]

DEFAULT_PRIORITY = 50
NIXOS_CONFIG_PATH = "/mnt/etc/nixos/configuration.nix"
NIX_FUNCTION_HEAD = "{ config, pkgs, ... }:"


def nix_string(value: str) -> str:
    """Quote a value as a Nix string literal."""
    escaped = value.replace("\\", "\\\\").replace("\"", "\\\"").replace("${", "\\${")
    return f'"{escaped}"'


def nix_bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass(frozen=True)
class ConfigBlock:
    """One rendered fragment of the output document."""

    owner: str
    text: str
    priority: int = DEFAULT_PRIORITY
    sequence: int = 0

    @property
    def sort_key(self) -> tuple:
        return (self.priority, self.owner, self.sequence)


class ConfigBlockRegistry:
    """Blocks registered during one generation pass."""

    def __init__(self) -> None:
        self._blocks: List[ConfigBlock] = []
        self.header: Optional[str] = None

    def register(self, owner: str, text: str, priority: int = DEFAULT_PRIORITY) -> ConfigBlock:
        block = ConfigBlock(
            owner=owner,
            text=text.strip("\n"),
            priority=priority,
            sequence=len(self._blocks),
        )
        self._blocks.append(block)
        logger.debug("Registered config block: %s (priority: %d)", owner, priority)
        return block

    def clear(self) -> None:
        self._blocks.clear()
        self.header = None
        logger.debug("Cleared all config blocks")

    def __len__(self) -> int:
        return len(self._blocks)

    def blocks(self) -> List[ConfigBlock]:
        return sorted(self._blocks, key=lambda b: b.sort_key)

    def render_all(self) -> str:
        """Concatenate block texts in priority order, separated by a blank line."""
        return "\n\n".join(block.text for block in self.blocks())

    def render_document(self, header: Optional[str] = None) -> str:
        """Render a complete NixOS module wrapping every block.

        Args:
            header: Comment text placed above the module; lines not already
                starting with ``#`` are commented out. Defaults to
                ``self.header``.
        """
        lines: List[str] = []

        header = header if header is not None else self.header
        if header:
            for line in header.splitlines():
                lines.append(line if line.startswith("#") else f"# {line}".rstrip())
            lines.append("")

        lines.append(NIX_FUNCTION_HEAD)
        lines.append("")
        lines.append("{")
        for block in self.blocks():
            lines.append(f"  # === {block.owner} ===")
            lines.append(textwrap.indent(block.text, "  "))
            lines.append("")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def write(
        self,
        path: Union[str, Path] = NIXOS_CONFIG_PATH,
        header: Optional[str] = None,
    ) -> Path:
        """Write the rendered document, creating parent directories."""
        output = Path(path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(self.render_document(header), encoding="utf-8")
        logger.info("NixOS configuration written to: %s", output)
        return output
