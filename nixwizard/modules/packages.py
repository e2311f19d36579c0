"""Packages module: system packages and Nix flakes."""

from __future__ import annotations

from typing import List, Mapping, Optional

from nixwizard.inputs.primitive import is_true
from nixwizard.lib.fields import FieldRegistry
from nixwizard.lib.modules import Module

__all__ = ["PackagesModule"]

# Space separated attribute names from nixpkgs
PACKAGE_LIST = r"^[A-Za-z0-9_.+ -]*$"


class PackagesModule(Module):
    name = "packages"
    title = "Packages"
    priority = 60

    def init_fields(self, fields: FieldRegistry) -> None:
        self.declare(
            fields,
            "ESSENTIAL_PACKAGES",
            "Essential Packages",
            "string",
            default="vim git curl wget htop tmux",
            options={"pattern": PACKAGE_LIST},
        )
        self.declare(
            fields,
            "ADDITIONAL_PACKAGES",
            "Additional Packages",
            "string",
            options={"pattern": PACKAGE_LIST},
        )
        self.declare(fields, "ENABLE_FLAKES", "Enable Nix Flakes", "toggle", default="true")

    def generate(self, values: Mapping[str, str]) -> Optional[str]:
        packages: List[str] = []
        for name in ("ESSENTIAL_PACKAGES", "ADDITIONAL_PACKAGES"):
            for package in values.get(name, "").split():
                if package not in packages:
                    packages.append(package)

        lines: List[str] = []
        if packages:
            lines.append("environment.systemPackages = with pkgs; [")
            lines.extend(f"  {package}" for package in packages)
            lines.append("];")
        if is_true(values.get("ENABLE_FLAKES", "")):
            if lines:
                lines.append("")
            lines.append('nix.settings.experimental-features = [ "nix-command" "flakes" ];')
        return "\n".join(lines) or None
