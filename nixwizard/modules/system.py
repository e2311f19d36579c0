"""System module: the administrative user."""

from __future__ import annotations

from typing import Mapping, Optional

from nixwizard.lib.fields import FieldRegistry
from nixwizard.lib.modules import Module

__all__ = ["SystemModule"]

INITIAL_PASSWORD = "changeme"


class SystemModule(Module):
    name = "system"
    title = "System"
    priority = 40

    def init_fields(self, fields: FieldRegistry) -> None:
        self.declare(
            fields, "ADMIN_USER", "Admin Username", "username", required=True, default="admin"
        )

    def generate(self, values: Mapping[str, str]) -> Optional[str]:
        user = values.get("ADMIN_USER") or "admin"
        return "\n".join([
            f"users.users.{user}.isNormalUser = true;",
            f'users.users.{user}.extraGroups = [ "wheel" "networkmanager" ];',
            f'users.users.{user}.initialPassword = "{INITIAL_PASSWORD}";',
            "security.sudo.wheelNeedsPassword = true;",
        ])
