"""Security module: firewall, kernel hardening and fail2ban."""

from __future__ import annotations

from typing import List, Mapping, Optional

from nixwizard.inputs.primitive import is_true
from nixwizard.lib.fields import FieldRegistry, ValidationIssue
from nixwizard.lib.modules import Module

__all__ = ["SecurityModule", "invalid_ports"]

FIREWALL_ON = "FIREWALL_ENABLE==true"
PORT_FIELDS = ("FIREWALL_ALLOW_PORTS_TCP", "FIREWALL_ALLOW_PORTS_UDP")


def invalid_ports(text: str) -> List[str]:
    """Entries of a space separated port list that are not ports 1-65535."""
    return [
        entry for entry in text.split()
        if not entry.isdigit() or not 1 <= int(entry) <= 65535
    ]


class SecurityModule(Module):
    name = "security"
    title = "Security"
    priority = 70

    def init_fields(self, fields: FieldRegistry) -> None:
        self.declare(
            fields, "FIREWALL_ENABLE", "Enable Firewall", "toggle", required=True, default="true"
        )
        self.declare(
            fields,
            "FIREWALL_ALLOW_PORTS_TCP",
            "Allowed TCP Ports",
            "string",
            default="22",
            visible_all=FIREWALL_ON,
        )
        self.declare(
            fields,
            "FIREWALL_ALLOW_PORTS_UDP",
            "Allowed UDP Ports",
            "string",
            visible_all=FIREWALL_ON,
        )
        self.declare(
            fields, "HARDENING_ENABLE", "Apply Security Hardening", "toggle", default="true"
        )
        self.declare(fields, "FAIL2BAN_ENABLE", "Enable Fail2Ban", "toggle", default="false")

    def validate_extra(self, fields: FieldRegistry) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        for name in PORT_FIELDS:
            if not fields.is_visible(name):
                continue
            bad = invalid_ports(fields.get(name))
            if bad:
                issues.append(
                    ValidationIssue.cross_field(
                        f"{fields.spec(name).label} contains invalid ports: {' '.join(bad)}",
                        name,
                        suggestion="Use space separated port numbers between 1 and 65535",
                    )
                )
        return issues

    def generate(self, values: Mapping[str, str]) -> Optional[str]:
        lines: List[str] = []
        if is_true(values.get("FIREWALL_ENABLE", "")):
            tcp = " ".join(values.get("FIREWALL_ALLOW_PORTS_TCP", "").split())
            udp = " ".join(values.get("FIREWALL_ALLOW_PORTS_UDP", "").split())
            lines.extend([
                "networking.firewall = {",
                "  enable = true;",
                f"  allowedTCPPorts = [ {tcp} ];" if tcp else "  allowedTCPPorts = [ ];",
                f"  allowedUDPPorts = [ {udp} ];" if udp else "  allowedUDPPorts = [ ];",
                "};",
            ])
        else:
            lines.append("networking.firewall.enable = false;")

        if is_true(values.get("HARDENING_ENABLE", "")):
            lines.extend([
                "",
                "security.protectKernelImage = true;",
                "security.lockKernelModules = true;",
                "boot.kernel.sysctl = {",
                '  "kernel.kptr_restrict" = 2;',
                '  "kernel.dmesg_restrict" = 1;',
                "};",
            ])

        if is_true(values.get("FAIL2BAN_ENABLE", "")):
            lines.extend([
                "",
                "services.fail2ban = {",
                "  enable = true;",
                "  maxretry = 5;",
                "};",
            ])
        return "\n".join(lines)
