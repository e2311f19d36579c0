"""Network module: hostname, DHCP or static addressing, DNS."""

from __future__ import annotations

from typing import List, Mapping, Optional

from nixwizard.inputs.network import mask_to_prefix, same_subnet
from nixwizard.lib.blocks import nix_string
from nixwizard.lib.fields import FieldRegistry, ValidationIssue
from nixwizard.lib.modules import Module

__all__ = ["NetworkModule"]

STATIC = "NETWORK_METHOD==static"


class NetworkModule(Module):
    name = "network"
    title = "Network"
    priority = 20

    def init_fields(self, fields: FieldRegistry) -> None:
        self.declare(fields, "HOSTNAME", "Hostname", "hostname", required=True)
        self.declare(
            fields,
            "NETWORK_METHOD",
            "Network Method",
            "choice",
            required=True,
            default="dhcp",
            options={"options": "dhcp|static"},
        )
        self.declare(
            fields, "NETWORK_IP", "IP Address", "ip", required=True, visible_all=STATIC
        )
        self.declare(
            fields,
            "NETWORK_MASK",
            "Network Mask",
            "mask",
            required=True,
            default="255.255.255.0",
            visible_all=STATIC,
        )
        self.declare(
            fields, "NETWORK_GATEWAY", "Gateway", "ip", required=True, visible_all=STATIC
        )
        self.declare(
            fields, "NETWORK_DNS_PRIMARY", "Primary DNS", "ip", required=True, default="1.1.1.1"
        )
        self.declare(
            fields, "NETWORK_DNS_SECONDARY", "Secondary DNS", "ip", default="1.0.0.1"
        )

    def validate_extra(self, fields: FieldRegistry) -> List[ValidationIssue]:
        if fields.get("NETWORK_METHOD") != "static":
            return []

        issues: List[ValidationIssue] = []
        ip = fields.get("NETWORK_IP")
        mask = fields.get("NETWORK_MASK")
        gateway = fields.get("NETWORK_GATEWAY")

        if ip and gateway and ip == gateway:
            issues.append(
                ValidationIssue.cross_field(
                    "Gateway cannot be the same as IP address",
                    "NETWORK_GATEWAY",
                    "NETWORK_IP",
                )
            )
        elif self.all_valid(fields, "NETWORK_IP", "NETWORK_MASK", "NETWORK_GATEWAY"):
            if not same_subnet(ip, gateway, mask):
                issues.append(
                    ValidationIssue.cross_field(
                        f"Gateway {gateway} must be in the same subnet as {ip}/{mask}",
                        "NETWORK_GATEWAY",
                        "NETWORK_IP",
                        suggestion="Use a gateway inside the static address's network",
                    )
                )
        return issues

    def generate(self, values: Mapping[str, str]) -> Optional[str]:
        nameservers = " ".join(
            nix_string(server)
            for server in (values.get("NETWORK_DNS_PRIMARY"), values.get("NETWORK_DNS_SECONDARY"))
            if server
        )
        lines = [f"networking.hostName = {nix_string(values.get('HOSTNAME', ''))};"]

        if values.get("NETWORK_METHOD") == "static":
            lines.extend([
                "networking.interfaces.eth0.ipv4.addresses = [{",
                f"  address = {nix_string(values['NETWORK_IP'])};",
                f"  prefixLength = {mask_to_prefix(values['NETWORK_MASK'])};",
                "}];",
                f"networking.defaultGateway = {nix_string(values['NETWORK_GATEWAY'])};",
            ])
        else:
            lines.append("networking.networkmanager.enable = true;")

        lines.append(f"networking.nameservers = [ {nameservers} ];")
        return "\n".join(lines)
