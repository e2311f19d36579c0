"""Boot module: firmware mode, bootloader, secure boot and boot verbosity."""

from __future__ import annotations

from typing import List, Mapping, Optional

from nixwizard.inputs.primitive import is_true
from nixwizard.lib.blocks import nix_string
from nixwizard.lib.fields import FieldRegistry, ValidationIssue, ValidationSeverity
from nixwizard.lib.modules import Module

__all__ = ["BootModule"]

UEFI_ONLY_LOADERS = ("systemd-boot", "refind")
DEFAULT_BIOS_DEVICE = "/dev/sda"


class BootModule(Module):
    name = "boot"
    title = "Boot"
    priority = 10

    def init_fields(self, fields: FieldRegistry) -> None:
        self.declare(fields, "UEFI_MODE", "UEFI Mode", "toggle", required=True, default="true")
        self.declare(
            fields,
            "BOOTLOADER",
            "Bootloader",
            "choice",
            required=True,
            default="systemd-boot",
            options={"options": "systemd-boot|grub|refind"},
        )
        self.declare(fields, "SECURE_BOOT", "Secure Boot", "toggle", default="false")
        self.declare(
            fields,
            "SECURE_BOOT_METHOD",
            "Secure Boot Method",
            "choice",
            default="lanzaboote",
            options={"options": "lanzaboote|sbctl"},
            visible_all="SECURE_BOOT==true",
        )
        self.declare(
            fields,
            "BOOT_TIMEOUT",
            "Boot Timeout",
            "int",
            default="5",
            options={"min": 0, "max": 30},
        )
        self.declare(
            fields,
            "BOOT_ANIMATION",
            "Boot Animation",
            "choice",
            default="normal",
            options={"options": "normal|quiet|verbose"},
        )

    def validate_extra(self, fields: FieldRegistry) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        uefi = is_true(fields.get("UEFI_MODE"))
        bootloader = fields.get("BOOTLOADER")

        if bootloader in UEFI_ONLY_LOADERS and not uefi:
            issues.append(
                ValidationIssue.cross_field(
                    f"{bootloader} requires UEFI mode",
                    "BOOTLOADER",
                    "UEFI_MODE",
                    suggestion="Enable UEFI mode or use grub for BIOS systems",
                )
            )

        if is_true(fields.get("SECURE_BOOT")):
            if not uefi:
                issues.append(
                    ValidationIssue.cross_field(
                        "Secure Boot requires UEFI mode",
                        "SECURE_BOOT",
                        "UEFI_MODE",
                    )
                )
            if fields.get("SECURE_BOOT_METHOD") == "lanzaboote" and bootloader != "systemd-boot":
                issues.append(
                    ValidationIssue.cross_field(
                        "lanzaboote requires systemd-boot",
                        "SECURE_BOOT_METHOD",
                        "BOOTLOADER",
                        suggestion="Select systemd-boot or use sbctl",
                    )
                )
            issues.append(
                ValidationIssue.cross_field(
                    "Secure Boot requires manual BIOS configuration after install",
                    "SECURE_BOOT",
                    severity=ValidationSeverity.WARNING,
                    suggestion="You will need to enroll keys in UEFI firmware",
                )
            )
        return issues

    def generate(self, values: Mapping[str, str]) -> Optional[str]:
        bootloader = values.get("BOOTLOADER", "systemd-boot")
        timeout = values.get("BOOT_TIMEOUT") or "5"
        secure_boot = is_true(values.get("SECURE_BOOT", ""))

        if bootloader == "systemd-boot":
            lines = [
                "boot.loader = {",
                f"  systemd-boot.enable = {'false' if secure_boot else 'true'};",
                "  efi.canTouchEfiVariables = true;",
                f"  timeout = {timeout};",
                "};",
            ]
            if secure_boot and values.get("SECURE_BOOT_METHOD") == "lanzaboote":
                lines.extend([
                    "",
                    "# Secure Boot via lanzaboote; add the lanzaboote module to imports",
                    "# and create keys with `sbctl create-keys` before rebuilding.",
                    "boot.lanzaboote = {",
                    "  enable = true;",
                    '  pkiBundle = "/var/lib/sbctl";',
                    "};",
                ])
        elif bootloader == "grub":
            if is_true(values.get("UEFI_MODE", "")):
                grub = [
                    '  device = "nodev";',
                    "  efiSupport = true;",
                    "  efiInstallAsRemovable = false;",
                ]
                efi = ["  efi.canTouchEfiVariables = true;"]
            else:
                device = values.get("DISK_TARGET") or DEFAULT_BIOS_DEVICE
                grub = [f"  device = {nix_string(device)};"]
                efi = []
            lines = (
                ["boot.loader = {", "  grub = {", "    enable = true;"]
                + ["  " + line for line in grub]
                + ["  };"]
                + efi
                + [f"  timeout = {timeout};", "};"]
            )
        else:
            lines = [
                "boot.loader = {",
                "  refind.enable = true;",
                "  efi.canTouchEfiVariables = true;",
                f"  timeout = {timeout};",
                "};",
            ]

        if secure_boot and values.get("SECURE_BOOT_METHOD") == "sbctl":
            lines.extend([
                "",
                "# Secure Boot via sbctl: after installation run `sbctl create-keys`,",
                "# `sbctl enroll-keys` and sign the bootloader with `sbctl sign`.",
            ])

        animation = values.get("BOOT_ANIMATION", "normal")
        if animation == "quiet":
            lines.extend([
                "",
                'boot.kernelParams = [ "quiet" "splash" ];',
                "boot.consoleLogLevel = 0;",
                "boot.initrd.verbose = false;",
            ])
        elif animation == "verbose":
            lines.extend(["", "boot.consoleLogLevel = 7;"])

        return "\n".join(lines)
