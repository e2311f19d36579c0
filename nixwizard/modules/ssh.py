"""SSH server module."""

from __future__ import annotations

import re
from typing import List, Mapping, Optional

from nixwizard.inputs.primitive import is_true
from nixwizard.lib.blocks import nix_string
from nixwizard.lib.fields import FieldRegistry, ValidationIssue, ValidationSeverity
from nixwizard.lib.modules import Module

__all__ = ["SSHModule", "split_keys"]

SSH_ON = "SSH_ENABLE==true"

_KEY_SEPARATOR = re.compile(r"[;\n]")


def split_keys(text: str) -> List[str]:
    """Split authorized keys given one per line or separated by ``;``."""
    return [key.strip() for key in _KEY_SEPARATOR.split(text) if key.strip()]


class SSHModule(Module):
    name = "ssh"
    title = "SSH"
    priority = 50

    def init_fields(self, fields: FieldRegistry) -> None:
        self.declare(
            fields, "SSH_ENABLE", "Enable SSH Server", "toggle", required=True, default="true"
        )
        self.declare(
            fields, "SSH_PORT", "SSH Port", "port", default="22", visible_all=SSH_ON
        )
        self.declare(
            fields,
            "SSH_PASSWORD_AUTH",
            "Allow Password Authentication",
            "toggle",
            default="false",
            visible_all=SSH_ON,
        )
        self.declare(
            fields,
            "SSH_ROOT_LOGIN",
            "Permit Root Login",
            "choice",
            default="no",
            options={"options": "yes|no|prohibit-password"},
            visible_all=SSH_ON,
        )
        self.declare(
            fields,
            "SSH_KEY_METHOD",
            "SSH Key Method",
            "choice",
            default="auto",
            options={"options": "auto|manual|none"},
            visible_all=SSH_ON,
        )
        self.declare(
            fields,
            "SSH_KEY_TYPE",
            "SSH Key Type",
            "choice",
            default="ed25519",
            options={"options": "ed25519|rsa|ecdsa"},
            visible_all=f"{SSH_ON} SSH_KEY_METHOD==auto",
        )
        self.declare(
            fields,
            "SSH_KEY_PASSPHRASE",
            "Use Key Passphrase",
            "toggle",
            default="false",
            visible_all=f"{SSH_ON} SSH_KEY_METHOD==auto",
        )
        self.declare(
            fields,
            "SSH_KEY_PATH",
            "SSH Key Path",
            "path",
            default="/root/.ssh/id_ed25519",
            visible_all=f"{SSH_ON} SSH_KEY_METHOD==manual",
        )
        self.declare(
            fields,
            "SSH_AUTHORIZED_KEYS",
            "Authorized SSH Keys",
            "text",
            visible_all=SSH_ON,
        )

    def validate_extra(self, fields: FieldRegistry) -> List[ValidationIssue]:
        if not is_true(fields.get("SSH_ENABLE")):
            return []

        issues: List[ValidationIssue] = []
        password_auth = is_true(fields.get("SSH_PASSWORD_AUTH"))
        key_method = fields.get("SSH_KEY_METHOD")

        if not password_auth and key_method == "none":
            issues.append(
                ValidationIssue.cross_field(
                    "No SSH authentication method configured",
                    "SSH_PASSWORD_AUTH",
                    "SSH_KEY_METHOD",
                    suggestion="Enable password authentication or choose a key method",
                )
            )
        elif password_auth and key_method != "none":
            issues.append(
                ValidationIssue.cross_field(
                    "SSH key configured but password authentication is enabled",
                    "SSH_PASSWORD_AUTH",
                    "SSH_KEY_METHOD",
                    severity=ValidationSeverity.WARNING,
                    suggestion="Consider disabling password auth for better security",
                )
            )
        return issues

    def generate(self, values: Mapping[str, str]) -> Optional[str]:
        if not is_true(values.get("SSH_ENABLE", "")):
            return "services.openssh.enable = false;"

        password_auth = "true" if is_true(values.get("SSH_PASSWORD_AUTH", "")) else "false"
        lines = [
            "services.openssh = {",
            "  enable = true;",
            f"  ports = [ {values.get('SSH_PORT') or '22'} ];",
            "  settings = {",
            f"    PasswordAuthentication = {password_auth};",
            f'    PermitRootLogin = "{values.get("SSH_ROOT_LOGIN") or "no"}";',
            "    X11Forwarding = false;",
            "  };",
            "};",
        ]

        keys = split_keys(values.get("SSH_AUTHORIZED_KEYS", ""))
        if keys:
            user = values.get("ADMIN_USER") or "root"
            lines.append("")
            lines.append(f"users.users.{user}.openssh.authorizedKeys.keys = [")
            lines.extend(f"  {nix_string(key)}" for key in keys)
            lines.append("];")
        return "\n".join(lines)
