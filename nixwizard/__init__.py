"""Configuration wizard for bootstrapping NixOS hosts.

Modules declare typed fields, the wizard fills them from the environment,
an import file or interactive prompts, validates them and renders a
``configuration.nix``.

Usage:
    nixwizard --dry-run
    NDS_HOSTNAME=web01 nixwizard --non-interactive --output ./configuration.nix
"""

from nixwizard.lib.modules import ConfigSession, Module
from nixwizard.modules import builtin_modules

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigSession",
    "Module",
    "builtin_modules",
]
