"""Built-in configuration modules."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Type

from nixwizard.lib.errors import ConfigurationError
from nixwizard.lib.modules import Module
from nixwizard.modules.boot import BootModule
from nixwizard.modules.disk import DiskModule
from nixwizard.modules.network import NetworkModule
from nixwizard.modules.packages import PackagesModule
from nixwizard.modules.region import RegionModule
from nixwizard.modules.security import SecurityModule
from nixwizard.modules.ssh import SSHModule
from nixwizard.modules.system import SystemModule

__all__ = [
    "MODULE_CLASSES",
    "builtin_modules",
    "BootModule",
    "DiskModule",
    "NetworkModule",
    "PackagesModule",
    "RegionModule",
    "SecurityModule",
    "SSHModule",
    "SystemModule",
]

MODULE_CLASSES: Dict[str, Type[Module]] = {
    cls.name: cls
    for cls in (
        BootModule,
        NetworkModule,
        DiskModule,
        SystemModule,
        RegionModule,
        SSHModule,
        PackagesModule,
        SecurityModule,
    )
}


def builtin_modules(names: Optional[Iterable[str]] = None) -> List[Module]:
    """Create fresh module instances.

    Args:
        names: Module names to include (default: all)

    Raises:
        ConfigurationError: If a name is unknown
    """
    if names is None:
        return [cls() for cls in MODULE_CLASSES.values()]

    modules = []
    for name in names:
        try:
            modules.append(MODULE_CLASSES[name]())
        except KeyError:
            raise ConfigurationError(
                f"Unknown module '{name}'",
                value=name,
                suggestion=f"Available modules: {', '.join(sorted(MODULE_CLASSES))}",
            ) from None
    return modules
