"""Built-in input types.

Each input type validates, normalizes and displays values for one kind of
field. ``builtin_input_types`` returns a fresh registry holding all of
them; the timezone and disk types take their system data sources as
arguments so tests can substitute fixed lists.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from nixwizard.inputs.base import (
    VALID,
    InputType,
    InputTypeRegistry,
    Invalid,
    Outcome,
    PromptRequest,
    Valid,
)
from nixwizard.inputs.disk import DiskInfo, DiskSizeType, DiskType
from nixwizard.inputs.network import HostnameType, IPAddressType, NetmaskType, PortType
from nixwizard.inputs.primitive import (
    ChoiceType,
    IntType,
    PathType,
    SecretType,
    StringType,
    TextType,
    ToggleType,
)
from nixwizard.inputs.region import (
    CountryType,
    KeyboardVariantType,
    LocaleType,
    TimezoneType,
)
from nixwizard.inputs.system import URLType, UsernameType

__all__ = [
    "VALID",
    "Valid",
    "Invalid",
    "Outcome",
    "PromptRequest",
    "InputType",
    "InputTypeRegistry",
    "DiskInfo",
    "builtin_input_types",
]


def builtin_input_types(
    zone_source: Optional[Callable[[], Iterable[str]]] = None,
    disk_lister: Optional[Callable[[], List[DiskInfo]]] = None,
    block_device_check: Optional[Callable[[str], bool]] = None,
) -> InputTypeRegistry:
    """Create a registry with every built-in input type.

    Args:
        zone_source: Callable returning valid timezone names
        disk_lister: Callable returning detected disks
        block_device_check: Predicate telling whether a path is a block device

    Returns:
        A new InputTypeRegistry
    """
    return InputTypeRegistry([
        IPAddressType(),
        NetmaskType(),
        HostnameType(),
        PortType(),
        StringType(),
        TextType(),
        PathType(),
        IntType(),
        ToggleType(),
        SecretType(),
        ChoiceType(),
        CountryType(),
        TimezoneType(zone_source),
        LocaleType(),
        KeyboardVariantType(),
        UsernameType(),
        URLType(),
        DiskType(disk_lister, block_device_check),
        DiskSizeType(),
    ])
