"""Pytest configuration and fixtures."""

import logging
from typing import Iterable, List, Optional

import pytest

from nixwizard.inputs import DiskInfo, builtin_input_types
from nixwizard.lib.errors import InteractionRequiredError
from nixwizard.lib.modules import ConfigSession
from nixwizard.modules import builtin_modules

FAKE_ZONES = [
    "UTC",
    "Europe/Berlin",
    "Europe/London",
    "Europe/Paris",
    "Europe/Zurich",
    "America/New_York",
    "America/North_Dakota/Center",
    "America/North_Dakota/New_Salem",
    "Asia/Tokyo",
]

FAKE_DISKS = [
    DiskInfo("/dev/sda", 500 * 1024**3),
    DiskInfo("/dev/nvme0n1", 1024**4),
]


class ScriptedConsole:
    """Console that replays canned answers and records everything said."""

    def __init__(self, answers: Iterable[str] = ()) -> None:
        self.answers: List[str] = list(answers)
        self.asked: List[str] = []
        self.said: List[str] = []
        self.passwords: List[bool] = []

    def ask(
        self,
        message: str,
        *,
        password: bool = False,
        completions: Optional[Iterable[str]] = None,
    ) -> str:
        self.asked.append(message)
        self.passwords.append(password)
        if not self.answers:
            raise InteractionRequiredError("Scripted console ran out of answers", prompt=message)
        return self.answers.pop(0)

    def say(self, text: str) -> None:
        self.said.append(text)

    @property
    def output(self) -> str:
        return "\n".join(self.said)


def _is_fake_disk(path: str) -> bool:
    return path in {disk.path for disk in FAKE_DISKS}


@pytest.fixture
def input_types():
    """Input type registry backed by fixed zone and disk lists."""
    return builtin_input_types(
        zone_source=lambda: FAKE_ZONES,
        disk_lister=lambda: list(FAKE_DISKS),
        block_device_check=_is_fake_disk,
    )


@pytest.fixture
def make_session(input_types):
    """Factory for sessions holding some or all built-in modules."""

    def _make(*names: str) -> ConfigSession:
        return ConfigSession(input_types, builtin_modules(names or None))

    return _make


@pytest.fixture
def session(make_session):
    """Session with every built-in module."""
    return make_session()


@pytest.fixture
def console():
    return ScriptedConsole()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler and level changes made by setup_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
