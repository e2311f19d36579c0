"""System input types: login names and repository URLs."""

from __future__ import annotations

import re

from nixwizard.inputs.base import VALID, InputType, Invalid, Outcome
from nixwizard.lib.options import OptionContext

__all__ = ["UsernameType", "URLType"]

_USERNAME = re.compile(r"[a-z_][a-z0-9_-]{1,31}")
_URL = re.compile(r"(https?|git|ssh)://")


class UsernameType(InputType):
    name = "username"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        return VALID if _USERNAME.fullmatch(value) else Invalid()

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return "Invalid username (2-32 chars, start with lowercase letter or underscore)"


class URLType(InputType):
    name = "url"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        return VALID if _URL.match(value) else Invalid()

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return "Invalid URL (must start with http://, https://, git://, or ssh://)"
