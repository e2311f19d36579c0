"""Primitive input types: strings, integers, toggles, secrets and choices."""

from __future__ import annotations

import re
from enum import IntEnum

from nixwizard.inputs.base import VALID, InputType, Invalid, Outcome, PromptRequest
from nixwizard.lib.errors import ConfigurationError
from nixwizard.lib.options import OptionContext

__all__ = [
    "StringType",
    "TextType",
    "PathType",
    "IntType",
    "ToggleType",
    "SecretType",
    "ChoiceType",
    "StringError",
    "IntError",
    "SecretError",
    "ChoiceError",
    "TRUE_WORDS",
    "FALSE_WORDS",
    "is_true",
    "mask_secret",
]

_INTEGER = re.compile(r"-?[0-9]+")
_PATH_START = re.compile(r"(/|~|\.)")

TRUE_WORDS = frozenset({"true", "enabled", "1"})
FALSE_WORDS = frozenset({"false", "disabled", "0"})


class StringError(IntEnum):
    TOO_SHORT = 1
    TOO_LONG = 2
    PATTERN = 3


class IntError(IntEnum):
    NOT_INTEGER = 1
    OUT_OF_RANGE = 2


class SecretError(IntEnum):
    TOO_SHORT = 2


class ChoiceError(IntEnum):
    NOT_AN_OPTION = 1
    NO_OPTIONS = 3


def is_true(value: str) -> bool:
    """Interpret a stored toggle value."""
    return value.strip().lower() in TRUE_WORDS


def mask_secret(value: str) -> str:
    """Mask a secret for display.

    Values shorter than 9 characters show only their last character.
    Longer values keep ``len // 10`` characters (between 1 and 4) at each
    end.
    """
    if not value:
        return "(not set)"
    if len(value) < 9:
        return "*" * (len(value) - 1) + value[-1]
    show = min(max(len(value) // 10, 1), 4)
    return value[:show] + "*" * (len(value) - show * 2) + value[-show:]


class StringType(InputType):
    """Free string with optional ``minlen``, ``maxlen`` and ``pattern``."""

    name = "string"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        pattern = options.get("pattern", "")
        if pattern and not re.search(pattern, value):
            return Invalid(StringError.PATTERN)
        minlen = options.get_int("minlen")
        maxlen = options.get_int("maxlen")
        if minlen is not None and len(value) < minlen:
            return Invalid(StringError.TOO_SHORT)
        if maxlen is not None and len(value) > maxlen:
            return Invalid(StringError.TOO_LONG)
        return VALID

    def check_declaration(self, field: str, options: OptionContext) -> None:
        pattern = options.get("pattern", "")
        if pattern:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid pattern for {field}: {e}", field=field, value=pattern
                ) from e
        options.get_int("minlen")
        options.get_int("maxlen")

    def prompt_hint(self, options: OptionContext) -> str:
        minlen = options.get("minlen", "")
        maxlen = options.get("maxlen", "")
        if minlen and maxlen:
            return f"(length: {minlen}-{maxlen} chars)"
        if minlen:
            return f"(min: {minlen} chars)"
        if maxlen:
            return f"(max: {maxlen} chars)"
        return ""

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        minlen = options.get("minlen", "")
        maxlen = options.get("maxlen", "")
        pattern = options.get("pattern", "")
        if code == StringError.PATTERN and pattern:
            return f"Must match pattern: {pattern}"
        if minlen and maxlen:
            return f"Length must be between {minlen} and {maxlen} characters"
        if minlen:
            return f"Must be at least {minlen} characters"
        if maxlen:
            return f"Must be at most {maxlen} characters"
        return "Invalid string"


class TextType(InputType):
    """Unconstrained text, e.g. authorized keys or package lists."""

    name = "text"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        return VALID


class PathType(InputType):
    name = "path"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        return VALID if _PATH_START.match(value) else Invalid()

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return "Invalid path (must start with /, ~, or .)"


class IntType(InputType):
    """Integer with optional inclusive ``min``/``max``."""

    name = "int"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        if not _INTEGER.fullmatch(value):
            return Invalid(IntError.NOT_INTEGER)
        number = int(value)
        low = options.get_int("min")
        high = options.get_int("max")
        if (low is not None and number < low) or (high is not None and number > high):
            return Invalid(IntError.OUT_OF_RANGE)
        return VALID

    def check_declaration(self, field: str, options: OptionContext) -> None:
        options.get_int("min")
        options.get_int("max")

    def prompt_hint(self, options: OptionContext) -> str:
        low = options.get("min", "")
        high = options.get("max", "")
        if low and high:
            return f"({low}-{high})"
        if low:
            return f"(min: {low})"
        if high:
            return f"(max: {high})"
        return ""

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        low = options.get("min", "")
        high = options.get("max", "")
        if low and high:
            return f"Must be an integer between {low} and {high}"
        if low:
            return f"Must be an integer >= {low}"
        if high:
            return f"Must be an integer <= {high}"
        return "Must be an integer"


class ToggleType(InputType):
    """Boolean switch stored as "true"/"false".

    The check and cross glyphs are only used for menu display; storing
    them would break every consumer that reads the value as a boolean.
    """

    name = "toggle"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        word = value.strip().lower()
        if word in TRUE_WORDS or word in FALSE_WORDS:
            return VALID
        return Invalid()

    def normalize(self, value: str, options: OptionContext) -> str:
        return "true" if is_true(value) else "false"

    def display(self, value: str) -> str:
        if not value:
            return value
        return "✓ enabled" if is_true(value) else "✗ disabled"

    def prompt_hint(self, options: OptionContext) -> str:
        return "(true/false, enabled/disabled)"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return "Enter true, false, enabled, or disabled"


class SecretType(InputType):
    """Password-like value, read without echo and masked in menus."""

    name = "secret"
    custom_prompt = True

    def validate(self, value: str, options: OptionContext) -> Outcome:
        if len(value) < options.get_int("minlen", 8):
            return Invalid(SecretError.TOO_SHORT)
        return VALID

    def display(self, value: str) -> str:
        return mask_secret(value)

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        if code == SecretError.TOO_SHORT:
            return f"Must be at least {options.get_int('minlen', 8)} characters"
        return "Invalid secret"

    def prompt(self, console, request: PromptRequest) -> str:
        while True:
            if request.current:
                message = f"  {request.label:<20} [{request.current}]: "
            else:
                message = f"  {request.label:<20}: "
            value = console.ask(message, password=True)

            candidate = value if value else request.current
            error = request.check(candidate)
            if error is None:
                return candidate
            console.say(f"    Error: {error}")


class ChoiceType(InputType):
    """One of a pipe-delimited ``options`` list (e.g. ``dhcp|static``)."""

    name = "choice"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        choices = options.choices()
        if not choices:
            return Invalid(ChoiceError.NO_OPTIONS)
        if value not in choices:
            return Invalid(ChoiceError.NOT_AN_OPTION)
        return VALID

    def check_declaration(self, field: str, options: OptionContext) -> None:
        if not options.choices():
            raise ConfigurationError(
                f"Choice field {field} declares no options",
                field=field,
                suggestion="Pass options={'options': 'a|b|c'} when declaring the field",
            )

    def prompt_hint(self, options: OptionContext) -> str:
        return f"({', '.join(options.choices())})"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        if code == ChoiceError.NO_OPTIONS:
            return "Configuration error: No options defined"
        return f"Invalid choice. Options: {', '.join(options.choices())}"
