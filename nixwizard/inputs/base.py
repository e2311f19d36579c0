"""Input type protocol and registry.

An input type bundles the behaviour of one kind of field (ip, port,
toggle, ...): validation, normalization for storage, display for read-only
menus, a prompt hint and error messages. Types are registered by name once
at startup and looked up by the field registry whenever a field of that
type is validated or prompted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Union

from nixwizard.lib.errors import ConfigurationError
from nixwizard.lib.options import EMPTY_OPTIONS, OptionContext

if TYPE_CHECKING:
    from nixwizard.lib.prompting import Console

__all__ = [
    "Valid",
    "Invalid",
    "Outcome",
    "VALID",
    "PromptRequest",
    "InputType",
    "InputTypeRegistry",
]


@dataclass(frozen=True)
class Valid:
    """Successful validation outcome."""

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    """Failed validation outcome.

    Code 0 is a generic failure; higher codes are defined per input type.
    """

    code: int = 0

    def __bool__(self) -> bool:
        return False


Outcome = Union[Valid, Invalid]

VALID = Valid()


@dataclass
class PromptRequest:
    """Everything a custom prompt needs to ask for one field.

    Attributes:
        name: Field name
        label: Display label
        current: Raw stored value (never display-transformed)
        options: Field option context
        required: Whether an empty value is acceptable
        check: Returns an error message for a candidate value, or None
    """

    name: str
    label: str
    current: str
    options: OptionContext
    required: bool
    check: Callable[[str], Optional[str]]


class InputType:
    """Base class for input types.

    Subclasses must set ``name`` and implement ``validate``. Every other
    hook has a neutral default.
    """

    name: str = ""
    custom_prompt: bool = False

    def validate(self, value: str, options: OptionContext) -> Outcome:
        raise NotImplementedError

    def normalize(self, value: str, options: OptionContext) -> str:
        return value

    def display(self, value: str) -> str:
        return value

    def prompt_hint(self, options: OptionContext) -> str:
        return ""

    def error_message(
        self, value: str, code: int, options: OptionContext
    ) -> Optional[str]:
        return None

    def check_declaration(self, field: str, options: OptionContext) -> None:
        """Reject option sets this type can never work with."""

    def prompt(self, console: "Console", request: PromptRequest) -> str:
        """Ask for a value; only called when ``custom_prompt`` is set."""
        raise NotImplementedError(f"{self.name} has no custom prompt")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name!r}>"


class InputTypeRegistry:
    """Name to input type map, built once at startup."""

    def __init__(self, input_types: Optional[Iterable[InputType]] = None) -> None:
        self._types: Dict[str, InputType] = {}
        for input_type in input_types or ():
            self.register(input_type)

    def register(self, input_type: InputType) -> InputType:
        """Register an input type.

        Raises:
            ConfigurationError: If the type has no name or the name is taken
        """
        if not input_type.name:
            raise ConfigurationError(
                f"Input type {input_type.__class__.__name__} has no name"
            )
        if input_type.name in self._types:
            raise ConfigurationError(
                f"Input type '{input_type.name}' is already registered",
                value=input_type.name,
            )
        self._types[input_type.name] = input_type
        return input_type

    def get(self, name: str) -> InputType:
        try:
            return self._types[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown input type '{name}'",
                value=name,
                suggestion=f"Known types: {', '.join(sorted(self._types))}",
            ) from None

    def names(self) -> List[str]:
        return sorted(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def validate(
        self, name: str, value: str, options: OptionContext = EMPTY_OPTIONS
    ) -> Outcome:
        return self.get(name).validate(value, options)

    def normalize(
        self, name: str, value: str, options: OptionContext = EMPTY_OPTIONS
    ) -> str:
        return self.get(name).normalize(value, options)

    def display(self, name: str, value: str) -> str:
        return self.get(name).display(value)

    def error_message(
        self,
        name: str,
        value: str,
        code: int,
        options: OptionContext = EMPTY_OPTIONS,
        label: str = "",
    ) -> str:
        """Return the type's message for a failure, or a generic one."""
        message = self.get(name).error_message(value, code, options)
        return message or f"Invalid {label or name}"
