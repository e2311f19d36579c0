"""Field declarations, values and per-field validation.

The registry is a plain data layer: ``set`` stores whatever it is given
and never re-validates. Callers that take values from users go through
``apply``, which validates, normalizes and only then stores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from nixwizard.inputs.base import InputTypeRegistry
from nixwizard.lib.errors import ConfigurationError
from nixwizard.lib.options import OptionContext
from nixwizard.lib.visibility import VisibilityCondition, is_visible, parse_condition

logger = logging.getLogger(__name__)

__all__ = [
    "ValidationSeverity",
    "IssueKind",
    "ValidationIssue",
    "FieldSpec",
    "FieldRegistry",
]

ChangeListener = Callable[[str, str], None]


class ValidationSeverity(Enum):
    """Severity of validation issues."""

    ERROR = "error"  # Blocks generation
    WARNING = "warning"  # Shown to the user, never blocks


class IssueKind(str, Enum):
    VALIDATION_FAILURE = "validation_failure"
    MISSING_REQUIRED = "missing_required"
    CROSS_FIELD = "cross_field"


@dataclass
class ValidationIssue:
    """A problem with one field or a relationship between fields."""

    severity: ValidationSeverity
    message: str
    fields: Tuple[str, ...]
    kind: IssueKind = IssueKind.VALIDATION_FAILURE
    code: int = 0
    suggestion: Optional[str] = None

    @property
    def field(self) -> str:
        return self.fields[0] if self.fields else ""

    @property
    def is_error(self) -> bool:
        return self.severity == ValidationSeverity.ERROR

    @classmethod
    def cross_field(
        cls,
        message: str,
        *fields: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
        suggestion: Optional[str] = None,
    ) -> "ValidationIssue":
        """Issue describing an inconsistency between several fields."""
        return cls(
            severity=severity,
            message=message,
            fields=tuple(fields),
            kind=IssueKind.CROSS_FIELD,
            suggestion=suggestion,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "kind": self.kind.value,
            "message": self.message,
            "fields": list(self.fields),
            "code": self.code,
            "suggestion": self.suggestion,
        }

    def __str__(self) -> str:
        prefix = "ERROR" if self.severity == ValidationSeverity.ERROR else "WARNING"
        result = f"[{prefix}] {', '.join(self.fields)}: {self.message}"
        if self.suggestion:
            result += f"\n  Fix: {self.suggestion}"
        return result


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of one configuration field.

    Attributes:
        name: Unique upper case key (e.g. ``NETWORK_IP``)
        label: Human readable label used in prompts and messages
        input_type: Name of the input type validating this field
        module: Owning module name
        required: Whether an empty value is an error
        default: Declared default value
        options: Type specific options (``min``, ``options``, ...)
        visible: Parsed visibility condition, None if always visible
        exportable: Whether the field appears in exported scripts
        error: Custom error message overriding the input type's
        order: Declaration order, used for stable listings
    """

    name: str
    label: str
    input_type: str
    module: str = ""
    required: bool = False
    default: str = ""
    options: OptionContext = field(default_factory=OptionContext)
    visible: Optional[VisibilityCondition] = None
    exportable: bool = True
    error: Optional[str] = None
    order: int = 0


class FieldRegistry:
    """Declared fields and their current values."""

    def __init__(self, input_types: InputTypeRegistry) -> None:
        self.input_types = input_types
        self._specs: Dict[str, FieldSpec] = {}
        self._values: Dict[str, str] = {}
        self._defaults: Dict[str, str] = {}
        self._explicit: Set[str] = set()
        self._listeners: List[ChangeListener] = []

    def declare(
        self,
        name: str,
        label: str,
        input_type: str,
        *,
        module: str = "",
        required: bool = False,
        default: str = "",
        options: Optional[Mapping[str, Any]] = None,
        visible_all: Optional[str] = None,
        visible_any: Optional[str] = None,
        exportable: bool = True,
        error: Optional[str] = None,
    ) -> FieldSpec:
        """Declare a field and initialise its value to ``default``.

        Raises:
            ConfigurationError: If the name is taken, the input type is
                unknown, the visibility expressions are malformed or the
                options are unusable for the input type
        """
        if name in self._specs:
            owner = self._specs[name].module
            raise ConfigurationError(
                f"Field {name} is already declared"
                + (f" by module '{owner}'" if owner else ""),
                field=name,
            )

        handler = self.input_types.get(input_type)
        option_context = OptionContext(options, field=name)
        handler.check_declaration(name, option_context)

        spec = FieldSpec(
            name=name,
            label=label,
            input_type=input_type,
            module=module,
            required=required,
            default=default,
            options=option_context,
            visible=parse_condition(visible_all, visible_any, field=name),
            exportable=exportable,
            error=error,
            order=len(self._specs),
        )
        self._specs[name] = spec
        self._defaults[name] = default
        self._values[name] = default
        logger.debug("Declared field %s (%s) for module %s", name, input_type, module)
        return spec

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def spec(self, name: str) -> FieldSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise ConfigurationError(f"Unknown field {name}", field=name) from None

    def specs(self, module: Optional[str] = None) -> List[FieldSpec]:
        """Field specs in declaration order, optionally for one module."""
        return [s for s in self._specs.values() if module is None or s.module == module]

    def names(self, module: Optional[str] = None) -> List[str]:
        return [s.name for s in self.specs(module)]

    def get(self, name: str) -> str:
        return self._values.get(name, "")

    def values(self) -> Mapping[str, str]:
        """Read-only live view of every stored value."""
        return MappingProxyType(self._values)

    def on_change(self, listener: ChangeListener) -> None:
        """Call ``listener(name, value)`` after every ``set``."""
        self._listeners.append(listener)

    def set(self, name: str, value: str) -> None:
        """Store a value without validating it."""
        self.spec(name)
        self._values[name] = value
        self._explicit.add(name)
        logger.debug("Field %s updated", name)
        for listener in self._listeners:
            listener(name, value)

    def default(self, name: str) -> str:
        self.spec(name)
        return self._defaults[name]

    def set_default(self, name: str, value: str) -> None:
        """Replace the effective default of a field.

        The stored value follows the new default unless the field has been
        explicitly set, so values from the environment or the user are
        never overwritten.
        """
        self.spec(name)
        self._defaults[name] = value
        if name not in self._explicit:
            self._values[name] = value
            logger.debug("Default applied: %s", name)
        else:
            logger.debug("Default for %s skipped (value set explicitly)", name)

    def reset(self, name: str) -> None:
        self.spec(name)
        self._values[name] = self._defaults[name]
        self._explicit.discard(name)

    def is_default(self, name: str) -> bool:
        return self.get(name) == self.default(name)

    def is_explicit(self, name: str) -> bool:
        return name in self._explicit

    def is_visible(self, name: str) -> bool:
        return is_visible(self.spec(name).visible, self.get)

    def options_for(self, name: str) -> OptionContext:
        return self.spec(name).options

    def check(self, name: str, value: str) -> Optional[ValidationIssue]:
        """Validate a candidate value for ``name`` without storing it."""
        spec = self.spec(name)
        if value == "":
            if spec.required:
                return ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    message=f"{spec.label} is required",
                    fields=(name,),
                    kind=IssueKind.MISSING_REQUIRED,
                )
            return None

        outcome = self.input_types.validate(spec.input_type, value, spec.options)
        if outcome:
            return None

        message = spec.error or self.input_types.error_message(
            spec.input_type, value, outcome.code, spec.options, spec.label
        )
        hint = self.input_types.get(spec.input_type).prompt_hint(spec.options)
        return ValidationIssue(
            severity=ValidationSeverity.ERROR,
            message=message,
            fields=(name,),
            kind=IssueKind.VALIDATION_FAILURE,
            code=outcome.code,
            suggestion=f"Expected {hint}" if hint else None,
        )

    def validate(self, name: str) -> Optional[ValidationIssue]:
        """Validate the stored value of ``name``."""
        return self.check(name, self.get(name))

    def normalize(self, name: str, value: str) -> str:
        spec = self.spec(name)
        return self.input_types.normalize(spec.input_type, value, spec.options)

    def apply(self, name: str, value: str) -> Optional[ValidationIssue]:
        """Validate, normalize and store ``value``.

        Returns:
            None on success, otherwise the issue; the stored value is left
            untouched on failure
        """
        issue = self.check(name, value)
        if issue is not None:
            return issue
        self.set(name, self.normalize(name, value) if value else value)
        return None

    def display(self, name: str) -> str:
        """Value rendered for read-only listings (masked secrets, glyphs)."""
        spec = self.spec(name)
        return self.input_types.display(spec.input_type, self.get(name))
