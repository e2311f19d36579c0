"""Structured exception hierarchy for the wizard.

Declaration defects (duplicate fields, choice fields without options,
malformed visibility expressions) surface as ConfigurationError and halt
the current operation. User input problems are collected as validation
issues and only become a ValidationError when a caller needs a hard stop,
e.g. a non-interactive run or document generation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

if TYPE_CHECKING:
    from nixwizard.lib.fields import ValidationIssue

__all__ = [
    "WizardError",
    "ConfigurationError",
    "ValidationError",
    "InteractionRequiredError",
]


class WizardError(Exception):
    """Base exception for all wizard errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        module: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.module = module
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if module:
            parts.insert(0, f"[{module}]")

        if details:
            detail_lines = [f"  {k}: {v}" for k, v in details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "module": self.module,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class ConfigurationError(WizardError):
    """A field, module or input type was declared incorrectly.

    These are defects in declarations rather than user input, so callers
    should not try to recover from them at runtime.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value

        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(message, details=details, **kwargs)


class ValidationError(WizardError):
    """One or more fields failed validation.

    Raised when a full validation pass finds errors that prevent the wizard
    from continuing (non-interactive runs, document generation).
    """

    def __init__(
        self,
        message: str,
        *,
        issues: Optional[Sequence["ValidationIssue"]] = None,
        **kwargs: Any,
    ) -> None:
        self.issues: List["ValidationIssue"] = list(issues or [])

        details = kwargs.pop("details", {})
        if self.issues:
            details["issue_count"] = len(self.issues)

        if self.issues:
            issue_lines = "\n".join(f"  - {issue}" for issue in self.issues)
            message = f"{message}\n\nIssues found:\n{issue_lines}"

        super().__init__(message, details=details, **kwargs)


class InteractionRequiredError(WizardError):
    """A prompt was reached while running without a terminal.

    Unattended runs must get every value from the environment or an import
    file; reaching a prompt would otherwise block forever.
    """

    def __init__(
        self,
        message: str,
        *,
        prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.prompt = prompt

        details = kwargs.pop("details", {})
        if prompt:
            details["prompt"] = prompt.strip()

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = (
                "Provide the value through an NDS_* environment variable or "
                "--import-file, or run interactively."
            )

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)
