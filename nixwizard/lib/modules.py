"""Module composition and the configuration session.

A module groups related fields, decides which of them are currently
active, checks relationships between them and renders its share of the
NixOS configuration. ``ConfigSession`` owns every registry for one run and
drives modules through validation and generation.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from nixwizard.inputs import InputTypeRegistry, builtin_input_types
from nixwizard.lib.blocks import DEFAULT_PRIORITY, ConfigBlockRegistry
from nixwizard.lib.errors import ConfigurationError, ValidationError, WizardError
from nixwizard.lib.fields import FieldRegistry, FieldSpec, ValidationIssue

logger = logging.getLogger(__name__)

__all__ = [
    "Module",
    "ModuleState",
    "ConfigSession",
]


class ModuleState(str, Enum):
    """Lifecycle of a module within one generation pass."""

    UNINITIALIZED = "uninitialized"
    FIELDS_DECLARED = "fields_declared"
    VALIDATING = "validating"
    PROMPTING = "prompting"
    GENERATED = "generated"
    REGISTERED = "registered"


_TRANSITIONS: Dict[ModuleState, frozenset] = {
    ModuleState.UNINITIALIZED: frozenset({ModuleState.FIELDS_DECLARED}),
    ModuleState.FIELDS_DECLARED: frozenset({ModuleState.VALIDATING}),
    ModuleState.VALIDATING: frozenset(
        {ModuleState.VALIDATING, ModuleState.PROMPTING, ModuleState.GENERATED}
    ),
    ModuleState.PROMPTING: frozenset({ModuleState.PROMPTING, ModuleState.VALIDATING}),
    ModuleState.GENERATED: frozenset({ModuleState.REGISTERED, ModuleState.VALIDATING}),
    ModuleState.REGISTERED: frozenset({ModuleState.VALIDATING}),
}


class Module:
    """Base class for configuration modules.

    Subclasses set ``name``, ``title`` and ``priority`` and implement
    ``init_fields``. The remaining hooks have sensible defaults: every
    visible field is active, there are no cross-field rules and no block
    is generated.
    """

    name: str = ""
    title: str = ""
    priority: int = DEFAULT_PRIORITY

    def declare(
        self, fields: FieldRegistry, name: str, label: str, input_type: str, **kwargs: Any
    ) -> FieldSpec:
        """Declare a field owned by this module."""
        return fields.declare(name, label, input_type, module=self.name, **kwargs)

    def init_fields(self, fields: FieldRegistry) -> None:
        raise NotImplementedError

    def active_fields(self, fields: FieldRegistry) -> List[str]:
        """Names of the fields that currently apply, in declaration order."""
        return [name for name in fields.names(self.name) if fields.is_visible(name)]

    def validate_extra(self, fields: FieldRegistry) -> List[ValidationIssue]:
        return []

    def generate(self, values: Mapping[str, str]) -> Optional[str]:
        """Render this module's configuration block from validated values."""
        return None

    def field_changed(self, fields: FieldRegistry, name: str, value: str) -> None:
        """Called after any field value changes."""

    @staticmethod
    def all_valid(fields: FieldRegistry, *names: str) -> bool:
        """Whether every named field is set and passes its own validation."""
        return all(fields.get(n) and fields.validate(n) is None for n in names)

    @property
    def display_title(self) -> str:
        return self.title or self.name.capitalize()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name!r} priority={self.priority}>"


class ConfigSession:
    """All state for one wizard run.

    Owns the input type registry, field registry, modules and config
    blocks. Nothing here is global, so independent sessions can coexist
    (e.g. in tests).
    """

    def __init__(
        self,
        input_types: Optional[InputTypeRegistry] = None,
        modules: Iterable[Module] = (),
    ) -> None:
        self.input_types = input_types or builtin_input_types()
        self.fields = FieldRegistry(self.input_types)
        self.blocks = ConfigBlockRegistry()
        self._modules: Dict[str, Module] = {}
        self._states: Dict[str, ModuleState] = {}
        self.fields.on_change(self._notify_modules)
        for module in modules:
            self.add_module(module)

    def add_module(self, module: Module) -> Module:
        """Register a module and declare its fields.

        Raises:
            ConfigurationError: If a module with the same name exists
        """
        if not module.name:
            raise ConfigurationError(f"Module {module.__class__.__name__} has no name")
        if module.name in self._modules:
            raise ConfigurationError(
                f"Module '{module.name}' is already registered", value=module.name
            )
        self._modules[module.name] = module
        self._states[module.name] = ModuleState.UNINITIALIZED
        module.init_fields(self.fields)
        self._transition(module.name, ModuleState.FIELDS_DECLARED)
        logger.debug("Module %s initialised", module.name)
        return module

    def module(self, name: str) -> Module:
        try:
            return self._modules[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown module '{name}'",
                value=name,
                suggestion=f"Available modules: {', '.join(self.module_names())}",
            ) from None

    def modules(self) -> List[Module]:
        """Modules ordered by priority, then name."""
        return sorted(self._modules.values(), key=lambda m: (m.priority, m.name))

    def module_names(self) -> List[str]:
        return [m.name for m in self.modules()]

    def state(self, name: str) -> ModuleState:
        self.module(name)
        return self._states[name]

    def _transition(self, name: str, new_state: ModuleState) -> None:
        current = self._states[name]
        if new_state not in _TRANSITIONS[current]:
            raise WizardError(
                f"Invalid state transition {current.value} -> {new_state.value}",
                module=name,
            )
        self._states[name] = new_state

    def begin_prompting(self, name: str) -> None:
        """Move a module into the prompting state."""
        if self.state(name) not in (ModuleState.VALIDATING, ModuleState.PROMPTING):
            self._transition(name, ModuleState.VALIDATING)
        self._transition(name, ModuleState.PROMPTING)

    def _notify_modules(self, field_name: str, value: str) -> None:
        for module in self._modules.values():
            module.field_changed(self.fields, field_name, value)

    def active_fields(self, name: str) -> List[str]:
        return self.module(name).active_fields(self.fields)

    def active_values(self) -> Dict[str, str]:
        """Values of every currently active field across all modules."""
        values: Dict[str, str] = {}
        for module in self.modules():
            for field_name in module.active_fields(self.fields):
                values[field_name] = self.fields.get(field_name)
        return values

    def field_issues(self, name: str) -> List[ValidationIssue]:
        """Per-field problems among a module's active fields."""
        issues = []
        for field_name in self.active_fields(name):
            issue = self.fields.validate(field_name)
            if issue is not None:
                issues.append(issue)
        return issues

    def failing_fields(self, name: str) -> List[str]:
        return [issue.field for issue in self.field_issues(name)]

    def validate_module(self, name: str) -> List[ValidationIssue]:
        """Validate every active field, then the module's cross-field rules.

        All problems are collected; nothing short-circuits.
        """
        module = self.module(name)
        self._transition(name, ModuleState.VALIDATING)
        issues = self.field_issues(name)
        issues.extend(module.validate_extra(self.fields))
        for issue in issues:
            logger.debug("%s: %s", name, issue)
        return issues

    def is_valid(self, name: str) -> bool:
        return not any(issue.is_error for issue in self.validate_module(name))

    def validate_all(self) -> Dict[str, List[ValidationIssue]]:
        """Issues for every module, keyed by module name in priority order."""
        return {module.name: self.validate_module(module.name) for module in self.modules()}

    def errors(self) -> List[ValidationIssue]:
        return [
            issue
            for issues in self.validate_all().values()
            for issue in issues
            if issue.is_error
        ]

    def generate(self, header: Optional[str] = None) -> str:
        """Run a full generation pass and return the rendered document.

        The block registry is rebuilt from scratch on every call.

        Raises:
            ValidationError: If any module has errors
        """
        self.blocks.clear()
        errors = self.errors()
        if errors:
            raise ValidationError("Configuration is invalid", issues=errors)

        values = self.active_values()
        for module in self.modules():
            text = module.generate(values)
            self._transition(module.name, ModuleState.GENERATED)
            if text:
                self.blocks.register(module.name, text, module.priority)
                self._transition(module.name, ModuleState.REGISTERED)
        logger.info("Generated %d configuration blocks", len(self.blocks))
        return self.blocks.render_document(header)
