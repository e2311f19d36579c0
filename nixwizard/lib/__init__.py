"""Wizard library modules.

This package contains the field and module model, the prompt loop, the
configuration block renderer and the environment import/export helpers.
"""

from nixwizard.lib.blocks import ConfigBlock, ConfigBlockRegistry
from nixwizard.lib.env import (
    ImportReport,
    export_script,
    import_environment,
    load_env_file,
    parse_export_script,
    write_export_script,
)
from nixwizard.lib.errors import (
    ConfigurationError,
    InteractionRequiredError,
    ValidationError,
    WizardError,
)
from nixwizard.lib.fields import (
    FieldRegistry,
    FieldSpec,
    IssueKind,
    ValidationIssue,
    ValidationSeverity,
)
from nixwizard.lib.modules import ConfigSession, Module, ModuleState
from nixwizard.lib.options import OptionContext
from nixwizard.lib.prompting import NonInteractiveConsole, Prompter, TerminalConsole
from nixwizard.lib.settings import ProjectSettings, WizardSettings
from nixwizard.lib.visibility import VisibilityCondition, parse_condition
from nixwizard.lib.workflow import run_workflow
from nixwizard.lib.workspace import working_directory

__all__ = [
    "ConfigBlock",
    "ConfigBlockRegistry",
    "ImportReport",
    "export_script",
    "import_environment",
    "load_env_file",
    "parse_export_script",
    "write_export_script",
    "ConfigurationError",
    "InteractionRequiredError",
    "ValidationError",
    "WizardError",
    "FieldRegistry",
    "FieldSpec",
    "IssueKind",
    "ValidationIssue",
    "ValidationSeverity",
    "ConfigSession",
    "Module",
    "ModuleState",
    "OptionContext",
    "NonInteractiveConsole",
    "Prompter",
    "TerminalConsole",
    "ProjectSettings",
    "WizardSettings",
    "VisibilityCondition",
    "parse_condition",
    "run_workflow",
    "working_directory",
]
