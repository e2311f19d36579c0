"""End-to-end configuration workflow.

1. Fix whatever is missing or invalid, module by module.
2. Show a summary of every module.
3. Offer a menu to revise modules until the user confirms with ``x``.

Unattended runs skip the interaction entirely: the configuration either
validates as supplied or the run fails with every problem listed.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from nixwizard.lib.errors import ValidationError
from nixwizard.lib.fields import ValidationIssue
from nixwizard.lib.modules import ConfigSession
from nixwizard.lib.prompting import Console, Prompter

logger = logging.getLogger(__name__)

__all__ = [
    "run_workflow",
    "fix_errors",
    "edit_module",
    "run_menu",
    "show_summary",
]


def _section(console: Console, title: str) -> None:
    console.say("")
    console.say(f"== {title} ==")
    console.say("")


def _module_errors(session: ConfigSession, name: str) -> List[ValidationIssue]:
    return [issue for issue in session.validate_module(name) if issue.is_error]


def _modules(session: ConfigSession, names: Optional[Sequence[str]]) -> List[str]:
    return list(names) if names is not None else session.module_names()


def show_summary(prompter: Prompter, names: Sequence[str], numbered: bool = False) -> None:
    _section(prompter.console, "Configuration Menu" if numbered else "Configuration Summary")
    for index, name in enumerate(names, start=1):
        if numbered:
            prompter.console.say(f"{index})")
        prompter.show_module(name)
        prompter.console.say("")


def edit_module(prompter: Prompter, name: str) -> None:
    """Prompt every field of a module until the module validates."""
    session = prompter.session
    title = session.module(name).display_title
    errors: List[ValidationIssue] = []
    while True:
        if errors:
            prompter.console.say("Previous validation errors - please fix:")
            for issue in errors:
                prompter.console.say(f"  {issue}")
            prompter.console.say("")
        prompter.console.say("Press ENTER to keep current value, or type new value")
        prompter.prompt_all(name)
        errors = _module_errors(session, name)
        if not errors:
            prompter.console.say(f"{title} configuration updated")
            return


def fix_errors(prompter: Prompter, names: Sequence[str]) -> None:
    """Prompt for missing or invalid values until every module validates.

    Per-field problems are fixed first; cross-field problems then reopen
    the whole module.
    """
    session = prompter.session
    if not any(_module_errors(session, name) for name in names):
        return

    _section(prompter.console, "Configuration Required")
    for name in names:
        prompter.prompt_missing(name)
        errors = _module_errors(session, name)
        if errors:
            for issue in errors:
                prompter.console.say(f"  {issue}")
            edit_module(prompter, name)
    prompter.console.say("Configuration completed")


def run_menu(prompter: Prompter, names: Sequence[str]) -> None:
    """Let the user revise modules until they confirm a valid configuration."""
    session = prompter.session
    while True:
        show_summary(prompter, names, numbered=True)
        selection = prompter.console.ask(
            f"Select category (1-{len(names)} or X to proceed): "
        ).strip().lower()

        if selection == "x":
            invalid = [name for name in names if _module_errors(session, name)]
            if invalid:
                prompter.console.say(
                    f"Configuration still has {len(invalid)} module(s) with errors: "
                    f"{', '.join(invalid)}"
                )
                prompter.console.say("Please fix all errors before proceeding.")
                continue
            prompter.console.say("Configuration confirmed")
            return

        if selection.isdigit() and 1 <= int(selection) <= len(names):
            name = names[int(selection) - 1]
            _section(prompter.console, f"{session.module(name).display_title} Configuration")
            edit_module(prompter, name)
        else:
            prompter.console.say(
                f"Invalid selection. Please enter 1-{len(names)} or X to proceed."
            )


def run_workflow(
    session: ConfigSession,
    console: Console,
    *,
    interactive: bool = True,
    modules: Optional[Sequence[str]] = None,
) -> List[ValidationIssue]:
    """Bring the session to a valid state.

    Args:
        session: Session with modules and any imported values
        console: Console for prompts and output
        interactive: When False no input is ever requested
        modules: Module names to process (default: all, in priority order)

    Returns:
        Remaining warnings (errors are never returned)

    Raises:
        ValidationError: If ``interactive`` is False and errors remain
    """
    names = _modules(session, modules)
    prompter = Prompter(session, console)

    if not interactive:
        errors = [
            issue for name in names for issue in session.validate_module(name)
            if issue.is_error
        ]
        if errors:
            raise ValidationError(
                "Configuration is incomplete",
                issues=errors,
                suggestion="Set the listed fields through environment variables or an import file",
            )
    else:
        fix_errors(prompter, names)

    show_summary(prompter, names)

    if interactive:
        while True:
            answer = console.ask("-> Do you want to modify any settings? [y/n]: ")
            answer = answer.strip().lower()
            if answer in ("y", "yes"):
                run_menu(prompter, names)
                break
            if answer in ("n", "no"):
                console.say("Configuration confirmed")
                break
            if answer:
                console.say("Invalid input - Please enter 'y' or 'n'")

    warnings = [
        issue for name in names for issue in session.validate_module(name)
        if not issue.is_error
    ]
    for issue in warnings:
        logger.warning("%s", issue)
    return warnings
