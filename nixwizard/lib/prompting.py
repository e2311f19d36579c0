"""Interactive prompting for fields and modules.

Terminal I/O goes through a small ``Console`` interface so the prompt
logic can be driven by scripted answers in tests and can refuse to block
when running unattended.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Protocol, Set

from prompt_toolkit import print_formatted_text
from prompt_toolkit import prompt as read_line
from prompt_toolkit.completion import WordCompleter

from nixwizard.inputs.base import PromptRequest
from nixwizard.lib.errors import InteractionRequiredError

if TYPE_CHECKING:
    from nixwizard.lib.fields import FieldRegistry
    from nixwizard.lib.modules import ConfigSession

logger = logging.getLogger(__name__)

__all__ = [
    "Console",
    "TerminalConsole",
    "NonInteractiveConsole",
    "Prompter",
]


class Console(Protocol):
    """Line oriented user interaction."""

    def ask(
        self,
        message: str,
        *,
        password: bool = False,
        completions: Optional[Iterable[str]] = None,
    ) -> str: ...

    def say(self, text: str) -> None: ...


class TerminalConsole:
    """Console backed by prompt_toolkit.

    ``completions`` turn into a case-insensitive word completer, which is
    handy for long lists such as timezones.
    """

    def ask(
        self,
        message: str,
        *,
        password: bool = False,
        completions: Optional[Iterable[str]] = None,
    ) -> str:
        completer = None
        if completions:
            completer = WordCompleter(
                list(completions), ignore_case=True, match_middle=True, sentence=True
            )
        return read_line(message, is_password=password, completer=completer)

    def say(self, text: str) -> None:
        print_formatted_text(text)


class NonInteractiveConsole:
    """Console for unattended runs.

    Output is logged instead of printed and any attempt to read input
    raises, since there is nobody to answer.
    """

    def ask(
        self,
        message: str,
        *,
        password: bool = False,
        completions: Optional[Iterable[str]] = None,
    ) -> str:
        raise InteractionRequiredError(
            "Input required in non-interactive mode", prompt=message
        )

    def say(self, text: str) -> None:
        if text.strip():
            logger.info(text.strip())


class Prompter:
    """Prompts fields and whole modules of a session."""

    def __init__(self, session: "ConfigSession", console: Console) -> None:
        self.session = session
        self.console = console

    @property
    def fields(self) -> "FieldRegistry":
        return self.session.fields

    def _checker(self, name: str) -> Callable[[str], Optional[str]]:
        def check(value: str) -> Optional[str]:
            issue = self.fields.check(name, value)
            return issue.message if issue is not None else None

        return check

    def _generic_prompt(self, request: PromptRequest, hint: str) -> str:
        suffix = f" {hint}" if hint else ""
        while True:
            answer = self.console.ask(
                f"  {request.label:<20} [{request.current}]{suffix}: "
            ).strip()
            # Empty input keeps the current value, if that value is acceptable
            candidate = answer or request.current
            error = request.check(candidate)
            if error is None:
                return candidate
            self.console.say(f"    Error: {error}")

    def prompt_field(self, name: str) -> bool:
        """Prompt for one field until it holds a valid value.

        Returns:
            True if the stored value changed
        """
        spec = self.fields.spec(name)
        handler = self.session.input_types.get(spec.input_type)
        if spec.module:
            self.session.begin_prompting(spec.module)

        current = self.fields.get(name)
        request = PromptRequest(
            name=name,
            label=spec.label,
            current=current,
            options=spec.options,
            required=spec.required,
            check=self._checker(name),
        )
        if handler.custom_prompt:
            value = handler.prompt(self.console, request)
        else:
            value = self._generic_prompt(request, handler.prompt_hint(spec.options))

        if value:
            value = self.fields.normalize(name, value)
        if value == current:
            return False

        self.fields.set(name, value)
        if current:
            self.console.say(f"    -> Updated: {current} -> {value}")
        else:
            self.console.say(f"    -> Set: {value}")
        return True

    def _header(self, module_name: str) -> None:
        module = self.session.module(module_name)
        self.console.say("")
        self.console.say(f"{module.display_title} Configuration:")

    def prompt_missing(self, module_name: str) -> None:
        """Prompt only the active fields that currently fail validation."""
        failing = self.session.failing_fields(module_name)
        if not failing:
            return
        self._header(module_name)
        while failing:
            self.prompt_field(failing[0])
            # Answers may activate or deactivate other fields
            failing = self.session.failing_fields(module_name)

    def prompt_all(self, module_name: str) -> None:
        """Prompt every active field once, including fields activated on the way."""
        self._header(module_name)
        prompted: Set[str] = set()
        while True:
            pending = [
                name
                for name in self.session.active_fields(module_name)
                if name not in prompted
            ]
            if not pending:
                break
            self.prompt_field(pending[0])
            prompted.add(pending[0])

    def show_module(self, module_name: str) -> None:
        """Print the module's active fields with display formatting."""
        module = self.session.module(module_name)
        self.console.say(f"{module.display_title}:")
        for name in self.session.active_fields(module_name):
            spec = self.fields.spec(name)
            self.console.say(f"   > {spec.label}: {self.fields.display(name)}")
