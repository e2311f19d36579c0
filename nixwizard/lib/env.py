"""Environment variable import and shell export of field values.

Every declared field ``NAME`` can be preset through ``<PREFIX>NAME``
(``NDS_HOSTNAME=web01``). Imported values go through the same
validate/normalize path as typed answers; a bad value is reported for
its field and the import carries on with the rest.

Uses python-dotenv for .env file loading.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Union

from dotenv import load_dotenv

from nixwizard.lib.errors import ConfigurationError
from nixwizard.lib.fields import FieldRegistry, ValidationIssue

if TYPE_CHECKING:
    from nixwizard.lib.modules import ConfigSession

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_PREFIX",
    "ImportReport",
    "load_env_file",
    "import_environment",
    "export_script",
    "parse_export_script",
    "write_export_script",
]

DEFAULT_PREFIX = "NDS_"

# Characters that are special inside a double-quoted shell string
_NEEDS_SINGLE_QUOTES = re.compile(r'["$`\\\n]')


@dataclass
class ImportReport:
    """Outcome of an environment import pass."""

    imported: List[str] = field(default_factory=list)
    failed: Dict[str, ValidationIssue] = field(default_factory=dict)

    @property
    def imported_count(self) -> int:
        return len(self.imported)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


def load_env_file(
    path: Optional[Union[str, Path]] = None,
    *,
    override: bool = False,
) -> bool:
    """Load environment variables from a .env file.

    Args:
        path: Path to .env file. If None, searches for .env in current
              directory and parent directories.
        override: If True, override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    return load_dotenv(dotenv_path=path, override=override)


def import_environment(
    fields: FieldRegistry,
    prefix: str = DEFAULT_PREFIX,
    environ: Optional[Mapping[str, str]] = None,
) -> ImportReport:
    """Apply ``<prefix><NAME>`` variables to every declared field.

    Unset variables are skipped. An empty variable clears an optional
    field and is reported as missing for a required one. Failures are
    logged and collected per field; they never stop the import.

    Args:
        fields: Field registry to populate
        prefix: Variable name prefix
        environ: Mapping to read from (defaults to ``os.environ``)

    Returns:
        ImportReport listing imported and failed fields
    """
    source = os.environ if environ is None else environ
    report = ImportReport()

    for name in fields.names():
        key = f"{prefix}{name}"
        if key not in source:
            continue
        issue = fields.apply(name, source[key])
        if issue is None:
            report.imported.append(name)
            logger.debug("Imported %s%s", prefix, name)
        else:
            report.failed[name] = issue
            logger.error("Invalid value in %s%s: %s", prefix, name, issue.message)

    if report.imported or report.failed:
        logger.info(
            "Environment import: %d imported, %d failed",
            report.imported_count,
            report.failed_count,
        )
    return report


def _quote(value: str) -> str:
    if _NEEDS_SINGLE_QUOTES.search(value):
        return shlex.quote(value)
    return f'"{value}"'


def export_script(
    session: "ConfigSession",
    prefix: str = DEFAULT_PREFIX,
    *,
    changed_only: bool = True,
    today: Optional[date] = None,
) -> str:
    """Render field values as a sourceable shell script.

    Fields are grouped by module (module priority, then name) and keep
    their declaration order inside a group. A ``# module:`` comment opens
    every group.

    Args:
        session: Session whose values are exported
        prefix: Variable name prefix
        changed_only: Skip fields still holding their default
        today: Date for the header line (defaults to today)
    """
    fields = session.fields
    stamp = (today or date.today()).isoformat()
    lines = [f"# Config export at {stamp}", ""]

    groups: List[List[str]] = []
    for module in session.modules():
        group = []
        for spec in fields.specs(module.name):
            if not spec.exportable:
                continue
            if changed_only and fields.is_default(spec.name):
                continue
            group.append(f"export {prefix}{spec.name}={_quote(fields.get(spec.name))}")
        if group:
            groups.append([f"# module: {module.name}"] + group)

    for index, group in enumerate(groups):
        if index:
            lines.append("")
        lines.extend(group)

    return "\n".join(lines) + "\n"


def write_export_script(text: str, path: Union[str, Path]) -> Path:
    """Write an export script readable only by its owner."""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    output.chmod(0o600)
    logger.info("Settings exported to: %s", output)
    return output


def parse_export_script(text: str, prefix: str = DEFAULT_PREFIX) -> Dict[str, str]:
    """Read ``export PREFIXNAME=value`` lines back into a mapping.

    The keys keep their prefix so the result can be passed straight to
    ``import_environment`` as ``environ``.

    Raises:
        ConfigurationError: If a non-comment line is not an export statement
    """
    values: Dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            tokens = shlex.split(stripped)
        except ValueError as e:
            raise ConfigurationError(
                f"Cannot parse export line {lineno}: {e}", value=stripped
            ) from e
        if tokens and tokens[0] == "export":
            tokens = tokens[1:]
        if len(tokens) != 1 or "=" not in tokens[0]:
            raise ConfigurationError(
                f"Line {lineno} is not an export statement", value=stripped
            )
        key, value = tokens[0].split("=", 1)
        if key.startswith(prefix):
            values[key] = value
        else:
            logger.debug("Skipping %s (prefix is not %s)", key, prefix)
    return values
