"""Per-field option context handed to input type functions."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional

from nixwizard.lib.errors import ConfigurationError

__all__ = ["OptionContext", "EMPTY_OPTIONS"]


class OptionContext(Mapping[str, str]):
    """Read-only view of one field's extra options.

    Built fresh for every validate/normalize/prompt call so validators can
    read ``min``, ``max``, ``pattern`` and friends without sharing state
    between fields.
    """

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        *,
        field: Optional[str] = None,
    ) -> None:
        self._options: Dict[str, str] = {
            str(k): "" if v is None else str(v) for k, v in (options or {}).items()
        }
        self.field = field

    def __getitem__(self, key: str) -> str:
        return self._options[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def __repr__(self) -> str:
        return f"OptionContext({self._options!r}, field={self.field!r})"

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """Return an integer option, or ``default`` when it is not set.

        Raises:
            ConfigurationError: If the option is set but is not an integer
        """
        raw = self._options.get(key, "")
        if raw == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(
                f"Option '{key}' must be an integer",
                field=self.field,
                value=raw,
            ) from None

    def choices(self, key: str = "options") -> List[str]:
        """Split a pipe-delimited option list, dropping empty entries."""
        return [item for item in self._options.get(key, "").split("|") if item]


EMPTY_OPTIONS = OptionContext()
