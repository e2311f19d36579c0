"""Regional input types: country, timezone, locale and keyboard variant."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, Iterable, List, Optional

from nixwizard.inputs.base import VALID, InputType, Invalid, Outcome, PromptRequest
from nixwizard.lib.options import OptionContext

logger = logging.getLogger(__name__)

__all__ = [
    "CountryDefaults",
    "COUNTRY_DEFAULTS",
    "KEYBOARD_LAYOUTS",
    "country_defaults",
    "system_timezones",
    "CountryType",
    "TimezoneType",
    "LocaleType",
    "KeyboardVariantType",
    "CountryError",
    "TimezoneError",
]

ZoneSource = Callable[[], Iterable[str]]

_COUNTRY_CODE = re.compile(r"[A-Za-z]{2}")
_LOCALE = re.compile(r"[a-z]{2}_[A-Z]{2}\.(UTF-8|utf8)")
_KEYBOARD_VARIANT = re.compile(r"[a-zA-Z0-9_-]+")

MAX_LISTED_MATCHES = 10


@dataclass(frozen=True)
class CountryDefaults:
    """Regional settings implied by a country code."""

    timezone: str
    locale: str
    keyboard: str


COUNTRY_DEFAULTS: Dict[str, CountryDefaults] = {
    # North America
    "US": CountryDefaults("America/New_York", "en_US.UTF-8", "us"),
    "CA": CountryDefaults("America/Toronto", "en_CA.UTF-8", "us"),
    "MX": CountryDefaults("America/Mexico_City", "es_MX.UTF-8", "latam"),
    # Western Europe
    "DE": CountryDefaults("Europe/Berlin", "de_DE.UTF-8", "de"),
    "FR": CountryDefaults("Europe/Paris", "fr_FR.UTF-8", "fr"),
    "UK": CountryDefaults("Europe/London", "en_GB.UTF-8", "uk"),
    "GB": CountryDefaults("Europe/London", "en_GB.UTF-8", "uk"),
    "ES": CountryDefaults("Europe/Madrid", "es_ES.UTF-8", "es"),
    "IT": CountryDefaults("Europe/Rome", "it_IT.UTF-8", "it"),
    "NL": CountryDefaults("Europe/Amsterdam", "nl_NL.UTF-8", "us"),
    "BE": CountryDefaults("Europe/Brussels", "fr_BE.UTF-8", "be"),
    "CH": CountryDefaults("Europe/Zurich", "de_CH.UTF-8", "ch"),
    "AT": CountryDefaults("Europe/Vienna", "de_AT.UTF-8", "de"),
    "PT": CountryDefaults("Europe/Lisbon", "pt_PT.UTF-8", "pt"),
    # Northern Europe
    "SE": CountryDefaults("Europe/Stockholm", "sv_SE.UTF-8", "se"),
    "NO": CountryDefaults("Europe/Oslo", "nb_NO.UTF-8", "no"),
    "DK": CountryDefaults("Europe/Copenhagen", "da_DK.UTF-8", "dk"),
    "FI": CountryDefaults("Europe/Helsinki", "fi_FI.UTF-8", "fi"),
    # Eastern Europe
    "PL": CountryDefaults("Europe/Warsaw", "pl_PL.UTF-8", "pl"),
    "CZ": CountryDefaults("Europe/Prague", "cs_CZ.UTF-8", "cz"),
    "RU": CountryDefaults("Europe/Moscow", "ru_RU.UTF-8", "ru"),
    "UA": CountryDefaults("Europe/Kiev", "uk_UA.UTF-8", "ua"),
    # Asia
    "JP": CountryDefaults("Asia/Tokyo", "ja_JP.UTF-8", "jp"),
    "CN": CountryDefaults("Asia/Shanghai", "zh_CN.UTF-8", "us"),
    "KR": CountryDefaults("Asia/Seoul", "ko_KR.UTF-8", "kr"),
    "IN": CountryDefaults("Asia/Kolkata", "en_IN.UTF-8", "us"),
    "SG": CountryDefaults("Asia/Singapore", "en_SG.UTF-8", "us"),
    # Oceania
    "AU": CountryDefaults("Australia/Sydney", "en_AU.UTF-8", "us"),
    "NZ": CountryDefaults("Pacific/Auckland", "en_NZ.UTF-8", "us"),
    # South America
    "BR": CountryDefaults("America/Sao_Paulo", "pt_BR.UTF-8", "br"),
    "AR": CountryDefaults("America/Argentina/Buenos_Aires", "es_AR.UTF-8", "latam"),
    "CL": CountryDefaults("America/Santiago", "es_CL.UTF-8", "latam"),
    # Middle East
    "IL": CountryDefaults("Asia/Jerusalem", "he_IL.UTF-8", "il"),
    "TR": CountryDefaults("Europe/Istanbul", "tr_TR.UTF-8", "tr"),
    "AE": CountryDefaults("Asia/Dubai", "en_AE.UTF-8", "us"),
    # Africa
    "ZA": CountryDefaults("Africa/Johannesburg", "en_ZA.UTF-8", "us"),
}

# Every layout the country table can produce, plus the common alternatives
KEYBOARD_LAYOUTS: List[str] = sorted(
    {d.keyboard for d in COUNTRY_DEFAULTS.values()} | {"dvorak", "colemak"}
)


def country_defaults(code: str) -> Optional[CountryDefaults]:
    return COUNTRY_DEFAULTS.get(code.upper())


def system_timezones() -> List[str]:
    """Zone names from the system tz database via ``zoneinfo``."""
    from zoneinfo import available_timezones

    return sorted(available_timezones())


class CountryError(IntEnum):
    MALFORMED = 1
    UNKNOWN = 2


class TimezoneError(IntEnum):
    NOT_FOUND = 1
    DATABASE_UNAVAILABLE = 2


class CountryType(InputType):
    """ISO 3166-1 alpha-2 code present in ``COUNTRY_DEFAULTS``.

    Lower case input is accepted and stored upper case.
    """

    name = "country"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        if not _COUNTRY_CODE.fullmatch(value):
            return Invalid(CountryError.MALFORMED)
        if value.upper() not in COUNTRY_DEFAULTS:
            return Invalid(CountryError.UNKNOWN)
        return VALID

    def normalize(self, value: str, options: OptionContext) -> str:
        return value.upper()

    def prompt_hint(self, options: OptionContext) -> str:
        return "(US, DE, UK, FR, ES, IT, NL, etc. - 2-letter ISO code)"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        if code == CountryError.UNKNOWN:
            return (
                "Country code not in database. "
                "Use common codes: US, DE, UK, FR, ES, IT, NL, CH, AT, etc."
            )
        return "Invalid country code. Use 2-letter ISO code (e.g., US, DE, UK)"


class TimezoneType(InputType):
    """Zone name from the timezone database, matched case-insensitively.

    The interactive prompt also accepts a fragment such as "zurich" and
    resolves it when exactly one zone contains it.
    """

    name = "timezone"
    custom_prompt = True

    def __init__(self, zone_source: Optional[ZoneSource] = None) -> None:
        self._zone_source = zone_source or system_timezones

    def zones(self) -> List[str]:
        """Return the zone list, or an empty list if the database is unavailable."""
        try:
            return list(self._zone_source())
        except (OSError, ImportError) as e:
            logger.warning("Timezone database unavailable: %s", e)
            return []

    def _exact(self, value: str, zones: List[str]) -> Optional[str]:
        wanted = value.lower()
        for zone in zones:
            if zone.lower() == wanted:
                return zone
        return None

    def search(self, fragment: str) -> List[str]:
        """Zones containing ``fragment``, ignoring case."""
        wanted = fragment.lower()
        return [zone for zone in self.zones() if wanted in zone.lower()]

    def validate(self, value: str, options: OptionContext) -> Outcome:
        zones = self.zones()
        if not zones:
            return Invalid(TimezoneError.DATABASE_UNAVAILABLE)
        if self._exact(value, zones) is None:
            return Invalid(TimezoneError.NOT_FOUND)
        return VALID

    def normalize(self, value: str, options: OptionContext) -> str:
        return self._exact(value, self.zones()) or value

    def prompt_hint(self, options: OptionContext) -> str:
        return "(e.g., zurich, UTC, Europe/Zurich)"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        if code == TimezoneError.NOT_FOUND:
            return f"Timezone '{value}' not found in system timezone database"
        if code == TimezoneError.DATABASE_UNAVAILABLE:
            return "Timezone database not available (required for timezone validation)"
        return "Invalid timezone (examples: UTC, Europe/Zurich, America/New_York)"

    def prompt(self, console, request: PromptRequest) -> str:
        hint = self.prompt_hint(request.options)
        while True:
            value = console.ask(
                f"  {request.label:<20} [{request.current}] {hint}: ",
                completions=self.zones(),
            ).strip()

            if not value:
                error = request.check(request.current)
                if error is None:
                    return request.current
                console.say(f"    Error: {error}")
                continue

            exact = self._exact(value, self.zones())
            if exact is not None:
                return exact

            matches = self.search(value)
            if len(matches) == 1:
                console.say(f"    Auto-matched: {matches[0]}")
                return matches[0]
            if matches:
                console.say("    Multiple matches found:")
                for zone in matches[:MAX_LISTED_MATCHES]:
                    console.say(f"      - {zone}")
                if len(matches) > MAX_LISTED_MATCHES:
                    console.say(f"      ... and {len(matches) - MAX_LISTED_MATCHES} more")
                console.say("    Please be more specific")
            else:
                console.say(f"    Error: No timezone matching '{value}' found")
                console.say(
                    "    Try: UTC, Europe/Zurich, America/New_York, or search by city name"
                )


class LocaleType(InputType):
    name = "locale"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        return VALID if _LOCALE.fullmatch(value) else Invalid()

    def normalize(self, value: str, options: OptionContext) -> str:
        return value.replace(".utf8", ".UTF-8")

    def prompt_hint(self, options: OptionContext) -> str:
        return "(e.g., en_US.UTF-8, de_DE.UTF-8, fr_FR.UTF-8)"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return "Invalid locale format. Use: language_COUNTRY.UTF-8 (e.g., en_US.UTF-8)"


class KeyboardVariantType(InputType):
    """Optional XKB variant name such as ``nodeadkeys``."""

    name = "keyboard_variant"

    def validate(self, value: str, options: OptionContext) -> Outcome:
        if not value or _KEYBOARD_VARIANT.fullmatch(value):
            return VALID
        return Invalid()

    def prompt_hint(self, options: OptionContext) -> str:
        return "(optional, e.g. nodeadkeys)"

    def error_message(self, value: str, code: int, options: OptionContext) -> str:
        return "Keyboard variant may only contain letters, digits, '_' and '-'"
