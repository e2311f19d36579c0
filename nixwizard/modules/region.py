"""Region module: country presets, timezone, locales and keyboard."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from nixwizard.inputs.region import KEYBOARD_LAYOUTS, country_defaults
from nixwizard.lib.blocks import nix_string
from nixwizard.lib.fields import FieldRegistry
from nixwizard.lib.modules import Module

logger = logging.getLogger(__name__)

__all__ = ["RegionModule"]


class RegionModule(Module):
    """Regional settings.

    Choosing a country replaces the defaults of TIMEZONE, LOCALE_MAIN and
    KEYBOARD_LAYOUT. Fields the user or the environment already set keep
    their values.
    """

    name = "region"
    title = "Region"
    priority = 40

    def init_fields(self, fields: FieldRegistry) -> None:
        self.declare(fields, "COUNTRY", "Country Code", "country")
        self.declare(fields, "TIMEZONE", "Timezone", "timezone", required=True, default="UTC")
        self.declare(
            fields, "LOCALE_MAIN", "Primary Locale", "locale", required=True, default="en_US.UTF-8"
        )
        self.declare(
            fields,
            "LOCALE_EXTRA",
            "Additional Locales",
            "string",
            default="de_DE.UTF-8 fr_FR.UTF-8",
        )
        self.declare(
            fields,
            "KEYBOARD_LAYOUT",
            "Keyboard Layout",
            "choice",
            required=True,
            default="us",
            options={"options": "|".join(KEYBOARD_LAYOUTS)},
        )
        self.declare(fields, "KEYBOARD_VARIANT", "Keyboard Variant", "keyboard_variant")

    def field_changed(self, fields: FieldRegistry, name: str, value: str) -> None:
        if name != "COUNTRY" or not value:
            return
        defaults = country_defaults(value)
        if defaults is None:
            return
        fields.set_default("TIMEZONE", defaults.timezone)
        fields.set_default("LOCALE_MAIN", defaults.locale)
        fields.set_default("KEYBOARD_LAYOUT", defaults.keyboard)
        logger.info(
            "Applied regional defaults for %s: %s, %s, %s",
            value.upper(),
            defaults.timezone,
            defaults.locale,
            defaults.keyboard,
        )

    def generate(self, values: Mapping[str, str]) -> Optional[str]:
        main = values.get("LOCALE_MAIN") or "en_US.UTF-8"
        locales = [main] + [
            locale for locale in values.get("LOCALE_EXTRA", "").split() if locale != main
        ]
        layout = values.get("KEYBOARD_LAYOUT") or "us"

        lines = [
            f"time.timeZone = {nix_string(values.get('TIMEZONE') or 'UTC')};",
            f"i18n.defaultLocale = {nix_string(main)};",
            "i18n.supportedLocales = [ "
            + " ".join(nix_string(f"{locale}/UTF-8") for locale in locales)
            + " ];",
            f"console.keyMap = {nix_string(layout)};",
            f"services.xserver.xkb.layout = {nix_string(layout)};",
        ]
        variant = values.get("KEYBOARD_VARIANT")
        if variant:
            lines.append(f"services.xserver.xkb.variant = {nix_string(variant)};")
        return "\n".join(lines)
