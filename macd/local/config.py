import json
import logging
from pathlib import Path
from typing import Optional

import macd.settings as default_settings

log = logging.getLogger(__name__)


class MergedSettings:
    """
    A class that merges default settings with JSON/env overrides.

    This class provides a unified, attribute-based access point for all
    supervisor configuration. It follows a clear precedence:
    1. Base values from `settings.py`.
    2. Overrides from `.env` file (handled by `python-dotenv` in settings.py).
    3. Overrides from the JSON overrides file for settings in `MODIFIABLE_SETTINGS`.
    """

    def __init__(self, overrides_path: Optional[Path] = None) -> None:
        """
        Initializes the settings object by loading defaults and overrides.

        :param overrides_path: Optional overrides file, defaults to `OVERRIDES_JSON_PATH`.
        """
        self._load_defaults()
        if overrides_path is not None:
            self.OVERRIDES_JSON_PATH = Path(overrides_path)
        self._load_overrides()

    def _load_defaults(self) -> None:
        """
        Loads all uppercase attributes from the settings.py module as defaults.
        """
        for key in dir(default_settings):
            if key.isupper():
                setattr(self, key, getattr(default_settings, key))

    def _load_overrides(self) -> None:
        """
        Loads and applies settings from the overrides file.

        It will only apply overrides for keys that are explicitly listed in
        the `MODIFIABLE_SETTINGS` set in `settings.py`. Values are coerced to
        the type of the default they replace.
        """
        if not self.OVERRIDES_JSON_PATH.exists():
            return

        try:
            with self.OVERRIDES_JSON_PATH.open('r') as f:
                overrides = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            log.error(f"Failed to load or parse overrides file '{self.OVERRIDES_JSON_PATH}': {e}")
            return

        if not isinstance(overrides, dict):
            log.error(f"Overrides file '{self.OVERRIDES_JSON_PATH}' must contain a JSON object. Ignoring.")
            return

        log.info(f"Loading configuration overrides from {self.OVERRIDES_JSON_PATH}")
        for key, value in overrides.items():
            if not hasattr(self, key):
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue
            if key not in self.MODIFIABLE_SETTINGS:
                log.warning(f"Attempted to override non-modifiable setting '{key}'. Ignoring.")
                continue

            original_value = getattr(self, key)
            try:
                if isinstance(original_value, bool):
                    new_value = str(value).lower() in ('true', '1', 't', 'yes', 'y')
                else:
                    new_value = type(original_value)(value)
            except (ValueError, TypeError) as e:
                log.error(f"Could not convert override '{value}' for key '{key}'. Error: {e}")
                continue

            if key in self.POSITIVE_SETTINGS and not default_settings.is_positive(new_value):
                log.error(f"Override '{value}' for key '{key}' must be a positive number. Ignoring.")
                continue

            setattr(self, key, new_value)
            log.debug(f"Overridden setting: {key} = {new_value}")


# Create a shared instance to be imported by other modules
effective_settings = MergedSettings()
