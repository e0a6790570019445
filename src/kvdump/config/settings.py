import os
import tomllib
from pathlib import Path


# Settings key constants
SETTING_ENDPOINTS = 'store.endpoints'
SETTING_TIMEOUT = 'store.timeout'
SETTING_SEPARATOR = 'store.separator'
SETTING_LOG_PATH = 'logging.path'
SETTING_LOG_LEVEL = 'logging.level'

SETTINGS_ENVIRONMENT_VARIABLE = 'KVDUMP_SETTINGS'


def default_settings_path() -> Path:
    """Settings file used when neither --settings nor KVDUMP_SETTINGS is given."""
    return Path.home() / '.config' / 'kvdump' / 'settings.toml'


class ToolSettings:
    """Read-only access to the TOML settings file.

    The file is optional: when it does not exist, every get() call returns its
    default. Interpretation of the values (types, precedence against flags and
    environment) is left to ToolConfig.

    Example settings.toml:
        [store]
        endpoints = ["/var/lib/kvdump/primary.db", "/var/lib/kvdump/replica.db"]
        timeout = 10

        [logging]
        path = "/var/log/kvdump.log"
        level = "DEBUG"
    """

    def __init__(self, settings_file: Path | None):
        self._settings_file = settings_file
        self._settings = {}

        if settings_file is not None and settings_file.exists():
            with open(settings_file, 'rb') as f:
                self._settings = tomllib.load(f)

    @classmethod
    def locate(cls, explicit_path: str | os.PathLike | None = None) -> "ToolSettings":
        """Load settings from the explicit path, KVDUMP_SETTINGS, or the default location."""
        if explicit_path is not None:
            return cls(Path(explicit_path))

        environment_path = os.environ.get(SETTINGS_ENVIRONMENT_VARIABLE)
        if environment_path:
            return cls(Path(environment_path))

        return cls(default_settings_path())

    @property
    def settings_file(self) -> Path | None:
        return self._settings_file

    def get(self, key: str, default=None):
        """Get a setting by dotted key path, e.g. 'store.timeout'.

        Returns the default when any component of the path is missing or an
        intermediate value is not a table.
        """
        keys = key.split('.')
        value = self._settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value
