import os
from collections.abc import Mapping
from dataclasses import dataclass

from .settings import (
    ToolSettings,
    SETTING_ENDPOINTS,
    SETTING_TIMEOUT,
    SETTING_SEPARATOR,
    SETTING_LOG_PATH,
    SETTING_LOG_LEVEL,
)

DEFAULT_ENDPOINT = 'kvdump.db'
DEFAULT_TIMEOUT = 5.0
DEFAULT_SEPARATOR = '/'

ENDPOINTS_ENVIRONMENT_VARIABLE = 'KVDUMP_ENDPOINTS'
TIMEOUT_ENVIRONMENT_VARIABLE = 'KVDUMP_TIMEOUT'

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ToolConfig:
    """Configuration of one invocation, built once at startup and passed down.

    Attributes:
        endpoints: Store locations, tried in order by open_store()
        timeout: Seconds to wait for a busy store before giving up
        separator: Key path separator
        log_level: Name of the logging level
        log_file: Log destination, or None for standard error
    """
    endpoints: tuple[str, ...] = (DEFAULT_ENDPOINT,)
    timeout: float = DEFAULT_TIMEOUT
    separator: str = DEFAULT_SEPARATOR
    log_level: str = 'INFO'
    log_file: str | None = None

    @classmethod
    def resolve(
            cls,
            settings: ToolSettings,
            *,
            endpoints: str | None = None,
            timeout: float | None = None,
            log_level: str | None = None,
            log_file: str | None = None,
            debug: bool = False,
            quiet: bool = False,
            environ: Mapping[str, str] | None = None) -> "ToolConfig":
        """Combine command-line values, environment and settings file.

        Each field takes the first value found in: the command line, the
        environment (KVDUMP_ENDPOINTS, KVDUMP_TIMEOUT), the settings file, the
        built-in default. The log level is --log-level, else DEBUG for --debug,
        WARNING for --quiet, else the settings file, else INFO.

        Raises:
            ConfigError: A value cannot be interpreted
        """
        if environ is None:
            environ = os.environ

        if endpoints is None:
            endpoints = environ.get(ENDPOINTS_ENVIRONMENT_VARIABLE) or None
        if endpoints is None:
            endpoints = settings.get(SETTING_ENDPOINTS)
        endpoint_list = _split_endpoints(endpoints) if endpoints is not None else [DEFAULT_ENDPOINT]
        if not endpoint_list:
            raise ConfigError("No store endpoint configured")

        if timeout is None:
            timeout = environ.get(TIMEOUT_ENVIRONMENT_VARIABLE) or None
        if timeout is None:
            timeout = settings.get(SETTING_TIMEOUT, DEFAULT_TIMEOUT)
        try:
            timeout = float(timeout)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid timeout: {timeout!r}")
        if timeout < 0:
            raise ConfigError(f"Timeout cannot be negative: {timeout}")

        separator = settings.get(SETTING_SEPARATOR, DEFAULT_SEPARATOR)
        if not isinstance(separator, str) or len(separator) != 1:
            raise ConfigError(f"Separator must be a single character: {separator!r}")

        if log_level is None:
            if debug:
                log_level = 'DEBUG'
            elif quiet:
                log_level = 'WARNING'
            else:
                log_level = str(settings.get(SETTING_LOG_LEVEL, 'INFO')).upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {log_level}")

        if log_file is None:
            log_path_setting = settings.get(SETTING_LOG_PATH)
            if log_path_setting:
                log_file = str(log_path_setting)

        return cls(
            endpoints=tuple(endpoint_list),
            timeout=timeout,
            separator=separator,
            log_level=log_level,
            log_file=log_file)


def _split_endpoints(endpoints: str | list) -> list[str]:
    if isinstance(endpoints, str):
        endpoints = endpoints.split(',')
    elif not isinstance(endpoints, list):
        raise ConfigError(f"Invalid endpoint list: {endpoints!r}")
    return [str(e).strip() for e in endpoints if str(e).strip()]
