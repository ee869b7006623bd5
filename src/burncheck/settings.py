import os
from pathlib import Path

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib  # pyright: ignore[reportMissingImports]


CONFIG_ENV = 'BURNCHECK_CONFIG'

# Settings key constants
SETTING_IGNORE_FILE = 'scan.ignore_file'
SETTING_THREADS = 'scan.threads'
SETTING_HIDDEN = 'scan.hidden'
SETTING_SUFFIX = 'manifest.suffix'
SETTING_ALGORITHM = 'digest.algorithm'
SETTING_COMMAND = 'digest.command'
SETTING_LOG_PATH = 'logging.path'
SETTING_LOG_LEVEL = 'logging.level'


class Settings:
    """Read-only view of a TOML settings file.

    Example settings file:

        [scan]
        threads = 8
        hidden = false
        ignore_file = "/etc/burncheck/ignore"

        [manifest]
        suffix = ".xz"

        [digest]
        algorithm = "md5"
        command = "md5sum"

        [logging]
        path = "/var/log/burncheck.log"
        level = "INFO"

    Values given on the command line take precedence; consumers pass their own
    defaults to get().
    """

    def __init__(self, path: str | os.PathLike | None = None):
        """Load settings from path, or from $BURNCHECK_CONFIG when path is None.

        Without either, every get() returns its default.

        Raises:
            FileNotFoundError: If an explicitly given settings file does not exist
            tomllib.TOMLDecodeError: If the settings file is not valid TOML
        """
        if path is None:
            path = os.environ.get(CONFIG_ENV) or None

        self._path = Path(path) if path is not None else None
        self._settings = {}

        if self._path is not None:
            with open(self._path, 'rb') as f:
                self._settings = tomllib.load(f)

    @property
    def path(self) -> Path | None:
        return self._path

    def get(self, key: str, default=None):
        """Get a setting by dotted key, e.g. 'digest.algorithm' for settings['digest']['algorithm'].

        Returns default if any part of the key path is missing or not a table.
        """
        value = self._settings

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value
