"""Configuration management service"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

import yaml
from packaging.version import InvalidVersion, Version

from ..api.exceptions import ConfigError, MissingConfigError
from ..constants import (
    CONFIG_API_VERSION,
    CONFIG_CALLING_ANOTHER_ORG,
    CONFIG_CHECK_ONLY,
    CONFIG_CLIENT,
    CONFIG_IGNORE_CONFLICTS,
    CONFIG_LOG_FILE,
    CONFIG_PREFER_MD5,
    CONFIG_PROJECT_PATH,
    CONFIG_REPORT_COVERAGE,
    CONFIG_RESPONSE_FILE,
    CONFIG_SESSION_FOLDER,
    CONFIG_TEMP_FOLDER,
    CONFIG_TESTS_TO_RUN,
    CONFIG_UPDATE_SESSION,
    DEFAULT_API_VERSION,
    DEFAULT_SESSION_DIR,
    ENV_CONFIG_PATH,
    FALSE_VALUES,
    LOG_FILE_PREFIX,
    LOG_FILE_SUFFIX,
    SRC_DIR_NAME,
    TRUE_VALUES,
)

logger = logging.getLogger(__name__)


class DeployConfig(Mapping[str, Any]):
    """Resolved key/value configuration of one invocation

    Values are looked up by the same keys the command line and config
    files use (``projectPath``, ``checkOnly``...).
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def require(self, key: str) -> Any:
        """Get a value that must be present

        Raises:
            MissingConfigError: If the key is missing or blank
        """
        value = self._values.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingConfigError(key)
        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get a boolean value

        Raises:
            ConfigError: If the value is not a recognised boolean
        """
        value = self._values.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value

        text = str(value).strip().lower()
        if text in TRUE_VALUES:
            return True
        if text in FALSE_VALUES:
            return False
        raise ConfigError(f"Invalid boolean value for {key}: {value}")

    def get_path(self, key: str, default: Optional[Path] = None) -> Optional[Path]:
        """Get a path value, resolved against the project folder when relative"""
        value = self._values.get(key)
        if value is None:
            return default

        path = Path(os.path.expanduser(str(value)))
        if not path.is_absolute() and key != CONFIG_PROJECT_PATH:
            path = self.project_dir / path
        return path

    @property
    def project_dir(self) -> Path:
        path = Path(os.path.expanduser(str(self.require(CONFIG_PROJECT_PATH))))
        return path.resolve()

    @property
    def src_dir(self) -> Path:
        return self.project_dir / SRC_DIR_NAME

    @property
    def session_dir(self) -> Path:
        return self.get_path(CONFIG_SESSION_FOLDER, self.project_dir / DEFAULT_SESSION_DIR)

    @property
    def response_file(self) -> Optional[Path]:
        return self.get_path(CONFIG_RESPONSE_FILE)

    @property
    def temp_dir(self) -> Optional[Path]:
        return self.get_path(CONFIG_TEMP_FOLDER)

    @property
    def log_file(self) -> Path:
        """File receiving the server side log of a deploy"""
        default = (self.temp_dir or self.session_dir) / f"{LOG_FILE_PREFIX}deploy{LOG_FILE_SUFFIX}"
        return self.get_path(CONFIG_LOG_FILE, default)

    @property
    def client_name(self) -> str:
        return str(self.require(CONFIG_CLIENT))

    @property
    def api_version(self) -> str:
        value = str(self.get(CONFIG_API_VERSION, DEFAULT_API_VERSION))
        try:
            Version(value)
        except InvalidVersion:
            raise ConfigError(f"Invalid {CONFIG_API_VERSION}: {value}")
        return value

    @property
    def check_only(self) -> bool:
        return self.get_bool(CONFIG_CHECK_ONLY)

    @property
    def ignore_conflicts(self) -> bool:
        return self.get_bool(CONFIG_IGNORE_CONFLICTS)

    @property
    def report_coverage(self) -> bool:
        return self.get_bool(CONFIG_REPORT_COVERAGE)

    @property
    def prefer_md5(self) -> bool:
        return self.get_bool(CONFIG_PREFER_MD5)

    @property
    def calling_another_org(self) -> bool:
        return self.get_bool(CONFIG_CALLING_ANOTHER_ORG)

    @property
    def update_session_data_on_success(self) -> bool:
        return self.get_bool(CONFIG_UPDATE_SESSION)

    @property
    def tests_to_run(self) -> Optional[str]:
        value = self.get(CONFIG_TESTS_TO_RUN)
        return str(value) if value is not None else None

    def validate(self) -> 'DeployConfig':
        """Check values every action depends on

        Raises:
            ConfigError: If the project has no source folder or a value is invalid
        """
        if not self.src_dir.is_dir():
            raise ConfigError(f"Source folder not found: {self.src_dir}")
        logger.debug(f"Using API version {self.api_version}")
        for key in (CONFIG_CHECK_ONLY, CONFIG_IGNORE_CONFLICTS, CONFIG_REPORT_COVERAGE,
                    CONFIG_PREFER_MD5, CONFIG_CALLING_ANOTHER_ORG, CONFIG_UPDATE_SESSION):
            self.get_bool(key)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return dict(self._values)


class ConfigService:
    """Builds the configuration of one invocation from files and overrides"""

    def __init__(self, config_files: Iterable[Path] = ()):
        """Initialize config service

        Args:
            config_files: YAML config files, later files win
        """
        self.config_files = [Path(f) for f in config_files]
        env_config = os.environ.get(ENV_CONFIG_PATH)
        if not self.config_files and env_config:
            self.config_files = [Path(env_config)]

    def load_file(self, config_path: Path) -> Dict[str, Any]:
        """Load one YAML config file

        Args:
            config_path: Config file

        Returns:
            Top level key/value pairs
        """
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()

        # Simple environment variable expansion
        content = os.path.expandvars(content)

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {config_path}")

        logger.debug(f"Loaded {len(data)} settings from {config_path}")
        return data

    def build(self, overrides: Optional[Dict[str, Any]] = None) -> DeployConfig:
        """Merge config files and command line values

        Blank values never override earlier ones.

        Args:
            overrides: Command line values, winning over files

        Returns:
            Resolved configuration
        """
        values: Dict[str, Any] = {}
        for config_path in self.config_files:
            values.update(_non_blank(self.load_file(config_path)))
        values.update(_non_blank(overrides or {}))
        return DeployConfig(values)


def _non_blank(values: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value for key, value in values.items()
        if value is not None and not (isinstance(value, str) and not value.strip())
    }
