"""Deployer API for deployment operations"""

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Optional, TextIO

from ..constants import CONFIG_PROJECT_PATH, CONFIG_SPECIFIC_COMPONENTS, CONFIG_SPECIFIC_FILES
from ..core.response_writer import ResponseWriter
from ..models import DeployResult
from ..remote import ClientFactory, MetadataClient
from ..services.config_service import ConfigService, DeployConfig
from ..services.deploy_service import DeployAction, DeployOrchestrator
from .exceptions import ConflictError

logger = logging.getLogger(__name__)


class Deployer:
    """Deployer class for deployment operations

    Each call builds its configuration from the config files, the values
    given to the constructor and the keyword overrides of the call, in
    that order. Keys are the configuration keys (``checkOnly``,
    ``testsToRun``...).
    """

    def __init__(self,
                 config: Optional[Dict[str, Any]] = None,
                 config_files: Iterable[Path] = (),
                 client: Optional[MetadataClient] = None,
                 stream: Optional[TextIO] = None,
                 raise_on_conflict: bool = False):
        """
        Initialize deployer

        Args:
            config: Configuration values
            config_files: YAML config files
            client: Remote client (created from the ``client`` key when None)
            stream: Response stream (response file or stdout when None)
            raise_on_conflict: Raise ConflictError when the remote is newer
        """
        self.config = dict(config or {})
        self.config_service = ConfigService(config_files)
        self.client = client
        self.stream = stream
        self.raise_on_conflict = raise_on_conflict

    def build_config(self, **overrides) -> DeployConfig:
        """Resolve and validate the configuration of one call"""
        return self.config_service.build({**self.config, **overrides}).validate()

    def run(self, action: str, **overrides) -> DeployResult:
        """
        Run a deploy action

        Args:
            action: Action name, e.g. deployModified
            **overrides: Configuration values for this call

        Returns:
            DeployResult: Result of the action

        Raises:
            ConfigError: If the configuration is incomplete or invalid
            ConflictError: If asked to, when the remote has newer files
        """
        config = self.build_config(**overrides)
        client = self.client or ClientFactory.create(config.client_name, config)
        logger.debug(f"Remote client: {client.get_info()}")

        with self._open_response(config) as stream:
            orchestrator = DeployOrchestrator(config, client, ResponseWriter(stream))
            result = orchestrator.run(action)

        logger.info(f"{action} finished: {'SUCCESS' if result.success else 'FAILURE'}")
        if result.conflicts and self.raise_on_conflict:
            raise ConflictError(result.conflicts)
        return result

    def deploy_modified(self, **overrides) -> DeployResult:
        return self.run(DeployAction.DEPLOY_MODIFIED.value, **overrides)

    def deploy_all(self, **overrides) -> DeployResult:
        return self.run(DeployAction.DEPLOY_ALL.value, **overrides)

    def deploy_specific_files(self, list_file: Path, **overrides) -> DeployResult:
        """Deploy files named in a list file, one project relative path per line"""
        return self.run(DeployAction.DEPLOY_SPECIFIC_FILES.value,
                        **{CONFIG_SPECIFIC_FILES: str(list_file), **overrides})

    def delete_metadata(self, list_file: Path, **overrides) -> DeployResult:
        """Delete components named in a list file, e.g. classes/Foo.cls"""
        return self.run(DeployAction.DELETE_METADATA.value,
                        **{CONFIG_SPECIFIC_COMPONENTS: str(list_file), **overrides})

    def list_modified(self, **overrides) -> DeployResult:
        return self.run(DeployAction.LIST_MODIFIED.value, **overrides)

    @contextmanager
    def _open_response(self, config: DeployConfig) -> Iterator[TextIO]:
        if self.stream is not None:
            yield self.stream
            return

        response_file = config.response_file
        if response_file is None:
            yield sys.stdout
            return

        response_file.parent.mkdir(parents=True, exist_ok=True)
        with open(response_file, 'w', encoding='utf-8') as f:
            yield f


def deploy(project_path: str,
           action: str = DeployAction.DEPLOY_MODIFIED.value,
           **options) -> DeployResult:
    """
    Convenience function for running a deploy action

    Args:
        project_path: Project folder holding src/
        action: Action name
        **options: Configuration values

    Returns:
        DeployResult: Result of the action

    Raises:
        ValueError: If the action is unknown
    """
    if action not in {a.value for a in DeployAction}:
        raise ValueError(f"Unknown action: {action}")

    return Deployer({CONFIG_PROJECT_PATH: project_path}).run(action, **options)
