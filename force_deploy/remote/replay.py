"""Client that answers from a recorded YAML file"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..api.exceptions import DeployError, MissingConfigError
from ..constants import CONFIG_ARCHIVE_OUTPUT, CONFIG_REPLAY_FILE
from ..models.config import DeployOptions
from ..models.result import DeployOutcome, RemoteFileState
from .base import MetadataClient

logger = logging.getLogger(__name__)


class ReplayClient(MetadataClient):
    """Replays a recorded deploy outcome and remote state

    The replay file looks like::

        deploy:
          success: true
          component_successes:
            - file_name: src/classes/Foo.cls
              last_modified_date: 1400000000000
        remote_state:
          classes/Foo.cls:
            last_modified_date: 1400000000000
            last_modified_by: Jane Doe

    When ``archiveOutput`` is configured the deployed archive is written
    there, which makes the client handy for inspecting packages offline.
    """

    name = "replay"

    def __init__(self, config: Optional[Mapping[str, Any]] = None):
        super().__init__(config)
        replay_file = self.config.get(CONFIG_REPLAY_FILE)
        if not replay_file:
            raise MissingConfigError(CONFIG_REPLAY_FILE)

        self.replay_file = Path(replay_file)
        self._data: Optional[Dict[str, Any]] = None
        self.deploy_calls: List[DeployOptions] = []

    @property
    def data(self) -> Dict[str, Any]:
        """Recorded data (lazy load)"""
        if self._data is None:
            try:
                with open(self.replay_file, 'r', encoding='utf-8') as f:
                    self._data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise DeployError(f"Failed to load replay file {self.replay_file}: {e}")
        return self._data

    def deploy(self, archive: bytes, options: DeployOptions) -> DeployOutcome:
        self.deploy_calls.append(options)

        archive_output = self.config.get(CONFIG_ARCHIVE_OUTPUT)
        if archive_output:
            Path(archive_output).write_bytes(archive)
            logger.info(f"Deploy archive written to {archive_output}")

        recorded = self.data.get('deploy')
        if recorded is None:
            raise DeployError(f"No deploy outcome recorded in {self.replay_file}")
        return DeployOutcome.from_dict(recorded)

    def remote_state(self, keys: List[str]) -> Dict[str, RemoteFileState]:
        recorded = self.data.get('remote_state') or {}
        states = {}
        for key in keys:
            if key not in recorded:
                continue
            entry = recorded[key] or {}
            if entry.get('last_modified_date') is None:
                raise DeployError(f"No last_modified_date recorded for {key} in {self.replay_file}")
            states[key] = RemoteFileState(
                key=key,
                last_modified_date=int(entry['last_modified_date']),
                last_modified_by=entry.get('last_modified_by'),
            )
        return states
