# force_deploy/remote/base.py
"""Remote metadata client abstract base class"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ..models.config import DeployOptions
from ..models.result import DeployOutcome, RemoteFileState


class MetadataClient(ABC):
    """Abstract base class for clients of the remote metadata store

    A client owns session and authentication handling. The orchestrator
    only ever calls :meth:`deploy` once per invocation and
    :meth:`remote_state` for conflict checks.
    """

    name: str = ""

    def __init__(self, config: Optional[Mapping[str, Any]] = None):
        """
        Initialize remote client

        Args:
            config: Resolved configuration (anything with a mapping style get)
        """
        self.config = config if config is not None else {}

    @abstractmethod
    def deploy(self, archive: bytes, options: DeployOptions) -> DeployOutcome:
        """
        Deploy a zip archive and wait for the result

        Args:
            archive: Zip archive bytes holding a package descriptor
            options: Deploy options

        Returns:
            Deploy outcome

        Raises:
            DeployError: If the remote call itself fails
        """
        pass

    @abstractmethod
    def remote_state(self, keys: List[str]) -> Dict[str, RemoteFileState]:
        """
        Look up live remote modification markers

        Args:
            keys: Change tracking keys, e.g. classes/Foo.cls

        Returns:
            State per key; keys unknown to the remote are omitted
        """
        pass

    def get_info(self) -> Dict[str, Any]:
        """Get client information"""
        return {
            "type": self.__class__.__name__,
            "name": self.name,
        }
