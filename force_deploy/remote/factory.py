"""Remote client factory"""

import importlib
import logging
from typing import Any, Dict, List, Mapping, Optional, Type

from ..api.exceptions import UnknownClientError
from .base import MetadataClient
from .replay import ReplayClient

logger = logging.getLogger(__name__)


class ClientFactory:
    """Factory for creating remote client instances"""

    # Registry of remote clients
    _clients: Dict[str, Type[MetadataClient]] = {
        ReplayClient.name: ReplayClient,
    }

    @classmethod
    def create(cls, name: str, config: Optional[Mapping[str, Any]] = None) -> MetadataClient:
        """Create a client by registered name or ``package.module:ClassName``

        Args:
            name: Client name or dotted path
            config: Resolved configuration handed to the client

        Returns:
            Client instance

        Raises:
            UnknownClientError: If the client can not be resolved
        """
        client_class = cls._clients[name] if cls.is_supported(name) else cls._load(name)
        logger.debug(f"Using remote client {client_class.__name__}")
        return client_class(config)

    @classmethod
    def _load(cls, path: str) -> Type[MetadataClient]:
        """Import a client class from ``package.module:ClassName``"""
        module_name, sep, class_name = path.partition(':')
        if not sep or not module_name or not class_name:
            logger.error(f"Unknown client {path}, registered clients: {', '.join(cls.get_supported_clients())}")
            raise UnknownClientError(path)

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            logger.error(f"Failed to import client module {module_name}: {e}")
            raise UnknownClientError(path)

        client_class = getattr(module, class_name, None)
        if not isinstance(client_class, type) or not issubclass(client_class, MetadataClient):
            raise UnknownClientError(path)
        return client_class

    @classmethod
    def register_client(cls, name: str, client_class: Type[MetadataClient]):
        """Register a new client type

        Args:
            name: Client name
            client_class: Client class
        """
        cls._clients[name] = client_class

    @classmethod
    def get_supported_clients(cls) -> List[str]:
        """Get list of registered client names"""
        return sorted(cls._clients)

    @classmethod
    def is_supported(cls, name: str) -> bool:
        """Check if a client name is registered"""
        return name in cls._clients
