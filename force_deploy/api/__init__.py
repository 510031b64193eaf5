"""API layer for force-deploy"""

from .exceptions import (
    ForceDeployError,
    ConfigError,
    MissingConfigError,
    InputError,
    TestSelectionError,
    ConflictError,
    DeployError,
    SessionStoreError,
    UnknownClientError,
)
from .deployer import Deployer, deploy

__all__ = [
    # Main classes
    "Deployer",

    # Convenience functions
    "deploy",

    # Exceptions
    "ForceDeployError",
    "ConfigError",
    "MissingConfigError",
    "InputError",
    "TestSelectionError",
    "ConflictError",
    "DeployError",
    "SessionStoreError",
    "UnknownClientError",
]
