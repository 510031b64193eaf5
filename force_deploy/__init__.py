"""Force Deploy - incremental metadata deployment for Force.com projects.

This tool packages the changed source files of a local project, checks
them against the remote org, deploys them and reports the outcome in a
line oriented format an editor plugin can parse.
"""

from .__version__ import __version__, __version_info__, __author__, __email__, __license__

# Core API
from .api.deployer import Deployer, deploy

# Data models
from .models.config import DeployOptions, TestSelectionSpec
from .models.result import DeployOutcome, DeployResult

# Exceptions
from .api.exceptions import (
    ForceDeployError,
    ConfigError,
    InputError,
    TestSelectionError,
    ConflictError,
    DeployError,
)

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__email__",
    "__license__",

    # Main classes
    "Deployer",

    # Core API functions
    "deploy",

    # Data models
    "DeployOptions",
    "TestSelectionSpec",
    "DeployOutcome",
    "DeployResult",

    # Exceptions
    "ForceDeployError",
    "ConfigError",
    "InputError",
    "TestSelectionError",
    "ConflictError",
    "DeployError",
]
