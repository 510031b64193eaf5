# force_deploy/services/__init__.py
"""Business logic services for force-deploy"""

from .config_service import ConfigService, DeployConfig
from .deploy_service import DeployAction, DeployOrchestrator, DeployState

__all__ = [
    "ConfigService",
    "DeployConfig",
    "DeployAction",
    "DeployOrchestrator",
    "DeployState",
]
