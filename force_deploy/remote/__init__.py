# force_deploy/remote/__init__.py
"""Remote metadata clients for force-deploy"""

from .base import MetadataClient
from .replay import ReplayClient
from .factory import ClientFactory

__all__ = [
    'MetadataClient',
    'ReplayClient',
    'ClientFactory',
]
