# force_deploy/cli/decorators/__init__.py
"""CLI decorators"""

from .options import project_options, deploy_options, to_overrides

__all__ = [
    'project_options',
    'deploy_options',
    'to_overrides',
]
