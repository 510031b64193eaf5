# force_deploy/models/__init__.py
"""Data models for force-deploy"""

from .component import CandidateFile, ComponentFailure, ComponentSuccess, ProblemSeverity
from .manifest import PackageManifest, DestructiveManifest
from .result import (
    TestFailure,
    CoverageResult,
    CoverageWarning,
    TestRunOutcome,
    DeployOutcome,
    RemoteFileState,
    DeployResult,
)
from .config import DeployOptions, TestSelectionSpec
from .project import ChangeTrackingEntry

__all__ = [
    # Component models
    "CandidateFile",
    "ComponentFailure",
    "ComponentSuccess",
    "ProblemSeverity",

    # Manifest models
    "PackageManifest",
    "DestructiveManifest",

    # Result models
    "TestFailure",
    "CoverageResult",
    "CoverageWarning",
    "TestRunOutcome",
    "DeployOutcome",
    "RemoteFileState",
    "DeployResult",

    # Config models
    "DeployOptions",
    "TestSelectionSpec",

    # Change tracking models
    "ChangeTrackingEntry",
]
