"""Result models for deploy operations"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .component import ComponentFailure, ComponentSuccess


@dataclass(frozen=True)
class TestFailure:
    """Failed test method reported by the remote test run"""

    __test__ = False

    message: str
    type_name: str = ""
    name: str = ""
    method_name: str = ""
    stack_trace: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TestFailure':
        """Create from dictionary"""
        return cls(
            message=data.get("message") or "",
            type_name=data.get("type") or "",
            name=data.get("name") or "",
            method_name=data.get("method_name") or "",
            stack_trace=data.get("stack_trace"),
        )


@dataclass(frozen=True)
class CoverageResult:
    """Code coverage of a single component"""

    name: str
    num_locations: int
    num_locations_not_covered: int
    lines_not_covered: Tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CoverageResult':
        """Create from dictionary"""
        return cls(
            name=data["name"],
            num_locations=data.get("num_locations", 0),
            num_locations_not_covered=data.get("num_locations_not_covered", 0),
            lines_not_covered=tuple(data.get("lines_not_covered", ())),
        )


@dataclass(frozen=True)
class CoverageWarning:
    """Coverage warning; a missing name means the warning is org wide"""

    message: str
    name: Optional[str] = None


@dataclass(frozen=True)
class TestRunOutcome:
    """Test section of a deploy result"""

    __test__ = False

    failures: Tuple[TestFailure, ...] = ()
    coverage: Tuple[CoverageResult, ...] = ()
    coverage_warnings: Tuple[CoverageWarning, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TestRunOutcome':
        """Create from dictionary"""
        return cls(
            failures=tuple(TestFailure.from_dict(f) for f in data.get("failures", [])),
            coverage=tuple(CoverageResult.from_dict(c) for c in data.get("coverage", [])),
            coverage_warnings=tuple(
                CoverageWarning(message=w.get("message", ""), name=w.get("name"))
                for w in data.get("coverage_warnings", [])
            ),
        )


@dataclass(frozen=True)
class DeployOutcome:
    """Result of the remote deploy call, read but never changed by the orchestrator"""

    success: bool
    component_failures: Tuple[ComponentFailure, ...] = ()
    component_successes: Tuple[ComponentSuccess, ...] = ()
    test_result: Optional[TestRunOutcome] = None
    log: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeployOutcome':
        """Create from dictionary"""
        test_data = data.get("test_result")
        return cls(
            success=bool(data.get("success")),
            component_failures=tuple(
                ComponentFailure.from_dict(f) for f in data.get("component_failures", [])
            ),
            component_successes=tuple(
                ComponentSuccess.from_dict(s) for s in data.get("component_successes", [])
            ),
            test_result=TestRunOutcome.from_dict(test_data) if test_data is not None else None,
            log=data.get("log") or "",
        )


@dataclass(frozen=True)
class RemoteFileState:
    """Live remote modification marker of a tracked file"""

    key: str
    last_modified_date: int
    last_modified_by: Optional[str] = None


@dataclass
class DeployResult:
    """Outcome of a whole orchestrated invocation"""
    success: bool
    action: str
    file_count: int = 0
    deployed_files: List[str] = field(default_factory=list)
    conflicts: List[Any] = field(default_factory=list)
    coverage_file: Optional[Path] = None
    log_file: Optional[Path] = None
    deploy_attempted: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            'success': self.success,
            'action': self.action,
            'file_count': self.file_count,
            'deployed_files': self.deployed_files,
            'deploy_attempted': self.deploy_attempted,
        }

        if self.conflicts:
            data['conflicts'] = [c.candidate.relative_path for c in self.conflicts]
        if self.coverage_file:
            data['coverage_file'] = str(self.coverage_file)
        if self.log_file:
            data['log_file'] = str(self.log_file)
        if self.error:
            data['error'] = self.error

        return data
