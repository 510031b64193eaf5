"""Deploy option and test selection models"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Tuple


@dataclass(frozen=True)
class TestSelectionSpec:
    """Test classes to run, each mapped to the methods to keep

    An empty method set means every method of the class runs.
    """

    __test__ = False

    classes: Mapping[str, FrozenSet[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __bool__(self) -> bool:
        return bool(self.classes)

    @property
    def class_names(self) -> List[str]:
        """Sorted names of the selected classes"""
        return sorted(self.classes)

    @property
    def has_method_filters(self) -> bool:
        """Whether any class is narrowed to specific methods"""
        return any(self.classes.values())

    def methods_for(self, class_name: str) -> FrozenSet[str]:
        """Methods retained for a class (empty when all run)"""
        return self.classes.get(class_name, frozenset())

    def filtered_classes(self) -> Dict[str, FrozenSet[str]]:
        """Classes that carry a method filter"""
        return {name: methods for name, methods in self.classes.items() if methods}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {name: sorted(methods) for name, methods in self.classes.items()}


@dataclass(frozen=True)
class DeployOptions:
    """Options passed to the remote deploy call"""

    check_only: bool = False
    allow_missing_files: bool = False
    run_tests: Tuple[str, ...] = ()
    # Fixed by the deploy protocol
    rollback_on_error: bool = field(default=True, init=False)
    perform_retrieve: bool = field(default=False, init=False)

    @classmethod
    def create(cls,
               check_only: bool,
               selection: TestSelectionSpec,
               allow_missing_files: bool = False) -> 'DeployOptions':
        """Build options for one deploy invocation"""
        return cls(
            check_only=check_only,
            allow_missing_files=allow_missing_files,
            run_tests=tuple(selection.class_names),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'checkOnly': self.check_only,
            'rollbackOnError': self.rollback_on_error,
            'allowMissingFiles': self.allow_missing_files,
            'performRetrieve': self.perform_retrieve,
            'runTests': list(self.run_tests),
        }
