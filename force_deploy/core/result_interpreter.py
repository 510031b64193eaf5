"""Interpretation of deploy results into response rows and coverage reports"""

import json
import logging
import re
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Set, Tuple

from ..constants import (
    APEX_CLASS,
    APEX_TRIGGER,
    COVERAGE_FILE_PREFIX,
    COVERAGE_FILE_SUFFIX,
    COVERAGE_THRESHOLD_PERCENT,
    SECTION_ERROR_LIST,
    SRC_DIR_NAME,
    STACK_TYPE_SUFFIXES,
    UNKNOWN_POSITION,
    MessageType,
)
from ..models.result import DeployOutcome, TestFailure, TestRunOutcome
from ..utils.file_utils import create_temp_file
from .path_resolver import PathResolver
from .response_writer import Message, ResponseWriter

logger = logging.getLogger(__name__)


class Location(NamedTuple):
    """Source location parsed from diagnostic text"""
    type_name: str
    name: str
    method: str
    line: int
    column: int


_Matcher = Tuple[re.Pattern, Callable[[re.Match], Location]]

# Most specific first; the first pattern that matches wins
LOCATION_MATCHERS: List[_Matcher] = [
    # Class.Test1.prepareData: line 13, column 1
    (re.compile(r'(Class|Trigger)\.(\w*)\.(\w*).*line (\d+), column (\d+)'),
     lambda m: Location(m.group(1), m.group(2), m.group(3), int(m.group(4)), int(m.group(5)))),
    # Class.Test1: line 19, column 1
    (re.compile(r'(Class|Trigger)\.(\w*).*line (\d+), column (\d+)'),
     lambda m: Location(m.group(1), m.group(2), "", int(m.group(3)), int(m.group(4)))),
    # ... line 155, column 41: ...
    (re.compile(r'line (\d+), column (\d+)'),
     lambda m: Location("", "", "", int(m.group(1)), int(m.group(2)))),
]

LINE_COLUMN_PATTERN = LOCATION_MATCHERS[-1][0]


def parse_location(text: Optional[str]) -> Optional[Location]:
    """Parse a source location from a stack trace line or problem text

    Args:
        text: Diagnostic text

    Returns:
        Parsed location, or None if the text names no line and column
    """
    if not text:
        return None

    for pattern, build in LOCATION_MATCHERS:
        match = pattern.search(text)
        if match:
            return build(match)
    return None


def coverage_percent(total: int, uncovered: int) -> int:
    """Covered share of locations as a whole percentage (0 when nothing is instrumented)"""
    if total <= 0:
        return 0
    return (total - uncovered) * 100 // total


def coverage_message_type(percent: int) -> str:
    return MessageType.INFO if percent >= COVERAGE_THRESHOLD_PERCENT else MessageType.WARN


def deletion_file_path(file_name: Optional[str]) -> str:
    """Map a deletion failure path such as unit/classes/Foo.cls to src/classes/Foo.cls"""
    if not file_name:
        return ""
    parts = file_name.split('/')
    if len(parts) == 3:
        return "/".join([SRC_DIR_NAME] + parts[1:])
    return file_name


class ResultInterpreter:
    """Writes deploy outcomes as response rows"""

    def __init__(self,
                 writer: ResponseWriter,
                 paths: PathResolver,
                 report_coverage: bool = False,
                 coverage_dir: Optional[Path] = None):
        """Initialize result interpreter

        Args:
            writer: Response writer
            paths: Project path resolver used to locate reported components
            report_coverage: Write the coverage side-file
            coverage_dir: Folder for the coverage side-file (system temp dir when None)
        """
        self.writer = writer
        self.paths = paths
        self.coverage_requested = report_coverage
        self.coverage_dir = coverage_dir

    def resolve_file_path(self, type_name: str, name: str) -> str:
        """Project relative path of a class or trigger named in a diagnostic"""
        suffix = STACK_TYPE_SUFFIXES.get(type_name)
        if not suffix:
            return ""
        return self.paths.get_relative_file_path(name, suffix) or ""

    def message_data(self, problem: str, type_name: str, name: str) -> Tuple[int, int, str]:
        """Line, column and file path for a problem text of a named component"""
        match = LINE_COLUMN_PATTERN.search(problem or "")
        line, column = (int(match.group(1)), int(match.group(2))) if match else (UNKNOWN_POSITION, UNKNOWN_POSITION)
        return line, column, self.resolve_file_path(type_name, name)

    def report_failures(self, outcome: DeployOutcome, running_tests: bool) -> None:
        """Write the error list of a failed deploy

        Args:
            outcome: Deploy outcome
            running_tests: Whether tests were requested
        """
        with self.writer.section(SECTION_ERROR_LIST):
            self._report_component_failures(outcome)
            self.report_test_status(outcome.test_result, running_tests)
            if outcome.test_result is not None:
                self._report_test_failures(outcome.test_result.failures)

    def _report_component_failures(self, outcome: DeployOutcome) -> None:
        if not outcome.component_failures:
            return

        message = self.writer.warn("Component failures")
        for failure in outcome.component_failures:
            problem_type = failure.severity.message_type
            self.writer.row("ERROR", {
                "type": problem_type,
                "line": failure.line,
                "column": failure.column,
                "filePath": failure.file_name,
                "text": failure.problem,
            })
            self.writer.detail(message, {
                "type": problem_type,
                "filePath": failure.file_name,
                "text": failure.problem,
            })

    def report_test_status(self, test_result: Optional[TestRunOutcome], running_tests: bool) -> None:
        """Write the Tests PASSED message when requested tests had no failures"""
        if running_tests and (test_result is None or not test_result.failures):
            self.writer.info("Tests PASSED")

    def _report_test_failures(self, failures) -> None:
        if not failures:
            return

        message = self.writer.error("Test failures")
        for failure in failures:
            if failure.stack_trace:
                self._report_stack_trace(message, failure)
            else:
                line, column, file_path = self.message_data(failure.message, failure.type_name, failure.name)
                self._error_row(line, column, file_path, failure.message)
                self.writer.detail(message, {"type": MessageType.ERROR, "filePath": file_path,
                                             "text": failure.message})

    def _report_stack_trace(self, message: Message, failure: TestFailure) -> None:
        """One row per stack trace line; only the first carries the problem text"""
        lines = failure.stack_trace.splitlines()
        first = parse_location(lines[0])
        file_path = self.resolve_file_path(first.type_name, first.name) if first else ""

        self._error_row(first.line if first else UNKNOWN_POSITION,
                        first.column if first else UNKNOWN_POSITION,
                        file_path, failure.message)
        self.writer.detail(message, {"type": MessageType.ERROR, "filePath": file_path,
                                     "text": failure.message})

        for trace_line in lines[1:]:
            location = parse_location(trace_line)
            in_method = f" in method {location.method}" if location and location.method else ""
            self._error_row(location.line if location else UNKNOWN_POSITION,
                            location.column if location else UNKNOWN_POSITION,
                            file_path,
                            f"...continuing stack trace{in_method}. Details see above")

    def _error_row(self, line: int, column: int, file_path: str, text: str) -> None:
        self.writer.row("ERROR", {
            "type": MessageType.ERROR,
            "line": line,
            "column": column,
            "filePath": file_path,
            "text": text,
        })

    def report_coverage(self, test_result: Optional[TestRunOutcome]) -> Optional[Path]:
        """Write coverage details and warnings, and the coverage side-file

        The side-file holds one JSON object per covered component and is
        only produced when coverage reporting was requested and there is
        coverage data.

        Args:
            test_result: Test section of the deploy outcome

        Returns:
            Path of the coverage side-file, if written
        """
        if test_result is None:
            return None

        reported_names: Set[str] = set()
        coverage_lines: List[str] = []

        if test_result.coverage:
            message = self.writer.warn("Code coverage details")
            for result in test_result.coverage:
                reported_names.add(result.name)
                percent = coverage_percent(result.num_locations, result.num_locations_not_covered)
                self.writer.detail(message, {
                    "text": (f"{result.name}: lines total {result.num_locations}; "
                             f"lines not covered {result.num_locations_not_covered}; "
                             f"covered {percent}%"),
                    "type": coverage_message_type(percent),
                })

                file_path = self._coverage_path(result.name)
                if file_path:
                    coverage_lines.append(json.dumps({
                        "path": file_path,
                        "linesTotalNum": result.num_locations,
                        "linesNotCoveredNum": result.num_locations_not_covered,
                        "linesNotCovered": list(result.lines_not_covered),
                    }))

        if test_result.coverage_warnings:
            message = self.writer.warn("Code coverage warnings")
            for warning in test_result.coverage_warnings:
                if warning.name is None:
                    self.writer.detail(message, {"text": warning.message})
                elif warning.name not in reported_names:
                    self.writer.detail(message, {"text": f"{warning.name}: {warning.message}"})

        if not self.coverage_requested or not test_result.coverage:
            return None

        coverage_file = create_temp_file(COVERAGE_FILE_PREFIX, COVERAGE_FILE_SUFFIX, self.coverage_dir)
        with open(coverage_file, 'w', encoding='utf-8') as f:
            for line in coverage_lines:
                f.write(line + "\n")

        logger.info(f"Coverage report written to {coverage_file}")
        return coverage_file

    def _coverage_path(self, name: str) -> Optional[str]:
        """Relative path of a covered component, trying classes then triggers"""
        for xml_name in (APEX_CLASS, APEX_TRIGGER):
            metadata_type = self.paths.registry.get(xml_name)
            if metadata_type is None:
                continue
            path = self.paths.get_relative_path(metadata_type.directory, f"{name}.{metadata_type.suffix}")
            if path:
                return path
        return None

    def report_deletion_failures(self, outcome: DeployOutcome) -> None:
        """Write the error list of a failed deletion"""
        with self.writer.section(SECTION_ERROR_LIST):
            if not outcome.component_failures:
                return

            message = self.writer.warn("Component failures")
            for failure in outcome.component_failures:
                file_path = deletion_file_path(failure.file_name)
                problem_type = failure.severity.message_type
                text = f"{file_path}: {failure.problem}" if file_path else failure.problem
                self.writer.row("ERROR", {"type": problem_type, "text": failure.problem, "filePath": file_path})
                self.writer.detail(message, {"type": problem_type, "text": text, "filePath": file_path})
