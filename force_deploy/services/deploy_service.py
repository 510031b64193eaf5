"""Deploy orchestration service"""

import logging
import tempfile
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

from ..api.exceptions import DeployError, InputError, SessionStoreError
from ..constants import (
    APEX_CLASS,
    CONFIG_SPECIFIC_COMPONENTS,
    CONFIG_SPECIFIC_FILES,
    DESCRIBE_CACHE_FILE_NAME,
    META_XML_SUFFIX,
    PACKAGE_XML,
    SECTION_DEPLOYED_FILES,
    SECTION_MODIFIED_FILES,
)
from ..core.archive import ArchiveBuilder
from ..core.conflict_detector import ConflictDetector
from ..core.destructive_changes import DestructiveChangeBuilder
from ..core.file_set_resolver import FileSetResolver
from ..core.metadata_types import MetadataTypeRegistry
from ..core.path_resolver import PathResolver
from ..core.response_writer import ResponseWriter
from ..core.result_interpreter import ResultInterpreter
from ..core.session_store import SessionStore
from ..core.test_selector import TestSelector
from ..models.component import CandidateFile
from ..models.config import DeployOptions, TestSelectionSpec
from ..models.result import DeployOutcome, DeployResult
from ..remote.base import MetadataClient
from .config_service import DeployConfig

logger = logging.getLogger(__name__)

# Root folder name of the deletion archive
DELETION_ROOT_DIR = "unpackaged"


class DeployAction(Enum):
    """Actions the orchestrator can run"""
    DEPLOY_MODIFIED = "deployModified"
    DEPLOY_ALL = "deployAll"
    DEPLOY_SPECIFIC_FILES = "deploySpecificFiles"
    DELETE_METADATA = "deleteMetadata"
    LIST_MODIFIED = "listModified"


class DeployState(Enum):
    """Pipeline stages of one deploy invocation"""
    RESOLVE = "resolve"
    CHECK_CONFLICTS = "check_conflicts"
    PACKAGE = "package"
    DEPLOY = "deploy"
    INTERPRET = "interpret"
    PERSIST = "persist"
    REPORT_FAILURE = "report_failure"


class DeployOrchestrator:
    """Runs one deploy action from file resolution to the final report"""

    def __init__(self,
                 config: DeployConfig,
                 client: MetadataClient,
                 writer: ResponseWriter,
                 registry: Optional[MetadataTypeRegistry] = None):
        """Initialize orchestrator

        Args:
            config: Resolved configuration of this invocation
            client: Remote metadata client
            writer: Response writer receiving the report
            registry: Metadata types (built-in table plus describe cache when None)
        """
        self.config = config
        self.client = client
        self.writer = writer

        self.registry = registry or MetadataTypeRegistry.from_describe_cache(
            config.session_dir / DESCRIBE_CACHE_FILE_NAME
        )
        self.paths = PathResolver(config.project_dir, self.registry)
        self.store = SessionStore(config.session_dir)
        self.resolver = FileSetResolver(self.paths, self.registry, self.store, config.prefer_md5)
        self.detector = ConflictDetector(self.store, client, self.paths, writer)
        self.selector = TestSelector()
        self.archiver = ArchiveBuilder()
        self.interpreter = ResultInterpreter(writer, self.paths, config.report_coverage, config.temp_dir)

        self.state = DeployState.RESOLVE
        self.deploy_calls = 0

    def _transition(self, state: DeployState) -> None:
        logger.info(f"{self.state.value} -> {state.value}")
        self.state = state

    def run(self, action: str) -> DeployResult:
        """Run an action, reporting input and remote call errors as failures

        Args:
            action: Action name, e.g. deployModified

        Returns:
            Outcome of the invocation
        """
        handlers: Dict[DeployAction, Callable[[], DeployResult]] = {
            DeployAction.DEPLOY_MODIFIED: self.deploy_modified,
            DeployAction.DEPLOY_ALL: self.deploy_all,
            DeployAction.DEPLOY_SPECIFIC_FILES: self.deploy_specific_files,
            DeployAction.DELETE_METADATA: self.delete_metadata,
            DeployAction.LIST_MODIFIED: self.list_modified,
        }
        deploy_action = DeployAction(action)

        try:
            return handlers[deploy_action]()
        except (InputError, DeployError, SessionStoreError) as e:
            logger.error(str(e))
            self.writer.write_result(False)
            self.writer.error(str(e), {"code": e.error_code})
            return DeployResult(success=False, action=action, error=str(e),
                                deploy_attempted=self.deploy_calls > 0)

    def deploy_modified(self) -> DeployResult:
        """Deploy files changed since the last deploy or refresh"""
        action = DeployAction.DEPLOY_MODIFIED.value
        self._check_test_selection()

        self._transition(DeployState.RESOLVE)
        files = self.resolver.modified()
        if self._nothing_to_deploy(files):
            return self._report_nothing_to_do(action, files)

        blocked = self._check_conflicts(action, files)
        if blocked:
            return blocked

        return self._deploy(action, files, update_session=not self.config.check_only)

    def deploy_all(self) -> DeployResult:
        """Deploy every source file of the project"""
        action = DeployAction.DEPLOY_ALL.value
        self._check_test_selection()

        self._transition(DeployState.RESOLVE)
        files = self.resolver.all_files()
        if self._nothing_to_deploy(files):
            return self._report_nothing_to_do(action, files)

        return self._deploy(action, files, update_session=self._update_session_enabled())

    def deploy_specific_files(self) -> DeployResult:
        """Deploy the files named in the specificFiles list"""
        action = DeployAction.DEPLOY_SPECIFIC_FILES.value
        self._check_test_selection()

        self._transition(DeployState.RESOLVE)
        list_file = self._list_file(CONFIG_SPECIFIC_FILES)
        files = self.resolver.specific_files(list_file)
        if not files:
            self.writer.write_result(False)
            self.writer.error(f"no valid files in {list_file}")
            return DeployResult(success=False, action=action, error=f"no valid files in {list_file}")

        if not self.config.calling_another_org:
            blocked = self._check_conflicts(action, files)
            if blocked:
                return blocked

        return self._deploy(action, files, update_session=self._update_session_enabled())

    def list_modified(self) -> DeployResult:
        """Report files changed since the last deploy or refresh"""
        action = DeployAction.LIST_MODIFIED.value
        files = self.resolver.modified()

        self.writer.write_result(True)
        self.writer.write_value("FILE_COUNT", len(files))

        if not files:
            self.writer.info("No Modified file(s) detected.")
        else:
            message = self.writer.info("Modified file(s) detected.", {"code": "HAS_MODIFIED_FILES"})
            for candidate in files:
                self.writer.detail(message, {"filePath": str(candidate.path), "text": candidate.project_path})
            self.writer.write_value("HAS_MODIFIED_FILES", True)
            with self.writer.section(SECTION_MODIFIED_FILES):
                for candidate in files:
                    self.writer.write_value("MODIFIED_FILE", candidate.project_path)

        return DeployResult(success=True, action=action, file_count=len(files),
                            deployed_files=[c.project_path for c in files])

    def delete_metadata(self) -> DeployResult:
        """Delete the components named in the specificComponents list"""
        action = DeployAction.DELETE_METADATA.value
        list_file = self._list_file(CONFIG_SPECIFIC_COMPONENTS)
        components = self.resolver.component_paths(list_file)
        if not components:
            self.writer.write_result(False)
            self.writer.error(f"no valid components in {list_file}")
            return DeployResult(success=False, action=action, error=f"no valid components in {list_file}")

        builder = DestructiveChangeBuilder(self.registry, self.config.api_version)
        options = DeployOptions(check_only=self.config.check_only, allow_missing_files=False)

        with self._temp_dir() as temp_dir:
            self._transition(DeployState.PACKAGE)
            deploy_dir = builder.write_deployment_dir(components, temp_dir / DELETION_ROOT_DIR)
            archive = self.archiver.build(deploy_dir)
            outcome = self._call_deploy(archive, options)

        self._transition(DeployState.INTERPRET)
        if not outcome.success:
            self._transition(DeployState.REPORT_FAILURE)
            self.writer.write_result(False)
            self.interpreter.report_deletion_failures(outcome)
            log_file = self._write_log(outcome)
            return DeployResult(success=False, action=action, file_count=len(components),
                                log_file=log_file, deploy_attempted=True)

        update_session = self._update_session_enabled()
        removed = []
        if update_session:
            self._transition(DeployState.PERSIST)
            keys = []
            for component_path in components:
                directory, _, file_name = component_path.strip().partition('/')
                keys.append(self.store.find_key(directory, file_name))
            removed = self.store.remove_all(key for key in keys if key)
            self.store.save()

        self.writer.write_result(True)
        if update_session:
            self.writer.debug("Updating session data")
            for key in removed:
                self.writer.debug(f"Removed session data for key: {key}")

        log_file = self._write_log(outcome)
        return DeployResult(success=True, action=action, file_count=len(components),
                            deployed_files=list(components), log_file=log_file, deploy_attempted=True)

    def _check_test_selection(self) -> TestSelectionSpec:
        """Reject invalid test selections before any remote call"""
        selection = self.selector.parse(self.config.tests_to_run)
        self.selector.content_transform(selection, self.config.check_only)
        return selection

    def _nothing_to_deploy(self, files: List[CandidateFile]) -> bool:
        if self.config.tests_to_run and self.config.tests_to_run.strip():
            return False
        return not [f for f in files if f.name != PACKAGE_XML]

    def _report_nothing_to_do(self, action: str, files: List[CandidateFile]) -> DeployResult:
        logger.info("Nothing to deploy")
        self.writer.write_result(True)
        self.writer.write_value("FILE_COUNT", len(files))
        self.writer.info("no modified files detected.")
        return DeployResult(success=True, action=action, file_count=len(files))

    def _check_conflicts(self, action: str, files: List[CandidateFile]) -> Optional[DeployResult]:
        """Stop with a failure report when the remote has newer versions

        Returns:
            Failure result when blocked, None when the deploy may go ahead
        """
        if self.config.ignore_conflicts:
            logger.info("Ignoring conflicts with remote")
            return None

        self._transition(DeployState.CHECK_CONFLICTS)
        conflicts = self.detector.find_conflicts(files)
        if not conflicts:
            return None

        self._transition(DeployState.REPORT_FAILURE)
        self.writer.write_result(False)
        self.detector.report(conflicts)
        return DeployResult(success=False, action=action, file_count=len(files), conflicts=conflicts)

    def _update_session_enabled(self) -> bool:
        # A check-only run changes nothing on the remote
        if self.config.check_only:
            return False
        return not self.config.calling_another_org or self.config.update_session_data_on_success

    def _list_file(self, key: str) -> Path:
        self.config.require(key)
        return self.config.get_path(key)

    @contextmanager
    def _temp_dir(self) -> Iterator[Path]:
        """Per invocation folder for transformed files and manifests"""
        parent = self.config.temp_dir
        if parent is not None:
            parent.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="force-deploy-", dir=parent) as temp_dir:
            yield Path(temp_dir)

    def _call_deploy(self, archive: bytes, options: DeployOptions) -> DeployOutcome:
        self._transition(DeployState.DEPLOY)
        self.deploy_calls += 1
        logger.info(f"Deploying {len(archive)} bytes (checkOnly={options.check_only})")
        try:
            return self.client.deploy(archive, options)
        except DeployError:
            raise
        except Exception as e:
            raise DeployError(f"Deploy call failed: {e}") from e

    def _deploy(self, action: str, files: List[CandidateFile], update_session: bool) -> DeployResult:
        """Package, deploy and report a file set"""
        check_only = self.config.check_only
        file_set = self.resolver.expand(files)
        selection = self.selector.parse(self.config.tests_to_run, file_set)

        # A method filter needs its class in the package even when unchanged
        if check_only:
            for class_name in selection.filtered_classes():
                file_set = self.resolver.add_class_with_descriptor(file_set, class_name, APEX_CLASS)

        options = DeployOptions.create(check_only, selection, allow_missing_files=True)

        with self._temp_dir() as temp_dir:
            transform = self.selector.content_transform(selection, check_only, temp_dir)
            self._transition(DeployState.PACKAGE)
            archive = self.archiver.build(self.paths.src_dir,
                                          self.resolver.include_predicate(file_set),
                                          transform)
            outcome = self._call_deploy(archive, options)

        self._transition(DeployState.INTERPRET)
        running_tests = bool(selection)

        if not outcome.success:
            self._transition(DeployState.REPORT_FAILURE)
            self.writer.write_result(False)
            self.interpreter.report_failures(outcome, running_tests)
            coverage_file = self._report_coverage(outcome)
            log_file = self._write_log(outcome)
            return DeployResult(success=False, action=action, file_count=len(files),
                                coverage_file=coverage_file, log_file=log_file, deploy_attempted=True)

        self.interpreter.report_test_status(outcome.test_result, running_tests)
        coverage_file = self._report_coverage(outcome)

        if update_session:
            self._transition(DeployState.PERSIST)
            self._update_session(outcome)

        self.writer.write_result(True)
        self.writer.write_value("FILE_COUNT", len(files))
        if not check_only:
            with self.writer.section(SECTION_DEPLOYED_FILES):
                for candidate in files:
                    self.writer.println(candidate.name)

        log_file = self._write_log(outcome)
        return DeployResult(success=True, action=action, file_count=len(files),
                            deployed_files=[c.project_path for c in files],
                            coverage_file=coverage_file, log_file=log_file, deploy_attempted=True)

    def _report_coverage(self, outcome: DeployOutcome) -> Optional[Path]:
        coverage_file = self.interpreter.report_coverage(outcome.test_result)
        if coverage_file:
            self.writer.write_value("COVERAGE_FILE", str(coverage_file.resolve()))
        return coverage_file

    def _update_session(self, outcome: DeployOutcome) -> None:
        """Refresh tracked state of every component the remote accepted"""
        for success in outcome.component_successes:
            if success.file_name.endswith(META_XML_SUFFIX):
                # Recorded together with its source file
                continue

            file_path = self.config.project_dir / success.file_name
            if not file_path.is_file():
                logger.debug(f"Skipping session update of missing file {success.file_name}")
                continue

            try:
                key = self.paths.key_for(file_path)
            except ValueError:
                logger.debug(f"Skipping session update of {success.file_name} outside source folder")
                continue

            remote = success.remote_snapshot()
            xml_name = self.registry.xml_name_for_directory(file_path.parent.name)
            if xml_name:
                remote["type"] = xml_name

            self.store.record(key, file_path, self.config.prefer_md5, remote)
            logger.debug(f"Updated session data of {key}")

        self.store.save()

    def _write_log(self, outcome: DeployOutcome) -> Optional[Path]:
        if not outcome.log:
            return None

        log_file = self.config.log_file
        log_file.parent.mkdir(parents=True, exist_ok=True)
        log_file.write_text(outcome.log, encoding='utf-8')
        self.writer.write_value("LOG_FILE", str(log_file.resolve()))
        return log_file
