"""End to end tests of the deploy orchestrator against a fake remote"""

import io
import zipfile

import pytest

from force_deploy.core.archive import ArchiveBuilder
from force_deploy.core.session_store import SessionStore
from force_deploy.models import (
    ComponentFailure,
    ComponentSuccess,
    DeployOutcome,
    ProblemSeverity,
    TestRunOutcome,
)
from force_deploy.services.deploy_service import DeployState

from conftest import FOO_TEST_SOURCE, FakeClient, response_lines, touch_later

ALL_FILE_NAMES = [
    "Foo.cls",
    "Foo.cls-meta.xml",
    "FooTest.cls",
    "FooTest.cls-meta.xml",
    "AccountTrigger.trigger",
    "AccountTrigger.trigger-meta.xml",
]


def modify(path):
    path.write_text(path.read_text() + "// changed\n")
    touch_later(path)


def archive_names(client):
    archive, _ = client.deploy_calls[0]
    return ArchiveBuilder().list_content(archive)


def section(lines, name):
    start = lines.index(f"#SECTION START: {name}")
    end = lines.index(f"#SECTION END: {name}")
    return lines[start + 1:end]


@pytest.fixture
def foo_success():
    return DeployOutcome(success=True, component_successes=(
        ComponentSuccess("src/classes/Foo.cls", full_name="Foo", id="01p",
                         last_modified_date=5000, last_modified_by="Jane Doe"),
        ComponentSuccess("src/classes/Foo.cls-meta.xml", full_name="Foo"),
    ))


class TestDeployModified:

    def test_nothing_to_deploy(self, make_orchestrator, track_all, output):
        track_all()
        orchestrator, client = make_orchestrator()

        result = orchestrator.deploy_modified()

        assert result.success
        assert response_lines(output) == [
            "RESULT=SUCCESS",
            "FILE_COUNT=0",
            "MESSAGE,id=1,type=INFO,text=no modified files detected.",
        ]
        assert client.deploy_calls == []

    def test_untracked_project_is_deployed(self, make_orchestrator, output, session_dir, foo_success):
        orchestrator, client = make_orchestrator(FakeClient(outcome=foo_success))

        result = orchestrator.deploy_modified()

        assert result.success and result.deploy_attempted
        assert orchestrator.state is DeployState.PERSIST
        assert client.state_calls == []

        _, options = client.deploy_calls[0]
        assert options.check_only is False
        assert options.allow_missing_files is True
        assert options.rollback_on_error is True
        assert options.run_tests == ()

        names = archive_names(client)
        assert "src/package.xml" in names
        assert "src/classes/Foo.cls" in names
        assert "src/triggers/AccountTrigger.trigger-meta.xml" in names

        lines = response_lines(output)
        assert lines[:2] == ["RESULT=SUCCESS", "FILE_COUNT=6"]
        assert section(lines, "DEPLOYED FILES") == ALL_FILE_NAMES

        entry = SessionStore(session_dir).get("classes/Foo.cls")
        assert entry.remote == {
            "id": "01p",
            "fullName": "Foo",
            "lastModifiedDateMills": 5000,
            "lastModifiedByName": "Jane Doe",
            "type": "ApexClass",
        }
        assert entry.crc32 is not None and entry.meta_crc32 is not None

    def test_second_run_sees_deployed_file_as_unchanged(self, make_orchestrator, track_all, project, foo_success):
        track_all()
        modify(project / "src/classes/Foo.cls")
        orchestrator, _ = make_orchestrator(FakeClient(outcome=foo_success))
        assert orchestrator.deploy_modified().file_count == 1

        orchestrator, client = make_orchestrator(FakeClient(outcome=foo_success))
        result = orchestrator.deploy_modified()

        assert result.file_count == 0
        assert client.deploy_calls == []

    def test_conflict_blocks_deploy(self, make_orchestrator, track_all, project, output):
        track_all({"classes/Foo.cls": 1000})
        modify(project / "src/classes/Foo.cls")
        orchestrator, client = make_orchestrator(FakeClient(remote={"classes/Foo.cls": 2000}))

        result = orchestrator.deploy_modified()

        assert not result.success
        assert not result.deploy_attempted
        assert [c.candidate.relative_path for c in result.conflicts] == ["classes/Foo.cls"]
        assert client.deploy_calls == []
        assert orchestrator.state is DeployState.REPORT_FAILURE

        lines = response_lines(output)
        assert lines[0] == "RESULT=FAILURE"
        assert "MESSAGE,id=1,type=WARN,text=Outdated file(s) detected." in lines
        assert "MESSAGE,id=2,type=WARN,text=Use 'refresh' before 'deploy'." in lines

    def test_ignore_conflicts_skips_lookup(self, make_orchestrator, track_all, project):
        track_all({"classes/Foo.cls": 1000})
        modify(project / "src/classes/Foo.cls")
        orchestrator, client = make_orchestrator(FakeClient(remote={"classes/Foo.cls": 2000}),
                                                 ignoreConflicts="true")

        result = orchestrator.deploy_modified()

        assert result.success
        assert client.state_calls == []
        assert len(client.deploy_calls) == 1

    def test_older_remote_is_not_a_conflict(self, make_orchestrator, track_all, project):
        track_all({"classes/Foo.cls": 3000})
        modify(project / "src/classes/Foo.cls")
        orchestrator, client = make_orchestrator(FakeClient(remote={"classes/Foo.cls": 2000}))

        assert orchestrator.deploy_modified().success
        assert client.state_calls == [["classes/Foo.cls"]]
        assert len(client.deploy_calls) == 1

    def test_failed_deploy_keeps_session(self, make_orchestrator, output, session_dir):
        outcome = DeployOutcome(success=False, component_failures=(
            ComponentFailure(ProblemSeverity.ERROR, "src/classes/Foo.cls", "Unexpected token", 1, 14),
        ))
        orchestrator, client = make_orchestrator(FakeClient(outcome=outcome))

        result = orchestrator.deploy_modified()

        assert not result.success and result.deploy_attempted
        lines = response_lines(output)
        assert lines[0] == "RESULT=FAILURE"
        assert section(lines, "ERROR LIST")[1] == (
            "ERROR,type=ERROR,line=1,column=14,filePath=src/classes/Foo.cls,text=Unexpected token"
        )
        assert not (session_dir / "session.properties").exists()

    def test_check_only_with_method_filter(self, make_orchestrator, track_all, project, output, session_dir):
        track_all()
        modify(project / "src/classes/Foo.cls")
        outcome = DeployOutcome(success=True, test_result=TestRunOutcome())
        orchestrator, client = make_orchestrator(FakeClient(outcome=outcome),
                                                 checkOnly="true", testsToRun="FooTest.testA")
        before = (session_dir / "session.properties").read_text()

        result = orchestrator.deploy_modified()

        assert result.success
        archive, options = client.deploy_calls[0]
        assert options.check_only is True
        assert options.run_tests == ("FooTest",)

        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            names = zf.namelist()
            deployed_test = zf.read("src/classes/FooTest.cls").decode()
        assert "src/classes/FooTest.cls-meta.xml" in names
        assert "src/classes/Foo.cls" in names
        assert "src/triggers/AccountTrigger.trigger" not in names
        assert "void testB() {return; " in deployed_test
        assert "void testA() {return; " not in deployed_test
        assert (project / "src/classes/FooTest.cls").read_text() == FOO_TEST_SOURCE

        assert response_lines(output) == [
            "MESSAGE,id=1,type=INFO,text=Tests PASSED",
            "RESULT=SUCCESS",
            "FILE_COUNT=1",
        ]
        assert (session_dir / "session.properties").read_text() == before

    def test_method_filter_needs_check_only(self, make_orchestrator, output):
        orchestrator, client = make_orchestrator(testsToRun="FooTest.testA")

        result = orchestrator.run("deployModified")

        assert not result.success
        assert response_lines(output) == [
            "RESULT=FAILURE",
            "MESSAGE,id=1,type=ERROR,text=Running selected test methods is only supported "
            "with check-only deploys.,code=FD004",
        ]
        assert client.deploy_calls == [] and client.state_calls == []

    def test_wildcard_runs_every_deployed_class(self, make_orchestrator):
        orchestrator, client = make_orchestrator(testsToRun="*")

        assert orchestrator.deploy_modified().success
        _, options = client.deploy_calls[0]
        assert options.run_tests == ("Foo", "FooTest")

    def test_tests_run_even_without_changes(self, make_orchestrator, track_all, output):
        track_all()
        orchestrator, client = make_orchestrator(testsToRun="FooTest")

        assert orchestrator.deploy_modified().success
        _, options = client.deploy_calls[0]
        assert options.run_tests == ("FooTest",)
        assert "MESSAGE,id=1,type=INFO,text=Tests PASSED" in response_lines(output)

    def test_remote_log_is_saved(self, make_orchestrator, output, tmp_path):
        log_file = tmp_path / "logs/deploy.log"
        outcome = DeployOutcome(success=True, log="29.0 APEX_CODE,DEBUG\n")
        orchestrator, _ = make_orchestrator(FakeClient(outcome=outcome), logFile=str(log_file))

        result = orchestrator.deploy_modified()

        assert result.log_file == log_file
        assert log_file.read_text() == "29.0 APEX_CODE,DEBUG\n"
        assert response_lines(output)[-1] == f"LOG_FILE={log_file.resolve()}"

    def test_coverage_side_file(self, make_orchestrator, output, tmp_path):
        outcome = DeployOutcome(success=True, test_result=TestRunOutcome.from_dict({
            "coverage": [{"name": "Foo", "num_locations": 4, "num_locations_not_covered": 0}],
        }))
        orchestrator, _ = make_orchestrator(FakeClient(outcome=outcome), testsToRun="FooTest",
                                            reportCoverage="true", tempFolderPath=str(tmp_path))

        result = orchestrator.deploy_modified()

        assert result.coverage_file.parent == tmp_path
        assert f"COVERAGE_FILE={result.coverage_file.resolve()}" in response_lines(output)

    def test_remote_error_is_reported(self, make_orchestrator, output):
        class BrokenClient(FakeClient):
            def deploy(self, archive, options):
                raise RuntimeError("connection reset")

        orchestrator, _ = make_orchestrator(BrokenClient())

        result = orchestrator.run("deployModified")

        assert not result.success and result.deploy_attempted
        assert response_lines(output) == [
            "RESULT=FAILURE",
            "MESSAGE,id=1,type=ERROR,text=Deploy call failed: connection reset,code=FD006",
        ]

    def test_remote_state_error_is_reported(self, make_orchestrator, track_all, project, output):
        class ExpiredSessionClient(FakeClient):
            def remote_state(self, keys):
                raise ConnectionError("session expired")

        track_all({"classes/Foo.cls": 1000})
        modify(project / "src/classes/Foo.cls")
        orchestrator, client = make_orchestrator(ExpiredSessionClient())

        result = orchestrator.run("deployModified")

        assert not result.success and not result.deploy_attempted
        assert client.deploy_calls == []
        assert response_lines(output) == [
            "RESULT=FAILURE",
            "MESSAGE,id=1,type=ERROR,text=Remote state lookup failed: session expired,code=FD006",
        ]

    def test_unreadable_session_file_is_reported(self, make_orchestrator, session_dir, output):
        session_dir.mkdir()
        (session_dir / "session.properties").write_text("classes/Foo.cls={not json\n")
        orchestrator, client = make_orchestrator()

        result = orchestrator.run("deployModified")

        assert not result.success
        assert client.deploy_calls == []
        lines = response_lines(output)
        assert lines[0] == "RESULT=FAILURE"
        assert lines[1].startswith("MESSAGE,id=1,type=ERROR,text=")
        assert lines[1].endswith(",code=FD007")


class TestDeployAllAndSpecificFiles:

    def test_deploy_all_includes_unchanged_files(self, make_orchestrator, track_all):
        track_all()
        orchestrator, client = make_orchestrator()

        result = orchestrator.deploy_all()

        assert result.file_count == 6
        assert "src/classes/FooTest.cls" in archive_names(client)

    def test_deploy_all_does_not_check_conflicts(self, make_orchestrator, track_all):
        track_all({"classes/Foo.cls": 1000})
        orchestrator, client = make_orchestrator(FakeClient(remote={"classes/Foo.cls": 2000}))

        result = orchestrator.deploy_all()

        assert result.success
        assert client.state_calls == []
        assert len(client.deploy_calls) == 1

    def test_specific_files(self, make_orchestrator, tmp_path, output, foo_success, session_dir):
        list_file = tmp_path / "files.txt"
        list_file.write_text("src/classes/Foo.cls\n")
        orchestrator, client = make_orchestrator(FakeClient(outcome=foo_success),
                                                 specificFiles=str(list_file))

        result = orchestrator.deploy_specific_files()

        assert result.success
        names = [n for n in archive_names(client) if not n.endswith('/')]
        assert sorted(names) == ["src/classes/Foo.cls", "src/classes/Foo.cls-meta.xml", "src/package.xml"]
        assert section(response_lines(output), "DEPLOYED FILES") == ["Foo.cls"]
        assert SessionStore(session_dir).keys() == ["classes/Foo.cls"]

    def test_another_org_skips_conflicts_and_session(self, make_orchestrator, track_all, tmp_path, session_dir,
                                                     foo_success):
        track_all({"classes/Foo.cls": 1000})
        before = (session_dir / "session.properties").read_text()
        list_file = tmp_path / "files.txt"
        list_file.write_text("src/classes/Foo.cls\n")
        orchestrator, client = make_orchestrator(
            FakeClient(outcome=foo_success, remote={"classes/Foo.cls": 2000}),
            specificFiles=str(list_file), callingAnotherOrg="true",
        )

        assert orchestrator.deploy_specific_files().success
        assert client.state_calls == []
        assert (session_dir / "session.properties").read_text() == before

    def test_another_org_can_update_session(self, make_orchestrator, tmp_path, session_dir, foo_success):
        list_file = tmp_path / "files.txt"
        list_file.write_text("src/classes/Foo.cls\n")
        orchestrator, _ = make_orchestrator(
            FakeClient(outcome=foo_success), specificFiles=str(list_file),
            callingAnotherOrg="true", updateSessionDataOnSuccess="true",
        )

        assert orchestrator.deploy_specific_files().success
        assert SessionStore(session_dir).keys() == ["classes/Foo.cls"]

    def test_no_valid_files(self, make_orchestrator, tmp_path, output):
        list_file = tmp_path / "files.txt"
        list_file.write_text("src/package.xml\n")
        orchestrator, client = make_orchestrator(specificFiles=str(list_file))

        result = orchestrator.deploy_specific_files()

        assert not result.success
        assert response_lines(output) == [
            "RESULT=FAILURE",
            f"MESSAGE,id=1,type=ERROR,text=no valid files in {list_file}",
        ]
        assert client.deploy_calls == []

    def test_unreadable_listed_file(self, make_orchestrator, tmp_path, output):
        list_file = tmp_path / "files.txt"
        list_file.write_text("src/classes/Missing.cls\n")
        orchestrator, client = make_orchestrator(specificFiles=str(list_file))

        result = orchestrator.run("deploySpecificFiles")

        assert not result.success
        assert response_lines(output)[0] == "RESULT=FAILURE"
        assert "Can not read file" in response_lines(output)[1]
        assert client.deploy_calls == []


class TestDeleteMetadata:

    def test_delete_removes_session_entry(self, make_orchestrator, track_all, tmp_path, output, session_dir):
        track_all()
        list_file = tmp_path / "components.txt"
        list_file.write_text("classes/Foo.cls\n")
        orchestrator, client = make_orchestrator(specificComponents=str(list_file))

        result = orchestrator.delete_metadata()

        assert result.success
        assert archive_names(client) == [
            "unpackaged/",
            "unpackaged/destructiveChanges.xml",
            "unpackaged/package.xml",
        ]
        _, options = client.deploy_calls[0]
        assert options.allow_missing_files is False

        lines = response_lines(output)
        assert lines[0] == "RESULT=SUCCESS"
        assert "MESSAGE,id=2,type=DEBUG,text=Removed session data for key: classes/Foo.cls" in lines
        keys = SessionStore(session_dir).keys()
        assert "classes/Foo.cls" not in keys
        assert "classes/FooTest.cls" in keys

    def test_unknown_directory(self, make_orchestrator, tmp_path, output):
        list_file = tmp_path / "components.txt"
        list_file.write_text("mystery/Foo.x\n")
        orchestrator, client = make_orchestrator(specificComponents=str(list_file))

        result = orchestrator.run("deleteMetadata")

        assert not result.success
        assert response_lines(output) == [
            "RESULT=FAILURE",
            "MESSAGE,id=1,type=ERROR,text=Did not recognise directory: mystery,code=FD003",
        ]
        assert client.deploy_calls == []

    def test_empty_component_list(self, make_orchestrator, tmp_path, output):
        list_file = tmp_path / "components.txt"
        list_file.write_text("\n")
        orchestrator, _ = make_orchestrator(specificComponents=str(list_file))

        assert not orchestrator.delete_metadata().success
        assert response_lines(output)[1] == f"MESSAGE,id=1,type=ERROR,text=no valid components in {list_file}"

    def test_failed_deletion(self, make_orchestrator, track_all, tmp_path, output, session_dir):
        track_all()
        list_file = tmp_path / "components.txt"
        list_file.write_text("classes/Foo.cls\n")
        outcome = DeployOutcome(success=False, component_failures=(
            ComponentFailure(ProblemSeverity.ERROR, "unpackaged/classes/Foo.cls", "Cannot delete"),
        ))
        orchestrator, _ = make_orchestrator(FakeClient(outcome=outcome), specificComponents=str(list_file))

        assert not orchestrator.delete_metadata().success
        lines = response_lines(output)
        assert lines[0] == "RESULT=FAILURE"
        assert "filePath=src/classes/Foo.cls" in section(lines, "ERROR LIST")[1]
        assert "classes/Foo.cls" in SessionStore(session_dir).keys()


class TestListModified:

    def test_reports_changed_files(self, make_orchestrator, track_all, project, output):
        track_all()
        modify(project / "src/classes/Foo.cls")
        orchestrator, client = make_orchestrator()

        result = orchestrator.list_modified()

        assert result.deployed_files == ["src/classes/Foo.cls"]
        assert response_lines(output) == [
            "RESULT=SUCCESS",
            "FILE_COUNT=1",
            "MESSAGE,id=1,type=INFO,text=Modified file(s) detected.,code=HAS_MODIFIED_FILES",
            f"MESSAGE DETAIL,messageId=1,filePath={project.resolve() / 'src/classes/Foo.cls'},"
            "text=src/classes/Foo.cls",
            "HAS_MODIFIED_FILES=true",
            "#SECTION START: MODIFIED FILE LIST",
            "MODIFIED_FILE=src/classes/Foo.cls",
            "#SECTION END: MODIFIED FILE LIST",
        ]
        assert client.deploy_calls == [] and client.state_calls == []

    def test_nothing_changed(self, make_orchestrator, track_all, output):
        track_all()
        orchestrator, _ = make_orchestrator()

        orchestrator.list_modified()

        assert response_lines(output) == [
            "RESULT=SUCCESS",
            "FILE_COUNT=0",
            "MESSAGE,id=1,type=INFO,text=No Modified file(s) detected.",
        ]
