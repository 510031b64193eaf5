"""Tests for remote conflict detection"""

import pytest

from force_deploy.core.conflict_detector import ConflictDetector
from force_deploy.core.file_set_resolver import FileSetResolver

from conftest import FakeClient, response_lines


@pytest.fixture
def candidates(paths, registry, store):
    resolver = FileSetResolver(paths, registry, store)
    return {c.relative_path: c for c in resolver.all_files()}


def detector_for(track_all, paths, writer, remote_dates, live_dates):
    client = FakeClient(remote=live_dates)
    return ConflictDetector(track_all(remote_dates), client, paths, writer), client


def test_empty_input_does_no_lookup(track_all, paths, writer):
    detector, client = detector_for(track_all, paths, writer, {"classes/Foo.cls": 1000}, {})

    assert detector.has_conflicts([]) is False
    assert client.state_calls == []


def test_untracked_files_are_not_compared(store, paths, writer, candidates):
    client = FakeClient(remote={"classes/Foo.cls": 5000})
    detector = ConflictDetector(store, client, paths, writer)

    assert detector.find_conflicts(candidates.values()) == []
    assert client.state_calls == []


def test_strictly_newer_remote_is_a_conflict(track_all, paths, writer, output, candidates):
    detector, client = detector_for(
        track_all, paths, writer,
        remote_dates={"classes/Foo.cls": 1000, "classes/FooTest.cls": 1000},
        live_dates={"classes/Foo.cls": 2000, "classes/FooTest.cls": 1000},
    )
    files = [candidates["classes/Foo.cls"], candidates["classes/Foo.cls-meta.xml"],
             candidates["classes/FooTest.cls"]]

    assert detector.has_conflicts(files) is True
    assert client.state_calls == [["classes/Foo.cls", "classes/FooTest.cls"]]

    lines = response_lines(output)
    assert lines[0] == "MESSAGE,id=1,type=WARN,text=Outdated file(s) detected."
    assert lines[1].startswith("MESSAGE DETAIL,messageId=1,filePath=src/classes/Foo.cls,")
    assert "Modified By: Jane Doe" in lines[1]
    assert lines[2] == "MESSAGE,id=2,type=WARN,text=Use 'refresh' before 'deploy'."
    assert len(lines) == 3


def test_equal_marker_is_not_a_conflict(track_all, paths, writer, output, candidates):
    detector, _ = detector_for(track_all, paths, writer,
                               {"classes/Foo.cls": 1000}, {"classes/Foo.cls": 1000})

    assert detector.has_conflicts([candidates["classes/Foo.cls"]]) is False
    assert output.getvalue() == ""
