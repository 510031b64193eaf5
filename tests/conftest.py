"""Shared fixtures: a small project tree and an in-memory remote client"""

import io
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from force_deploy.core.metadata_types import MetadataTypeRegistry
from force_deploy.core.path_resolver import PathResolver
from force_deploy.core.response_writer import ResponseWriter
from force_deploy.core.session_store import SessionStore
from force_deploy.models import DeployOptions, DeployOutcome, RemoteFileState
from force_deploy.remote.base import MetadataClient
from force_deploy.services.config_service import DeployConfig
from force_deploy.services.deploy_service import DeployOrchestrator

FOO_TEST_SOURCE = """@isTest
private class FooTest {
    static testMethod void testA() {
        System.assert(true);
    }

    @isTest static void testB() {
        System.assert(true);
    }
}
"""

META_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ApexClass xmlns="http://soap.sforce.com/2006/04/metadata">
    <apiVersion>29.0</apiVersion>
</ApexClass>
"""

PROJECT_FILES = {
    "src/package.xml": "<Package/>\n",
    "src/classes/Foo.cls": "public class Foo {\n}\n",
    "src/classes/Foo.cls-meta.xml": META_XML,
    "src/classes/FooTest.cls": FOO_TEST_SOURCE,
    "src/classes/FooTest.cls-meta.xml": META_XML,
    "src/triggers/AccountTrigger.trigger": "trigger AccountTrigger on Account (before insert) {\n}\n",
    "src/triggers/AccountTrigger.trigger-meta.xml": META_XML,
}


class FakeClient(MetadataClient):
    """Remote client answering from memory and recording every call"""

    name = "fake"

    def __init__(self,
                 config=None,
                 outcome: Optional[DeployOutcome] = None,
                 remote: Optional[Dict[str, int]] = None):
        super().__init__(config)
        self.outcome = outcome or DeployOutcome(success=True)
        self.remote = dict(remote or {})
        self.deploy_calls: List[Tuple[bytes, DeployOptions]] = []
        self.state_calls: List[List[str]] = []

    def deploy(self, archive: bytes, options: DeployOptions) -> DeployOutcome:
        self.deploy_calls.append((archive, options))
        return self.outcome

    def remote_state(self, keys: List[str]) -> Dict[str, RemoteFileState]:
        self.state_calls.append(list(keys))
        return {
            key: RemoteFileState(key=key, last_modified_date=self.remote[key], last_modified_by="Jane Doe")
            for key in keys if key in self.remote
        }


def touch_later(path: Path, seconds: int = 10) -> None:
    """Move the modification time of a file forward"""
    stat = path.stat()
    os.utime(path, (stat.st_atime + seconds, stat.st_mtime + seconds))


@pytest.fixture
def project(tmp_path) -> Path:
    """Project folder with classes, a trigger and package.xml"""
    root = tmp_path / "project"
    for relative, content in PROJECT_FILES.items():
        file_path = root / relative
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def registry() -> MetadataTypeRegistry:
    return MetadataTypeRegistry()


@pytest.fixture
def paths(project, registry) -> PathResolver:
    return PathResolver(project, registry)


@pytest.fixture
def session_dir(project) -> Path:
    return project / ".vim-force.com"


@pytest.fixture
def store(session_dir) -> SessionStore:
    return SessionStore(session_dir)


@pytest.fixture
def track_all(project, paths, session_dir):
    """Record the current state of every source file, optionally with remote markers"""
    def track(remote_dates: Optional[Dict[str, int]] = None) -> SessionStore:
        store = SessionStore(session_dir)
        for file_path in sorted((project / "src").rglob("*")):
            if not file_path.is_file() or file_path.name.endswith("-meta.xml"):
                continue
            key = paths.key_for(file_path)
            remote = {}
            if remote_dates and key in remote_dates:
                remote = {"lastModifiedDateMills": remote_dates[key]}
            store.record(key, file_path, prefer_md5=False, remote=remote)
        store.save()
        return SessionStore(session_dir)

    return track


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def writer(output) -> ResponseWriter:
    return ResponseWriter(output)


@pytest.fixture
def make_orchestrator(project, output, writer):
    """Build an orchestrator over the project with a fake client"""
    def make(client: Optional[FakeClient] = None, **values) -> Tuple[DeployOrchestrator, FakeClient]:
        client = client or FakeClient()
        config = DeployConfig({"projectPath": str(project), "client": "fake", **values})
        return DeployOrchestrator(config, client, writer), client

    return make


def response_lines(output: io.StringIO) -> List[str]:
    return output.getvalue().splitlines()
