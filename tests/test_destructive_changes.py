"""Tests for deletion manifests"""

import xml.etree.ElementTree as ET

import pytest

from force_deploy.api.exceptions import InputError
from force_deploy.core.destructive_changes import DestructiveChangeBuilder, group_by_directory
from force_deploy.models import PackageManifest

NS = {"md": "http://soap.sforce.com/2006/04/metadata"}


def test_group_by_directory_keeps_first_seen_order():
    groups = group_by_directory(["triggers/A.trigger", "classes/Foo.cls", "triggers/B.trigger"])

    assert list(groups.items()) == [
        ("triggers", ["A.trigger", "B.trigger"]),
        ("classes", ["Foo.cls"]),
    ]


def test_add_member_ignores_duplicates():
    manifest = PackageManifest()
    manifest.add_member("ApexClass", "Foo")
    manifest.add_member("ApexPage", "Home")
    manifest.add_member("ApexClass", "Foo")
    manifest.add_member("ApexClass", "Bar")

    assert manifest.types == {"ApexClass": ["Foo", "Bar"], "ApexPage": ["Home"]}


def test_manifest_strips_suffix(registry):
    manifest = DestructiveChangeBuilder(registry, "30.0").build_manifest(
        ["classes/Foo.cls", "classes/Bar.cls", "pages/Home.page", "classes/Foo.cls"]
    )

    assert manifest.types == {"ApexClass": ["Foo", "Bar"], "ApexPage": ["Home"]}

    root = ET.fromstring(manifest.to_xml().encode("utf-8"))
    types = root.findall("md:types", NS)
    assert [t.find("md:name", NS).text for t in types] == ["ApexClass", "ApexPage"]
    assert [m.text for m in types[0].findall("md:members", NS)] == ["Foo", "Bar"]
    assert root.find("md:version", NS).text == "30.0"


@pytest.mark.parametrize("component_paths", [["mystery/Foo.x"], ["classes/*"], ["classes"]])
def test_unusable_directory_rejected(registry, component_paths):
    with pytest.raises(InputError, match="Did not recognise directory"):
        DestructiveChangeBuilder(registry).build_manifest(component_paths)


def test_deployment_dir(registry, tmp_path):
    target = DestructiveChangeBuilder(registry).write_deployment_dir(["classes/Foo.cls"], tmp_path / "unpackaged")

    assert sorted(p.name for p in target.iterdir()) == ["destructiveChanges.xml", "package.xml"]
    package = ET.fromstring((target / "package.xml").read_bytes())
    assert package.findall("md:types", NS) == []
    assert package.find("md:version", NS).text == "29.0"
