"""Tests for the line oriented response protocol"""

from force_deploy.core.response_writer import format_value

from conftest import response_lines


def test_format_value():
    assert format_value(True) == "true"
    assert format_value(False) == "false"
    assert format_value(12) == "12"
    assert format_value(None) == ""
    assert format_value("plain text") == "plain text"
    assert format_value("a,b") == '"a,b"'
    assert format_value('say "hi"') == '"say \\"hi\\""'
    assert format_value("one\ntwo") == '"one\\ntwo"'


def test_messages_and_details(writer, output):
    first = writer.info("Modified file(s) detected.", {"code": "HAS_MODIFIED_FILES"})
    writer.detail(first, {"filePath": "/tmp/p/src/classes/Foo.cls", "text": "src/classes/Foo.cls"})
    second = writer.warn("key=value")

    assert (first.id, second.id) == (1, 2)
    assert response_lines(output) == [
        "MESSAGE,id=1,type=INFO,text=Modified file(s) detected.,code=HAS_MODIFIED_FILES",
        "MESSAGE DETAIL,messageId=1,filePath=/tmp/p/src/classes/Foo.cls,text=src/classes/Foo.cls",
        'MESSAGE,id=2,type=WARN,text="key=value"',
    ]


def test_result_and_sections(writer, output):
    writer.write_result(False)
    with writer.section("DEPLOYED FILES"):
        writer.println("Foo.cls")
    writer.write_value("HAS_MODIFIED_FILES", True)

    assert writer.result == "FAILURE"
    assert response_lines(output) == [
        "RESULT=FAILURE",
        "#SECTION START: DEPLOYED FILES",
        "Foo.cls",
        "#SECTION END: DEPLOYED FILES",
        "HAS_MODIFIED_FILES=true",
    ]
