"""Line oriented response protocol consumed by the calling tool"""

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, TextIO

from ..constants import MessageType, RESULT_FAILURE, RESULT_SUCCESS

logger = logging.getLogger(__name__)

_QUOTE_TRIGGERS = (',', '=', '"', '\n', '\r')


def format_value(value: Any) -> str:
    """Format a row value; strings with protocol delimiters are JSON quoted"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    text = str(value)
    if isinstance(value, str) and any(c in text for c in _QUOTE_TRIGGERS):
        return json.dumps(text)
    return text


@dataclass
class Message:
    """Message with a sequence id that details can refer to"""
    id: int
    type: str
    text: str
    data: Dict[str, Any] = field(default_factory=dict)


class ResponseWriter:
    """Writes KEY=VALUE lines, sections, rows and messages to a text stream"""

    def __init__(self, stream: TextIO):
        """Initialize response writer

        Args:
            stream: Destination text stream
        """
        self.stream = stream
        self._next_message_id = 1
        self.result: Optional[str] = None

    def println(self, line: str) -> None:
        """Write a raw line"""
        self.stream.write(line + "\n")
        self.stream.flush()

    def write_value(self, key: str, value: Any) -> None:
        """Write a top level KEY=VALUE line"""
        self.println(f"{key}={value if isinstance(value, str) else format_value(value)}")

    def write_result(self, success: bool) -> None:
        """Write the RESULT line"""
        self.result = RESULT_SUCCESS if success else RESULT_FAILURE
        self.write_value("RESULT", self.result)

    def start_section(self, name: str) -> None:
        self.println(f"#SECTION START: {name}")

    def end_section(self, name: str) -> None:
        self.println(f"#SECTION END: {name}")

    @contextmanager
    def section(self, name: str) -> Iterator['ResponseWriter']:
        """Wrap written lines in a named section"""
        self.start_section(name)
        try:
            yield self
        finally:
            self.end_section(name)

    def row(self, tag: str, data: Dict[str, Any]) -> None:
        """Write a structured row: TAG,key1=val1,key2=val2"""
        fields = ",".join(f"{key}={format_value(value)}" for key, value in data.items())
        self.println(f"{tag},{fields}" if fields else tag)

    def message(self, msg_type: str, text: str, data: Optional[Dict[str, Any]] = None) -> Message:
        """Write a message and return it so details can reference it

        Args:
            msg_type: One of MessageType values
            text: Message text
            data: Extra fields appended after the text, e.g. code

        Returns:
            Written message
        """
        message = Message(id=self._next_message_id, type=msg_type, text=text, data=dict(data or {}))
        self._next_message_id += 1

        self.row("MESSAGE", {"id": message.id, "type": message.type, "text": message.text, **message.data})
        return message

    def detail(self, message: Message, data: Dict[str, Any]) -> None:
        """Write a detail line belonging to a message"""
        self.row("MESSAGE DETAIL", {"messageId": message.id, **data})

    def info(self, text: str, data: Optional[Dict[str, Any]] = None) -> Message:
        return self.message(MessageType.INFO, text, data)

    def warn(self, text: str, data: Optional[Dict[str, Any]] = None) -> Message:
        return self.message(MessageType.WARN, text, data)

    def error(self, text: str, data: Optional[Dict[str, Any]] = None) -> Message:
        return self.message(MessageType.ERROR, text, data)

    def debug(self, text: str) -> Message:
        logger.debug(text)
        return self.message(MessageType.DEBUG, text)
