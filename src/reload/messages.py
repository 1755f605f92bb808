"""Messages pushed to browser clients.

Every message is a JSON object tagged by ``msg-name``. Clients are expected
to ignore fields they do not know and messages whose name they do not know.
"""
import json
import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

class FileRef(BaseModel):
    """A file the client should (re)load"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    file: str
    namespace: Optional[str] = None
    dependency_file: bool = Field(False, alias="dependency-file")
    type: Optional[str] = None

class ChangeEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    msg_name: str = Field(alias="msg-name")

    def to_wire(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

class FilesChanged(ChangeEvent):
    msg_name: Literal["files-changed"] = Field("files-changed", alias="msg-name")
    files: List[FileRef] = Field(default_factory=list)

class CssFilesChanged(ChangeEvent):
    msg_name: Literal["css-files-changed"] = Field("css-files-changed", alias="msg-name")
    files: List[FileRef] = Field(default_factory=list)

class CompileFailed(ChangeEvent):
    msg_name: Literal["compile-failed"] = Field("compile-failed", alias="msg-name")
    exception_data: Dict[str, Any] = Field(default_factory=dict, alias="exception-data")
    formatted_exception: str = Field("", alias="formatted-exception")

class CompileWarning(ChangeEvent):
    msg_name: Literal["compile-warning"] = Field("compile-warning", alias="msg-name")
    message: str

class Ping(ChangeEvent):
    msg_name: Literal["ping"] = Field("ping", alias="msg-name")

MESSAGE_TYPES = {
    "files-changed": FilesChanged,
    "css-files-changed": CssFilesChanged,
    "compile-failed": CompileFailed,
    "compile-warning": CompileWarning,
    "ping": Ping,
}

def encode_message(event: ChangeEvent) -> str:
    return event.to_wire()

def decode_message(text: str) -> Optional[ChangeEvent]:
    """Parse a wire message.

    Unknown fields are dropped; an unknown ``msg-name`` gives None.
    Malformed messages raise ValueError.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid message: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Message must be a JSON object")

    message_type = MESSAGE_TYPES.get(data.get("msg-name"))
    if message_type is None:
        logger.debug(f"Ignoring unknown message {data.get('msg-name')!r}")
        return None
    try:
        return message_type.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid {data['msg-name']} message: {e}") from e
