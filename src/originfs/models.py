"""
Record and mutation models.

The remote store speaks in fixed-width positional arrays. Inside the client a
record is a named-field model; translation happens only at the wire boundary
(`Record.from_wire` / `Record.to_wire`).
"""
import copy
from enum import IntEnum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

RECORD_WIDTH = 14
FOLDER_TYPE = ".folder"


class FieldIndex(IntEnum):
    """Positions of the slots this client understands."""
    TYPE = 0
    NAME = 1
    LOCATION = 2
    DATA = 3
    CREATED = 8
    EDITED = 9
    SIZE = 11
    UUID = 13


_NAMED_SLOTS = {
    FieldIndex.TYPE: "type",
    FieldIndex.NAME: "name",
    FieldIndex.LOCATION: "location",
    FieldIndex.DATA: "data",
    FieldIndex.CREATED: "created",
    FieldIndex.EDITED: "edited",
    FieldIndex.SIZE: "size",
    FieldIndex.UUID: "uuid",
}


class Record(BaseModel):
    """One file or folder as stored remotely."""
    model_config = ConfigDict(extra='forbid')

    type: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None
    data: Any = None
    # Epoch millis and byte length; kept loose so remote values round-trip as sent.
    created: Any = None
    edited: Any = None
    size: Any = None
    uuid: Optional[str] = None
    # Every slot not listed above, keyed by position; passed through untouched.
    opaque: Dict[int, Any] = Field(default_factory=dict)

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER_TYPE

    @classmethod
    def from_wire(cls, raw: List[Any]) -> "Record":
        values: Dict[str, Any] = {}
        opaque: Dict[int, Any] = {}
        for position, value in enumerate(raw):
            field = _NAMED_SLOTS.get(position)
            if field is None:
                opaque[position] = value
            else:
                values[field] = value
        # Pad short records so that to_wire always yields the full width.
        for position in range(len(raw), RECORD_WIDTH):
            if position not in _NAMED_SLOTS:
                opaque[position] = None
        for field in ("type", "name", "location", "uuid"):
            if values.get(field) is not None and not isinstance(values[field], str):
                values[field] = str(values[field])
        return cls(opaque=opaque, **values)

    def to_wire(self) -> List[Any]:
        width = max(RECORD_WIDTH, max(self.opaque, default=-1) + 1)
        raw: List[Any] = [None] * width
        for position, value in self.opaque.items():
            raw[position] = copy.deepcopy(value)
        for position, field in _NAMED_SLOTS.items():
            raw[position] = copy.deepcopy(getattr(self, field))
        return raw

    def get_field(self, index: FieldIndex) -> Any:
        return getattr(self, _NAMED_SLOTS[index])

    def set_field(self, index: FieldIndex, value: Any) -> None:
        setattr(self, _NAMED_SLOTS[index], value)


class AddMutation(BaseModel):
    command: Literal["add"] = "add"
    uuid: str
    record: List[Any]

    def to_wire(self) -> Dict[str, Any]:
        return {"command": "UUIDa", "uuid": self.uuid, "dta": self.record}


class UpdateMutation(BaseModel):
    command: Literal["update"] = "update"
    uuid: str
    field: FieldIndex
    value: Any = None

    def to_wire(self) -> Dict[str, Any]:
        # The remote numbers record slots from 1.
        return {"command": "UUIDr", "uuid": self.uuid, "dta": self.value, "idx": int(self.field) + 1}


class DeleteMutation(BaseModel):
    command: Literal["delete"] = "delete"
    uuid: str

    def to_wire(self) -> Dict[str, Any]:
        return {"command": "UUIDd", "uuid": self.uuid}


Mutation = Union[AddMutation, UpdateMutation, DeleteMutation]


class Snapshot(BaseModel):
    """Result of the path-index fetch, before path normalization."""
    owner: str = ""
    index: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Snapshot":
        owner = payload.get("owner") or payload.get("username") or ""
        raw_index = payload.get("index") or {}
        if not isinstance(raw_index, dict):
            raw_index = {}
        # Non-string values are reserved for future non-scalar entries.
        index = {key: value for key, value in raw_index.items() if isinstance(value, str)}
        return cls(owner=str(owner), index=index)
