"""
Mutation log: pending remote changes, in the order they were made.

Entries are only appended by the client and only dropped after the remote
store acknowledged them, so a failed commit leaves the log untouched.
"""
from typing import Any, Dict, Iterator, List

from .models import AddMutation, DeleteMutation, FieldIndex, Mutation, Record, UpdateMutation


class MutationLog:

    def __init__(self):
        self._entries: List[Mutation] = []

    def add(self, record: Record) -> None:
        self._entries.append(AddMutation(uuid=record.uuid, record=record.to_wire()))

    def update(self, uuid: str, field: FieldIndex, value: Any) -> None:
        self._entries.append(UpdateMutation(uuid=uuid, field=field, value=value))

    def delete(self, uuid: str) -> None:
        self._entries.append(DeleteMutation(uuid=uuid))

    def snapshot(self) -> List[Mutation]:
        return list(self._entries)

    def acknowledge(self, count: int) -> None:
        """Drop the first `count` entries once the remote store accepted them."""
        if count > len(self._entries):
            raise ValueError(f"Cannot acknowledge {count} mutations, only {len(self._entries)} pending")
        del self._entries[:count]

    @staticmethod
    def encode(entries: List[Mutation]) -> List[Dict[str, Any]]:
        return [entry.to_wire() for entry in entries]

    def __iter__(self) -> Iterator[Mutation]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
