"""Decoded parameter section: groups, their parameters, and passthrough."""
from __future__ import annotations

from typing import Iterator
from warnings import warn

import pandas as pd

from c3d_core.codec import NumericCodec
from c3d_core.protocol import MAX_GROUP_ID

from .errors import MalformedRecord
from .parameter import Parameter
from .records import decode_description, encode_description, encode_record, iter_records


class Group:
    """A named, numbered collection of parameters.

    Parameter names are matched case-insensitively but written back with
    the case they were stored under.
    """

    def __init__(self, id: int, name: str, description: str = "", locked: bool = False):
        self.id = id
        self.name = name
        self.description = description
        self.locked = locked
        self._parameters: dict[str, tuple[str, Parameter]] = {}

    def __repr__(self) -> str:
        return f"Group({self.id}, {self.name!r}, parameters={len(self._parameters)})"

    def __len__(self) -> int:
        return len(self._parameters)

    def __contains__(self, name: str) -> bool:
        return name.upper() in self._parameters

    def write(self, codec: NumericCodec) -> bytes:
        try:
            body = encode_description(self.description)
        except ValueError as e:
            raise ValueError(f"{self.name}: {e}") from None
        return encode_record(codec, self.name, -self.id, self.locked, body)


class ParameterStore:
    """Owned collection of groups, addressable by (group, parameter) name.

    Built once per decode. Typed views claim their fields with `remove`;
    whatever is left is re-emitted verbatim by `write_remaining`. Views
    must be built one after another against a given store.
    """

    def __init__(self):
        self._groups: dict[str, Group] = {}
        self._ids: dict[int, Group] = {}

    @classmethod
    def from_bytes(cls, payload: bytes, codec: NumericCodec) -> "ParameterStore":
        """Decode a record payload (the section minus its 4-byte header).

        Group records may follow the parameters that reference them, so
        all records are sliced before any parameter is attached.
        """
        store = cls()
        pending = []
        for record in iter_records(payload, codec):
            if record.is_group:
                try:
                    description = decode_description(record.body, 0)
                except MalformedRecord as e:
                    raise e.located(record.name) from None
                store.add_group(-record.group_id, record.name, description, record.locked)
            else:
                pending.append(record)

        for record in pending:
            group = store._ids.get(record.group_id)
            if group is None:
                raise MalformedRecord(
                    f"parameter refers to undefined group id {record.group_id}",
                    parameter=record.name,
                )
            try:
                parameter = Parameter.from_record(record, codec)
            except MalformedRecord as e:
                raise e.located(group.name, record.name) from None
            store.add_parameter(group.name, record.name, parameter)
        return store

    def add_group(self, id: int, name: str, description: str = "", locked: bool = False) -> Group:
        if not 1 <= id <= MAX_GROUP_ID:
            raise MalformedRecord(f"group id {id} outside 1..{MAX_GROUP_ID}", group=name)
        if id in self._ids:
            raise MalformedRecord(f"group id {id} already used by {self._ids[id].name}", group=name)
        if name.upper() in self._groups:
            raise MalformedRecord("duplicate group name", group=name)
        group = Group(id, name, description, locked)
        self._groups[name.upper()] = group
        self._ids[id] = group
        return group

    def add_parameter(self, group_name: str, name: str, parameter: Parameter) -> None:
        group = self._groups.get(group_name.upper())
        if group is None:
            raise MalformedRecord("parameter added to a group that does not exist", group_name, name)
        key = name.upper()
        if key in group._parameters:
            warn(f"Duplicate parameter {group.name}:{name}; keeping the later record")
        group._parameters[key] = (name, parameter)

    def remove(self, group_name: str, parameter_name: str) -> Parameter | None:
        """Detach and return a parameter; None if the group or name is absent."""
        group = self._groups.get(group_name.upper())
        if group is None:
            return None
        entry = group._parameters.pop(parameter_name.upper(), None)
        return None if entry is None else entry[1]

    def get(self, group_name: str, parameter_name: str) -> Parameter | None:
        group = self._groups.get(group_name.upper())
        if group is None:
            return None
        entry = group._parameters.get(parameter_name.upper())
        return None if entry is None else entry[1]

    def group(self, name: str) -> Group | None:
        return self._groups.get(name.upper())

    def groups(self) -> list[Group]:
        return list(self._groups.values())

    def group_id_of(self, name: str) -> int | None:
        group = self._groups.get(name.upper())
        return None if group is None else group.id

    def remaining(self) -> Iterator[tuple[Group, str, Parameter]]:
        for group in list(self._groups.values()):
            for name, parameter in list(group._parameters.values()):
                yield group, name, parameter

    def __contains__(self, group_name: str) -> bool:
        return group_name.upper() in self._groups

    def __len__(self) -> int:
        return sum(len(g) for g in self._groups.values())

    def write_groups(self, codec: NumericCodec) -> bytes:
        return b"".join(group.write(codec) for group in self._groups.values())

    def write_remaining(self, codec: NumericCodec) -> bytes:
        return b"".join(
            parameter.write(codec, name, group.id, parameter.locked)
            for group, name, parameter in self.remaining()
        )

    def to_frame(self) -> pd.DataFrame:
        """Inventory of the parameters still held by the store."""
        rows = [
            {
                "group": group.name,
                "group_id": group.id,
                "name": name,
                "type": parameter.ptype.name,
                "dimensions": list(parameter.dimensions),
                "locked": parameter.locked,
                "description": parameter.description,
            }
            for group, name, parameter in self.remaining()
        ]
        columns = ["group", "group_id", "name", "type", "dimensions", "locked", "description"]
        return pd.DataFrame(rows, columns=columns)
