from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional


class Mode(enum.Enum):
    WRITER = "writer"
    READER = "reader"


@dataclass
class DataObject:
    """One logical file stored in the container."""

    class Type(enum.Enum):
        DATA = "data"
        MANIFEST = "manifest"
        SIGNATURE = "signature"
        METADATA = "metadata"

    type: "DataObject.Type"
    path: str
    mime_type: str
    digests: Dict[str, bytes] = field(default_factory=dict)
    size: int = 0

    @property
    def complete(self) -> bool:
        return bool(self.digests)


class Container:
    """In-memory view of the archive under construction.

    Entries keep insertion order. ``root_file`` is recorded as given; whether
    it names a registered DATA entry is for the signature strategy to decide.
    """

    def __init__(self, mode: Mode = Mode.WRITER):
        self.mode = mode
        self._objects: List[DataObject] = []
        self.root_file: Optional[str] = None

    def add(self, obj: DataObject) -> DataObject:
        self._objects.append(obj)
        return obj

    def set_root_file(self, path: Optional[str]) -> None:
        self.root_file = path

    @property
    def data_objects(self) -> List[DataObject]:
        return list(self._objects)

    def of_type(self, t: DataObject.Type) -> List[DataObject]:
        return [o for o in self._objects if o.type == t]

    def find(self, path: str) -> Optional[DataObject]:
        for o in self._objects:
            if o.path == path:
                return o
        return None

    def paths(self) -> List[str]:
        return [o.path for o in self._objects]

    def __iter__(self) -> Iterator[DataObject]:
        return iter(list(self._objects))

    def __len__(self) -> int:
        return len(self._objects)
