from dataclasses import dataclass, field
from typing import Any

__all__ = ["Entry", "Namespace", "NameIndex"]


@dataclass(frozen=True)
class Entry:
    """A committed name

    Attributes:
        handle: Builder handle of the committed entity
        spec: The committed spec
    """

    handle: int
    spec: Any = None


class Namespace:
    """Names of one kind of entity, in commit order"""

    def __init__(self, kind: str):
        self.kind = kind
        self._entries: dict[str, Entry] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def get(self, name: str) -> Entry | None:
        return self._entries.get(name)

    def entries(self) -> list[Entry]:
        return list(self._entries.values())

    def check_unique(self, name: str) -> None:
        """Raise ValueError if the name is already committed"""
        if name in self._entries:
            raise ValueError(f"Duplicate {self.kind} name: '{name}'")

    def add(self, name: str, handle: int, spec: Any = None) -> Entry:
        """Commit a name

        Raises:
            ValueError: If the name is already committed
        """
        self.check_unique(name)
        entry = Entry(handle, spec)
        self._entries[name] = entry
        return entry


@dataclass
class NameIndex:
    """Names committed so far in one parse, per namespace

    Cross-references are resolved against this index at the point of
    reference, so only names declared earlier in the document resolve.
    """

    links: Namespace = field(default_factory=lambda: Namespace("link"))
    joints: Namespace = field(default_factory=lambda: Namespace("joint"))
    frames: Namespace = field(default_factory=lambda: Namespace("frame"))
    actuators: Namespace = field(default_factory=lambda: Namespace("actuator"))
    groups: Namespace = field(default_factory=lambda: Namespace("collision filter group"))
