import json
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional

from .types import ResourceType


def fingerprint(resource_type: ResourceType, inputs: dict) -> str:
    """Stable digest of a resource's resolved inputs, used to tell unchanged resources apart"""
    return json.dumps({"type": resource_type.value, "inputs": inputs}, sort_keys=True, default=str)


@dataclass
class Record:
    """What is known about a materialized resource"""

    type: ResourceType
    inputs: dict
    attributes: Mapping[str, Any]
    dependencies: list[str] = field(default_factory=list)

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.type, self.inputs)


class State:
    """
    Materialized resources, in the order they were created.

    Records remember their dependencies so resources can be destroyed dependents first, even when an update moved
    a dependency after its dependent.
    """

    def __init__(self, records: Optional[dict[str, Record]] = None):
        self._records: dict[str, Record] = dict(records or {})

    def __contains__(self, name: str) -> bool:
        return name in self._records

    def __getitem__(self, name: str) -> Record:
        return self._records[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, name: str) -> Optional[Record]:
        return self._records.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._records)

    def put(self, name: str, record: Record) -> None:
        """Record a resource. An updated resource keeps its original position."""
        self._records[name] = record

    def remove(self, name: str) -> None:
        del self._records[name]

    def copy(self) -> "State":
        return State(self._records)

    def destroy_order(self) -> list[str]:
        """Dependents before their dependencies; otherwise the reverse of creation order"""
        order = []
        placed = set()
        remaining = list(self._records)

        while remaining:
            for name in remaining:
                deps = [d for d in self._records[name].dependencies if d in self._records and d != name]
                if all(d in placed for d in deps):
                    order.append(name)
                    placed.add(name)
                    remaining.remove(name)
                    break
            else:
                # recorded dependencies can only cycle if the state was edited by hand
                order.extend(remaining)
                break

        return list(reversed(order))
