from abc import ABC, abstractmethod
from typing import Any, Mapping

from .types import Resource


class Materializer(ABC):
    """
    The seam onto the engine that actually brings resources into existence.

    A materializer receives resources with every reference already resolved, one at a time and in dependency order.
    It returns the attributes the resource exposes (``Resource.outputs``); those values feed the references of
    resources materialized later. Engines signal failures by raising ``MaterializationError``.
    """

    @abstractmethod
    def create(self, resource: Resource, inputs: dict) -> Mapping[str, Any]:
        """Create a resource from its resolved inputs and return its attributes"""

    @abstractmethod
    def update(self, resource: Resource, inputs: dict, attributes: Mapping[str, Any]) -> Mapping[str, Any]:
        """Bring an existing resource in line with new inputs and return its attributes"""

    @abstractmethod
    def delete(self, name: str, attributes: Mapping[str, Any]) -> None:
        """Destroy a resource"""

    def join(self, parts: list[Any]) -> Any:
        """Concatenate a resolved value with a reference's prefix and suffix"""
        return "".join(str(part) for part in parts)
