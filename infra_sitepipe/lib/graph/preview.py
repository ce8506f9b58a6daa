import logging
from typing import Any, Mapping

from .materializer import Materializer
from .types import Resource

logger = logging.getLogger(__name__)


class PreviewMaterializer(Materializer):
    """
    A materializer that talks to nothing.

    Attributes come back as ``(known after apply: <name>.<attribute>)`` placeholders, which is enough to render every
    policy document and export of a plan without credentials. Every call is recorded in ``operations``.
    """

    def __init__(self):
        self.operations: list[tuple[str, str]] = []

    def _attributes(self, resource: Resource) -> dict[str, Any]:
        return {attribute: f"(known after apply: {resource.name}.{attribute})" for attribute in resource.outputs}

    def create(self, resource: Resource, inputs: dict) -> Mapping[str, Any]:
        self.operations.append(("create", resource.name))
        return self._attributes(resource)

    def update(self, resource: Resource, inputs: dict, attributes: Mapping[str, Any]) -> Mapping[str, Any]:
        self.operations.append(("update", resource.name))
        return attributes

    def delete(self, name: str, attributes: Mapping[str, Any]) -> None:
        self.operations.append(("delete", name))
