import heapq
import logging
from typing import Iterator, Optional

from infra_sitepipe.lib.base import CyclicReferenceError, DuplicateNameError, UnknownReferenceError
from infra_sitepipe.lib.config.settings import ProviderSettings
from .types import Reference, Resource

logger = logging.getLogger(__name__)


class Plan:
    """
    A declared resource graph.

    Resources are nodes; every ``Reference`` in a resource's config and every ``depends_on`` name is an edge from
    the holder onto its target. ``exports`` are references surfaced once the plan is materialized.
    """

    def __init__(self, settings: ProviderSettings, resources: Optional[list[Resource]] = None):
        self.settings = settings
        self.exports: dict[str, Reference] = {}
        self._resources: dict[str, Resource] = {}

        for resource in resources or []:
            self.add(resource)

    def add(self, resource: Resource) -> Resource:
        if resource.name in self._resources:
            raise DuplicateNameError(resource.name)

        self._resources[resource.name] = resource
        return resource

    def export(self, key: str, reference: Reference) -> None:
        self.exports[key] = reference

    def __getitem__(self, name: str) -> Resource:
        return self._resources[name]

    def __contains__(self, name: str) -> bool:
        return name in self._resources

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources.values())

    def __len__(self) -> int:
        return len(self._resources)

    @property
    def names(self) -> list[str]:
        return list(self._resources)

    def of_type(self, resource_type) -> list[Resource]:
        return [r for r in self if r.type == resource_type]

    def check_references(self) -> None:
        """Raise ``UnknownReferenceError`` for any edge onto an undeclared resource or an unexposed attribute"""
        holders = [(resource.name, resource.references(), resource.depends_on) for resource in self]
        holders.append(("<exports>", list(self.exports.values()), []))

        for holder, references, depends_on in holders:
            for ref in references:
                if ref.target not in self._resources:
                    raise UnknownReferenceError(holder, ref.target)
                if ref.attribute not in self._resources[ref.target].outputs:
                    raise UnknownReferenceError(holder, ref.target, ref.attribute)
            for target in depends_on:
                if target not in self._resources:
                    raise UnknownReferenceError(holder, target)

    def topological_order(self) -> list[str]:
        """
        Order resources so that every resource follows all of its dependencies.

        Kahn's algorithm; among resources that are ready at the same time, declaration order wins, so the result is
        deterministic for a given plan.

        :return: Resource names
        """
        self.check_references()

        position = {name: i for i, name in enumerate(self._resources)}
        dependents: dict[str, list[str]] = {name: [] for name in self._resources}
        in_degree = {name: 0 for name in self._resources}

        for resource in self:
            for dependency in resource.dependencies():
                dependents[dependency].append(resource.name)
                in_degree[resource.name] += 1

        ready = [position[name] for name, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)
        names = self.names
        order = []

        while ready:
            name = names[heapq.heappop(ready)]
            order.append(name)
            for dependent in dependents[name]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, position[dependent])

        if len(order) != len(self._resources):
            raise CyclicReferenceError(self._find_cycle({n for n, d in in_degree.items() if d > 0}))

        logger.debug("topological order: %s", order)
        return order

    def destroy_order(self) -> list[str]:
        return list(reversed(self.topological_order()))

    def _find_cycle(self, remaining: set[str]) -> list[str]:
        """Return one cycle among ``remaining``, closed (first name repeated at the end)"""
        visiting: list[str] = []
        done: set[str] = set()

        def visit(name: str) -> Optional[list[str]]:
            if name in visiting:
                return visiting[visiting.index(name):] + [name]
            if name in done:
                return None
            visiting.append(name)
            for dependency in self._resources[name].dependencies():
                if dependency in remaining and (cycle := visit(dependency)):
                    return cycle
            visiting.pop()
            done.add(name)
            return None

        for name in self._resources:
            if name in remaining and (cycle := visit(name)):
                return cycle

        return sorted(remaining)
