import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

from infra_sitepipe.lib.base import MaterializationError, SitepipeException
from .materializer import Materializer
from .plan import Plan
from .state import Record, State, fingerprint
from .types import Reference, Resource, expand
from .validation import Finding, validate_plan

logger = logging.getLogger(__name__)


class DeferredReference(SitepipeException):
    """A reference points at a resource that is not materialized yet. A scheduling constraint, not an error."""

    def __init__(self, reference: Reference):
        super().__init__(f"`{reference.target}` is not materialized yet")
        self.reference = reference


@dataclass
class ApplyResult:
    state: State
    """State after the apply"""

    order: list[str] = field(default_factory=list)
    """Topological order of the plan"""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    destroyed: list[str] = field(default_factory=list)

    failed: dict[str, MaterializationError] = field(default_factory=dict)
    """Resources the engine failed to materialize or destroy"""

    skipped: list[str] = field(default_factory=list)
    """Resources not attempted because something they depend on failed, or something depending on them survived"""

    findings: list[Finding] = field(default_factory=list)
    outputs: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.skipped


class Resolver:
    """
    Drives a materializer through a plan.

    ``apply`` validates the whole plan first: any structural or policy error is raised before a single resource is
    touched. Resources present in the previous state but gone from the plan are destroyed, dependents first; a
    resource is kept while a dependent of it could not be destroyed. Then resources are materialized in topological
    order. A resource whose references are not resolvable yet is deferred and retried once its targets exist; if a
    target failed, the resource and everything depending on it is skipped while independent branches carry on. A
    resource whose resolved inputs did not change is left alone, so re-applying an unchanged plan is a no-op.

    Example::

        resolver = Resolver(materializer)
        result = resolver.apply(plan)
        result = resolver.apply(plan, result.state)  # nothing created, nothing updated
    """

    def __init__(self, materializer: Materializer):
        self.materializer = materializer

    def apply(self, plan: Plan, state: Optional[State] = None) -> ApplyResult:
        findings = validate_plan(plan)
        order = plan.topological_order()

        result = ApplyResult(state=(state or State()).copy(), order=order, findings=findings)

        self._destroy([name for name in result.state.destroy_order() if name not in plan], result)
        self._materialize(plan, order, result)

        result.outputs = {
            key: self._resolve(ref, result.state, ready=set(result.state))
            for key, ref in plan.exports.items()
            if ref.target in result.state
        }

        logger.info(
            "apply finished: %d created, %d updated, %d unchanged, %d destroyed, %d failed, %d skipped",
            len(result.created),
            len(result.updated),
            len(result.unchanged),
            len(result.destroyed),
            len(result.failed),
            len(result.skipped),
        )
        return result

    def destroy(self, state: State) -> ApplyResult:
        """Destroy every resource in ``state``, dependents first"""
        result = ApplyResult(state=state.copy())
        self._destroy(result.state.destroy_order(), result)
        return result

    def _destroy(self, names: list[str], result: ApplyResult) -> None:
        kept: set[str] = set()
        for name in names:
            dependents = sorted(other for other in kept if name in result.state[other].dependencies)
            if dependents:
                logger.warning("keeping %s, %s still depends on it", name, ", ".join(dependents))
                result.skipped.append(name)
                kept.add(name)
                continue

            try:
                self.materializer.delete(name, result.state[name].attributes)
            except MaterializationError as e:
                logger.error("%s", e)
                result.failed[name] = e
                kept.add(name)
                continue

            result.state.remove(name)
            result.destroyed.append(name)
            logger.debug("destroyed %s", name)

    def _materialize(self, plan: Plan, order: list[str], result: ApplyResult) -> None:
        queue = deque(order)
        ready: set[str] = set()
        blocked: set[str] = set()
        deferrals = 0

        while queue:
            name = queue.popleft()
            resource = plan[name]

            if blocked.intersection(resource.dependencies()):
                logger.warning("skipping %s, a dependency was not materialized", name)
                result.skipped.append(name)
                blocked.add(name)
                continue

            try:
                if not ready.issuperset(resource.depends_on):
                    raise DeferredReference(Reference(next(d for d in resource.depends_on if d not in ready), "id"))
                inputs = self._resolve(expand(resource.config), result.state, ready)
            except DeferredReference as e:
                deferrals += 1
                if deferrals > len(queue):
                    raise SitepipeException(f"no progress resolving `{name}`: {e}") from e
                logger.debug("deferring %s: %s", name, e)
                queue.append(name)
                continue

            deferrals = 0
            try:
                self._reconcile(resource, inputs, result)
            except MaterializationError as e:
                logger.error("%s", e)
                result.failed[name] = e
                blocked.add(name)
                continue

            ready.add(name)

    def _reconcile(self, resource: Resource, inputs: dict, result: ApplyResult) -> None:
        record = result.state.get(resource.name)
        dependencies = resource.dependencies()

        if record is not None and record.type != resource.type:
            logger.debug("replacing %s, type changed from %s", resource.name, record.type.value)
            self.materializer.delete(resource.name, record.attributes)
            result.state.remove(resource.name)
            result.destroyed.append(resource.name)
            record = None

        if record is None:
            attributes = self.materializer.create(resource, inputs)
            result.created.append(resource.name)
            logger.debug("created %s", resource.name)
        elif record.fingerprint == fingerprint(resource.type, inputs):
            result.unchanged.append(resource.name)
            return
        else:
            attributes = self.materializer.update(resource, inputs, record.attributes)
            result.updated.append(resource.name)
            logger.debug("updated %s", resource.name)

        result.state.put(resource.name, Record(resource.type, inputs, attributes, dependencies))

    def _resolve(self, value: Any, state: State, ready: set[str]) -> Any:
        """Replace every reference in ``value`` with the attribute it points at"""
        if isinstance(value, Reference):
            if value.target not in ready:
                raise DeferredReference(value)
            resolved = state[value.target].attributes[value.attribute]
            if value.prefix or value.suffix:
                return self.materializer.join([value.prefix, resolved, value.suffix])
            return resolved
        elif isinstance(value, dict):
            return {k: self._resolve(v, state, ready) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._resolve(v, state, ready) for v in value]
        else:
            return value
