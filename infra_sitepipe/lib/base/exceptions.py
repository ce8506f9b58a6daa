class SitepipeException(Exception):
    """Base class for every error raised by sitepipe"""


class StructuralError(SitepipeException):
    """
    A declared plan is malformed. Raised before anything is materialized and never retryable without editing the
    plan.
    """


class DuplicateNameError(StructuralError):
    def __init__(self, name: str):
        super().__init__(f"resource `{name}` is declared more than once")
        self.name = name


class UnknownReferenceError(StructuralError):
    def __init__(self, holder: str, target: str, attribute: str = None):
        if attribute:
            msg = f"resource `{holder}` references attribute `{attribute}` which `{target}` does not expose"
        else:
            msg = f"resource `{holder}` references undeclared resource `{target}`"
        super().__init__(msg)
        self.holder = holder
        self.target = target
        self.attribute = attribute


class CyclicReferenceError(StructuralError):
    def __init__(self, cycle: list[str]):
        super().__init__(f"cyclic reference: {' -> '.join(cycle)}")
        self.cycle = cycle


class MultiplePolicyError(StructuralError):
    def __init__(self, identity: str, policies: list[str]):
        super().__init__(
            f"identity `{identity}` has more than one permission document bound: {', '.join(policies)}"
        )
        self.identity = identity
        self.policies = policies


class ConflictingGrantError(StructuralError):
    def __init__(self, bucket: str, grants: list[str]):
        super().__init__(
            f"bucket `{bucket}` is made public-readable by more than one mechanism: {', '.join(grants)}"
        )
        self.bucket = bucket
        self.grants = grants


class PolicyValidationError(SitepipeException):
    """A permission or trust statement is invalid"""


class IdentityStateError(SitepipeException):
    """An identity binding was attempted from the wrong lifecycle state"""


class MaterializationError(SitepipeException):
    """
    The external engine failed to materialize a resource (naming collision, quota, permission denied...).

    Engines wrap the underlying error, which stays available as ``__cause__``.
    """

    def __init__(self, name: str, reason: str):
        super().__init__(f"failed to materialize `{name}`: {reason}")
        self.name = name
        self.reason = reason


class ConfigurationError(SitepipeException):
    """A module config is well-formed but describes something that cannot be declared"""
