from .compose import Requirement, compose_policy
from .generators import (
    generate_build_identity,
    generate_pipeline_identity,
    generate_public_read_policy,
)
from .identity import Identity, IdentityState
from .resource_interpolator import interpolate_resource
from .types import (
    PolicyDocument,
    PublicReadStatement,
    ReadStatement,
    RolePolicy,
    ServiceTrustStatement,
    Statement,
    TrustPolicy,
    WriteStatement,
    is_read_action,
)
from .validation import validate_document, validate_statement
