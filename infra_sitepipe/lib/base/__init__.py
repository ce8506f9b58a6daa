from .base_module import BaseModule
from .exceptions import (
    SitepipeException,
    StructuralError,
    DuplicateNameError,
    UnknownReferenceError,
    CyclicReferenceError,
    MultiplePolicyError,
    ConflictingGrantError,
    PolicyValidationError,
    IdentityStateError,
    MaterializationError,
    ConfigurationError,
)
from .types import ConfigType, ExportsType
