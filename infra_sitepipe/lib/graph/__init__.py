from .plan import Plan
from .types import Document, Reference, Resource, ResourceType
