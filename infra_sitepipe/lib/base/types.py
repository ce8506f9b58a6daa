from typing import Any, TypeVar

ConfigType = TypeVar("ConfigType")
"""A module's config dataclass, mapped from the stack config"""

ExportsType = TypeVar("ExportsType", bound=Any)
"""A module's exports dataclass (or list of them), registered as the stack output"""
