"""conform - in-place sanitizing of annotated text fields on dataclass records.

    @dataclass
    class Signup:
        first_name: str = conform_field("name")
        email: str = conform_field("email")

    form = Signup(first_name=" LEE ", email="  LEE@LEEbenson.com  ")
    conform.apply(form)   # Signup(first_name="Lee", email="lee@leebenson.com")
"""

from conform.core.settings import Settings, SettingsError, default_settings, load_settings
from conform.core.trace import TraceContext
from conform.engine import Conformer, apply, conform_field, describe, parse_annotation
from conform.errors import ConformError, ConformUsageError
from conform.libs.transform import TransformRegistry, get_registry, register

__all__ = [
    "ConformError",
    "ConformUsageError",
    "Conformer",
    "Settings",
    "SettingsError",
    "TraceContext",
    "TransformRegistry",
    "apply",
    "conform_field",
    "default_settings",
    "describe",
    "get_registry",
    "load_settings",
    "parse_annotation",
    "register",
]
