"""Generate typed Python API clients from OpenAPI 3.0 documents."""

from .codegen import GeneratedSources, generate, generate_sources
from .config import NamingConfig
from .errors import (
    GenerationError,
    MissingOperationIdWarning,
    PathParameterMismatchError,
    UnparseableSchemaWarning,
    UnsupportedReferenceError,
)
from .loader import load_spec

__all__ = [
    "GeneratedSources",
    "GenerationError",
    "MissingOperationIdWarning",
    "NamingConfig",
    "PathParameterMismatchError",
    "UnparseableSchemaWarning",
    "UnsupportedReferenceError",
    "generate",
    "generate_sources",
    "load_spec",
]
