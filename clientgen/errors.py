"""Errors and warnings raised while generating a client.

Fatal problems derive from GenerationError and abort the run before any
file is written. Recoverable anomalies are reported with warnings.warn and
degrade to a permissive placeholder type.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for errors that abort generation."""


class DocumentError(GenerationError):
    """The input is not a usable OpenAPI document."""


class UnsupportedReferenceError(GenerationError):
    """A $ref cannot be resolved within the document's own components."""

    def __init__(self, ref: str, location: str) -> None:
        self.ref = ref
        self.location = location
        super().__init__(f"Unsupported $ref {ref!r} in {location}")


class PathParameterMismatchError(GenerationError):
    """Declared path parameters and URL template placeholders disagree."""

    def __init__(
        self,
        operation_id: str,
        missing_placeholders: list[str],
        undeclared_placeholders: list[str],
    ) -> None:
        self.operation_id = operation_id
        self.missing_placeholders = missing_placeholders
        self.undeclared_placeholders = undeclared_placeholders
        details = []
        if missing_placeholders:
            details.append(
                "no placeholder for path parameter(s) " + ", ".join(missing_placeholders)
            )
        if undeclared_placeholders:
            details.append(
                "undeclared placeholder(s) " + ", ".join(undeclared_placeholders)
            )
        super().__init__(f"Operation {operation_id!r}: " + "; ".join(details))


class MissingOperationIdWarning(UserWarning):
    """An operation has no operationId and is skipped."""


class UnparseableSchemaWarning(UserWarning):
    """A schema has no recognizable shape and is mapped to Any."""
