"""Error taxonomy for the binding generator.

Every failure is detected at generation time and aborts the whole module.
Errors carry enough context (path, version, parser complaint) to be fixed
at the source without re-running with extra instrumentation.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """Where a directive came from (a manifest entry, a CLI argument, ...)."""

    path: str
    line: int = 0

    def __str__(self) -> str:
        return f"{self.path}:{self.line}" if self.line else self.path


class GenerationError(Exception):
    """Base class for everything that can abort generation."""

    def __init__(self, message: str, location: SourceLocation | None = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        if self.location is not None:
            return f"{self.location}: {self.message}"
        return self.message


# --- Directive errors ---


class DirectiveError(GenerationError):
    pass


class UnknownKeyError(DirectiveError):
    def __init__(self, key: str, allowed: tuple[str, ...], location: SourceLocation | None = None):
        expected = ", ".join(f"'{k}'" for k in allowed)
        super().__init__(f"Unknown key '{key}'. Expected one of {expected}", location)
        self.key = key
        self.allowed = allowed


class MissingParameterError(DirectiveError):
    def __init__(self, key: str, location: SourceLocation | None = None):
        super().__init__(f"Missing '{key}' parameter", location)
        self.key = key


class ManifestError(DirectiveError):
    pass


# --- Document access ---


class DocumentAccessError(GenerationError):
    def __init__(
        self, path: str, version: int, reason: str, location: SourceLocation | None = None
    ):
        super().__init__(
            f"Failed to read IDL file '{path}' as version {version}: {reason}", location
        )
        self.path = path
        self.version = version
        self.reason = reason


# --- Schema errors ---


class SchemaError(GenerationError):
    pass


class UnsupportedVersionError(SchemaError):
    def __init__(self, version, supported: tuple[int, ...], location: SourceLocation | None = None):
        listed = ", ".join(str(v) for v in supported)
        super().__init__(
            f"Unsupported IDL version: {version}. Supported versions: {listed}", location
        )
        self.version = version
        self.supported = supported


class DocumentParseError(SchemaError):
    def __init__(
        self,
        version: int,
        source: str,
        issues: list[str],
        location: SourceLocation | None = None,
    ):
        detail = "; ".join(issues)
        super().__init__(
            f"Failed to read IDL file '{source}' as version {version}: "
            f"Failed to parse as V{version} IDL: {detail}",
            location,
        )
        self.version = version
        self.source = source
        self.issues = issues


# --- Synthesis errors ---


class SynthesisError(GenerationError):
    pass


class SynthesisLimitError(SynthesisError):
    def __init__(self, count: int, limit: int, location: SourceLocation | None = None):
        super().__init__(
            f"IDL declares {count} instructions but a one-byte discriminant "
            f"allows at most {limit}",
            location,
        )
        self.count = count
        self.limit = limit


class InvalidIdentifierError(SynthesisError):
    pass


class InvalidProgramIdError(SynthesisError):
    pass
