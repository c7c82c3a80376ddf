"""Error taxonomy for configuration lifecycle operations.

Every failure raised by the codec, the session or the controller derives from
LifecycleError. Errors carry the device warnings that were collected before
the failure so that nothing reported by the device is lost when an operation
aborts.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass
class DeviceWarning:
    """Advisory message returned alongside a result or an error."""
    summary: str
    message: str

    def to_dict(self) -> dict:
        return {"summary": self.summary, "message": self.message}

    def __str__(self) -> str:
        return f"{self.summary}: {self.message}"


COMMIT_WARNING = "Config Commit Warning"
UNLOCK_WARNING = "Config Unlock Warning"
CLEAR_WARNING = "Config Clear Warning"
SET_WARNING = "Config Set Warning"
CLOSE_WARNING = "Session Close Warning"
READ_COMPUTED_WARNING = "Read Computed Warning"


class LifecycleError(Exception):
    """Base class for every error raised by this package."""

    summary = "Lifecycle Error"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.warnings: list[DeviceWarning] = []

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "message": self.message,
            "path": self.path,
            "warnings": [w.to_dict() for w in self.warnings],
        }


class ConfigurationError(LifecycleError):
    """Invalid provider settings."""
    summary = "Configuration Error"


class BadIdError(LifecycleError):
    """Object ID without enough identifier elements."""
    summary = "Bad ID Format"


# === Validation (raised before any device I/O) ===

class IssueKind(str, Enum):
    """Kinds of problems found while validating an object before render."""
    EMPTY_BLOCK = "empty_block"
    DUPLICATE = "duplicate"
    MISSING = "missing"
    CONFLICT = "conflict"


@dataclass
class ValidationIssue:
    """One problem found while validating an object."""
    kind: IssueKind
    path: str
    message: str

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class ValidationError(LifecycleError):
    """One or more validation issues, reported together."""

    summary = "Validation Error"

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = list(issues)
        message = "; ".join(str(i) for i in self.issues) or "invalid configuration"
        path = self.issues[0].path if self.issues else None
        super().__init__(message, path=path)

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> "ValidationError":
        """Build the error subclass matching the first issue's kind."""
        error_class = _ISSUE_ERRORS.get(issues[0].kind, ValidationError) if issues else cls
        return error_class(issues)


class EmptyBlockError(ValidationError):
    summary = "Empty Block Error"


class DuplicateIdentifierError(ValidationError):
    summary = "Duplicate Identifier Error"


class MissingConfigError(ValidationError):
    summary = "Missing Configuration Error"


class ConflictConfigError(ValidationError):
    summary = "Conflict Configuration Error"


_ISSUE_ERRORS = {
    IssueKind.EMPTY_BLOCK: EmptyBlockError,
    IssueKind.DUPLICATE: DuplicateIdentifierError,
    IssueKind.MISSING: MissingConfigError,
    IssueKind.CONFLICT: ConflictConfigError,
}


# === Parsing ===

class ParseError(LifecycleError):
    """Malformed value in a device dump."""
    summary = "Config Read Error"


class DecodeError(ParseError):
    """Obfuscated secret could not be decoded."""
    summary = "Secret Decode Error"


# === Session and transport ===

class SessionStartError(LifecycleError):
    summary = "Start Session Error"


class SessionStateError(LifecycleError):
    """Operation not allowed in the current session state."""
    summary = "Session State Error"


class CommandError(LifecycleError):
    summary = "Command Error"


class ConfigLockError(LifecycleError):
    summary = "Config Lock Error"


class ConfigSetError(LifecycleError):
    """A statement was rejected by the device."""
    summary = "Config Set Error"

    def __init__(self, message: str, path: Optional[str] = None, bad_element: Optional[str] = None):
        super().__init__(message, path=path)
        self.bad_element = bad_element


class ConfigCommitError(LifecycleError):
    summary = "Config Commit Error"


# === Lifecycle pre/post conditions ===

class PreCheckError(LifecycleError):
    summary = "Pre Check Error"


class PostCheckError(LifecycleError):
    summary = "Post Check Error"


class NotFoundError(LifecycleError):
    summary = "Not Found Error"


class DuplicateConfigError(LifecycleError):
    summary = "Duplicate Configuration Error"


class CompatibilityError(LifecycleError):
    summary = "Compatibility Error"
