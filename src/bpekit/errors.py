"""Custom exception hierarchy for bpekit construction errors."""

import regex as re


class BpeKitError(Exception):
    """Base exception for all bpekit errors."""


class ResourceParseError(BpeKitError):
    """Raised when a rank table resource cannot be parsed into a vocabulary."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        line_no: int | None = None,
        line: str | None = None,
    ) -> None:
        """Initialize with optional resource location that gets appended to the message."""
        extra = " "
        if source:
            extra += f"(source: {source}) "
        if line_no is not None:
            extra += f"(line {line_no}) "
        if line is not None:
            extra += f"(got {line!r}) "
        super().__init__(message + extra)
        self.source = source
        self.line_no = line_no
        self.line = line


# rank table loading failures share one recoverable error kind
VocabularyLoadError = ResourceParseError


class ResourceNotFoundError(ResourceParseError):
    """Raised when a rank table resource cannot be located."""


class AllocationCollisionError(BpeKitError):
    """Raised when a special token identifier is already taken."""

    def __init__(
        self,
        message: str,
        *,
        identifier: int | None = None,
        names: list[str] | None = None,
    ) -> None:
        extra = " "
        if identifier is not None:
            extra += f"(id: {identifier}) "
        if names:
            extra += f"(tokens: {', '.join(names)}) "
        super().__init__(message + extra)
        self.identifier = identifier
        self.names = names


class EngineConstructionError(BpeKitError):
    """Raised when the encoding engine rejects a fully assembled configuration."""

    def __init__(self, message: str, *, encoding: str | None = None) -> None:
        if encoding:
            message = f"{message} (encoding: {encoding})"
        super().__init__(message)
        self.encoding = encoding


class PatternError(BpeKitError):
    """Raised when compiling and/or validating regex patterns."""

    def __init__(
        self,
        message: str,
        *,
        pattern: str | None = None,
        regex_err: re.error | None = None,
    ) -> None:
        """
        Initialize PatternError with pattern details.

        Args:
            message: Error message.
            pattern: The regex pattern that failed.
            regex_err: The underlying regex error from the regex library.
        """
        extra = " "
        if pattern:
            extra += f"(pattern: {pattern!r}) "
        if regex_err:
            extra += f"(reason: {regex_err}) "
        super().__init__(message + extra)
        self.pattern = pattern
        self.regex_err = regex_err


class ProfileError(BpeKitError):
    """Raised when an encoding or model name is unknown."""

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        available: list[str] | None = None,
    ) -> None:
        extra = " "
        if name:
            extra += f"(available: {available}) (got {name}) "
        super().__init__(message + extra)
        self.name = name
        self.available = available
