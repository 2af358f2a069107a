# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for satchel.

All exceptions inherit from SatchelError for consistent error handling.
The category base classes (FatalError, TransactionAborted, UserInputError,
NothingToDo) decide how the command line reports an outcome.
"""

from typing import Optional


class SatchelError(Exception):
    """Base exception for all satchel errors."""

    def __init__(
        self,
        message: str,
        exit_code: int = 1,
        details: Optional[dict] = None
    ):
        """
        Initialize satchel error.

        Args:
            message: Human-readable error message
            exit_code: Process exit code reported by the command line
            details: Additional error details
        """
        self.message = message
        self.exit_code = exit_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for structured logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "exit_code": self.exit_code,
            "details": self.details
        }


# =============================================================================
# CATEGORIES
# =============================================================================

class FatalError(SatchelError):
    """Unrecoverable condition; the transaction stops where it is."""


class TransactionAborted(SatchelError):
    """Transaction stopped after cleaning up its temporary artifacts."""


class UserInputError(SatchelError):
    """The request cannot be satisfied as written."""


class NothingToDo(SatchelError):
    """Informational outcome that still exits non-zero."""


# =============================================================================
# FATAL
# =============================================================================

class ConfigurationError(FatalError):
    """Sources config, index or config file missing or malformed."""

    def __init__(self, message: str, path: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.path = path


class TransferError(FatalError):
    """Network request or download write failed."""

    def __init__(self, message: str, url: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.url = url


class ArchiveError(FatalError):
    """Archive could not be decoded, unpacked or named."""


class ScriptError(FatalError):
    """A PKGFILE line could not be executed."""

    def __init__(self, message: str, line: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.line = line


class LockfileError(FatalError):
    """Lockfile could not be read or written."""


class InternalError(FatalError):
    """Input that should never reach the core did."""


class RepositoryNotFoundError(FatalError):
    """A pinned repository holds none of the matching packages."""

    def __init__(self, repository: str, details: Optional[dict] = None):
        super().__init__(f"package repository not found: {repository}", details=details)
        self.repository = repository


class InvalidChoiceError(FatalError):
    """Disambiguation answer was not a listed option."""

    def __init__(self, answer: str, details: Optional[dict] = None):
        super().__init__(f"invalid choice: {answer!r}", details=details)
        self.answer = answer


# =============================================================================
# ABORTS
# =============================================================================

class UserDeclinedError(TransactionAborted):
    """The user answered no at a confirmation gate."""

    def __init__(self, action: str, details: Optional[dict] = None):
        super().__init__(f"aborting {action}", details=details)
        self.action = action


class ChecksumMismatchError(TransactionAborted):
    """Downloaded archive does not match the index checksum."""

    def __init__(self, name: str, expected: str, actual: str):
        super().__init__(
            f"checksum mismatch for {name}: expected {expected}, got {actual}",
            details={"expected": expected, "actual": actual}
        )
        self.expected = expected
        self.actual = actual


# =============================================================================
# USER INPUT
# =============================================================================

class PackageNotFoundError(UserInputError):
    """No repository offers the requested package."""

    def __init__(self, identifier: str, details: Optional[dict] = None):
        super().__init__(f"package not found: {identifier}", details=details)
        self.identifier = identifier


class AlreadyInstalledError(UserInputError):
    """A package with the same name is already in the lockfile."""

    def __init__(self, name: str, version: str):
        super().__init__(f"package {name}-{version} is already installed")
        self.name = name
        self.version = version


class NotInstalledError(UserInputError):
    """The package is not in the lockfile."""

    def __init__(self, name: str):
        super().__init__(f"package {name} is not installed")
        self.name = name


class NothingInstalledError(UserInputError):
    """The lockfile is empty."""

    def __init__(self):
        super().__init__("no packages are installed")


class RepositoryExistsError(UserInputError):
    """The repository URL or name is already configured."""

    def __init__(self, identifier: str):
        super().__init__(f"repository already added: {identifier}")
        self.identifier = identifier


class UnknownRepositoryError(UserInputError):
    """The named repository is not configured."""

    def __init__(self, name: str):
        super().__init__(f"repository not configured: {name}")
        self.name = name


# =============================================================================
# INFORMATIONAL
# =============================================================================

class AlreadyUpToDateError(NothingToDo):
    """Installed version already equals the requested one."""

    def __init__(self, name: str, version: str):
        super().__init__(f"package {name} is already up to date ({version})")
        self.name = name
        self.version = version
