"""Exception hierarchy shared by every contentgit module."""

from __future__ import annotations

from typing import Sequence


class ContentGitError(Exception):
    """Base class for all contentgit errors."""


class GitError(ContentGitError):
    """Raised when a git subprocess returns a non-zero exit code.

    The message keeps git's own stderr text, with credential material
    scrubbed before the exception is built.
    """

    def __init__(
        self,
        message: str,
        *,
        args: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.git_args = tuple(args)
        self.returncode = returncode
        self.stderr = stderr


class GitTimeoutError(GitError):
    """Raised when a git subprocess exceeds its timeout."""


class CredentialError(ContentGitError):
    """Raised when supplied key material cannot be decoded.

    Never carries the key material itself.
    """
