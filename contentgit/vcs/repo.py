"""Repo: content-oriented git operations for a CMS working copy.

Every public method opens a fresh :class:`~contentgit.vcs.session.GitSession`
and discards it afterwards; the working copy on disk is the only state.

Concurrent mutating calls against the same working copy are not safe.
git's own index lock is the only protection, so callers must serialize
commits per repository (e.g. one commit at a time through a queue).
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Sequence

from pydantic import BaseModel, Field

from contentgit.config import DEFAULT_PUSH_TIMEOUT, ORIGIN, TMP_DIR_NAME
from contentgit.exceptions import GitError
from contentgit.vcs.credentials import SshCredential, write_private_key
from contentgit.vcs.git import GitResult
from contentgit.vcs.remotes import to_ssh_url
from contentgit.vcs.session import BaseEnvironment, GitSession, SessionFactory

if TYPE_CHECKING:
    from contentgit.settings import RepoSettings

logger = logging.getLogger(__name__)


class CommitRequest(BaseModel):
    """Files to stage and commit, plus message and optional author.

    ``files`` are relative to the content directory.  When ``email`` is
    set the commit author is overridden; ``name`` falls back to ``email``.
    """

    files: list[str] = Field(min_length=1)
    message: str
    name: str | None = None
    email: str | None = None
    push: bool = False

    @property
    def author(self) -> str | None:
        if not self.email:
            return None
        return f"{self.name or self.email} <{self.email}>"


class Repo:
    """Git facade for a content repository.

    Parameters
    ----------
    path:
        Root of the working copy.  Defaults to the current directory.
    content_dir:
        Content subdirectory, relative to *path*.  File arguments of every
        method are relative to it.
    session_factory:
        Builds the per-operation git sessions.  A default factory snapshots
        the process environment.
    push_timeout:
        Default timeout in seconds for pushes; *None* waits indefinitely.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        content_dir: str | Path = "",
        session_factory: SessionFactory | None = None,
        push_timeout: float | None = DEFAULT_PUSH_TIMEOUT,
    ) -> None:
        self.path = Path(path if path is not None else Path.cwd()).resolve()
        self.content_dir = PurePosixPath(Path(content_dir).as_posix())
        self.session_factory = session_factory or SessionFactory()
        self.push_timeout = push_timeout

    @classmethod
    def from_settings(cls, settings: RepoSettings, base_env: BaseEnvironment | None = None) -> Repo:
        """Build a repo from loaded :class:`~contentgit.settings.RepoSettings`."""
        factory = SessionFactory(
            base_env=base_env,
            committer_name=settings.committer_name,
            committer_email=settings.committer_email,
        )
        return cls(
            settings.repo_path,
            settings.content_dir,
            session_factory=factory,
            push_timeout=settings.push_timeout,
        )

    # -- Paths ----------------------------------------------------------------

    @property
    def content_path(self) -> Path:
        return self.path / self.content_dir

    @property
    def tmp_dir(self) -> Path:
        return self.content_path / TMP_DIR_NAME

    @property
    def ssh_key_path(self) -> Path:
        return self.session_factory.ssh_key_path(self.path)

    def file_absolute_path(self, relative_path: str | Path) -> Path:
        """Return the absolute path of a content-relative file."""
        return self.content_path / relative_path

    def _repo_relative(self, relative_path: str | Path) -> str:
        return str(self.content_dir / PurePosixPath(Path(relative_path).as_posix()))

    def open(self) -> GitSession:
        """Return a freshly configured session for this working copy."""
        return self.session_factory.open(self.path)

    # -- Commit / push --------------------------------------------------------

    def commit(self, request: CommitRequest, timeout: float | None = None) -> GitResult:
        """Stage and commit exactly ``request.files``; push if requested.

        Returns the push result when ``request.push`` is set, otherwise the
        commit result.  *timeout* overrides :attr:`push_timeout`.
        """
        files = [self._repo_relative(f) for f in request.files]

        repo = self.open()
        branch = repo.current_branch()

        repo.add(files)
        result = repo.commit(request.message, files, author=request.author)
        logger.info("Committed %d file(s) on '%s'", len(files), branch)

        if not request.push:
            return result

        pushed = repo.push("-u", ORIGIN, branch, timeout=self._timeout(timeout))
        logger.info("Pushed '%s' to %s", branch, ORIGIN)
        return pushed

    def push(self, timeout: float | None = None) -> GitResult:
        """Push the current branch to its configured upstream."""
        result = self.open().push(timeout=self._timeout(timeout))
        logger.info("Pushed %s", self.path)
        return result

    def _timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self.push_timeout

    # -- Reset ----------------------------------------------------------------

    def reset(self, files: Sequence[str]) -> GitResult:
        """Discard local modifications to ``files[0]``.

        Only the first entry is reset; use :meth:`reset_files` to reset
        every listed file.
        """
        if not files:
            raise ValueError("reset requires at least one file")
        return self.reset_file(files[0])

    def reset_file(self, relative_path: str) -> GitResult:
        """Discard local modifications to a single content file."""
        return self.open().checkout(self._repo_relative(relative_path))

    def reset_files(self, files: Sequence[str]) -> GitResult:
        """Discard local modifications to every listed content file."""
        if not files:
            raise ValueError("reset_files requires at least one file")
        return self.open().checkout(*(self._repo_relative(f) for f in files))

    # -- History --------------------------------------------------------------

    def get_file_at_head(self, relative_path: str) -> str:
        """Return the file as committed at HEAD, else its working-copy text.

        Only a failure of the working-copy read propagates.
        """
        repo_path = self._repo_relative(relative_path)
        try:
            return self.open().show(f"HEAD:{repo_path}")
        except GitError:
            logger.debug("%s not at HEAD, reading working copy", repo_path)
        return (self.path / repo_path).read_text(encoding="utf-8")

    # -- Remotes --------------------------------------------------------------

    def get_origin(self) -> str | None:
        """Return the push URL of ``origin``, or *None* when absent."""
        remotes = self.open().get_remotes()
        origins = [r for r in remotes if r.name == ORIGIN]
        if not origins:
            logger.warning("No origin remote on the given repo")
            return None
        origin = origins[0]
        return origin.push_url or origin.fetch_url

    def update_origin(self, remote: str) -> str:
        """Point ``origin`` at *remote*, normalized to SSH form.

        Removes any existing ``origin`` before adding the new one.  Not
        atomic: if the add fails the repository is left without an origin.
        Returns the new URL.
        """
        new_remote = to_ssh_url(remote)
        repo = self.open()

        if any(r.name == ORIGIN for r in repo.get_remotes()):
            logger.warning("Changing remote origin to %s", new_remote)
            repo.remove_remote(ORIGIN)

        repo.add_remote(ORIGIN, new_remote)
        return new_remote

    # -- Credentials ----------------------------------------------------------

    def create_ssh_key(self, ssh_key: str | SshCredential) -> Path:
        """Decode a base64 private key and store it at :attr:`ssh_key_path`.

        Overwrites any existing key.  The file is readable and writable by
        the owner only.
        """
        credential = ssh_key if isinstance(ssh_key, SshCredential) else SshCredential.from_base64(ssh_key)
        path = write_private_key(self.ssh_key_path, credential)
        logger.info("Provisioned SSH key for %s", self.path)
        return path
