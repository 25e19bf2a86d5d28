"""Session factory: git handles with SSH transport and identity baked in.

Every facade operation opens a fresh :class:`GitSession`.  The session's
environment is layered, lowest precedence first:

1. fallback committer identity (``GIT_COMMITTER_NAME`` / ``GIT_COMMITTER_EMAIL``)
2. the :class:`BaseEnvironment` captured when the factory was built
3. the computed ``GIT_SSH_COMMAND``

The ambient environment can replace the fallback identity but never the
transport command.
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Sequence

from contentgit.config import (
    BASE_SSH_OPTIONS,
    DEFAULT_COMMITTER_EMAIL,
    DEFAULT_COMMITTER_NAME,
    SSH_KEY_RELATIVE_PATH,
)
from contentgit.vcs.git import GitResult, Scrubber, run_git
from contentgit.vcs.remotes import Remote, parse_remotes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BaseEnvironment:
    """Read-only snapshot of the environment forwarded to every git call."""

    variables: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @classmethod
    def from_process(cls) -> BaseEnvironment:
        """Capture the current process environment."""
        return cls(dict(os.environ))

    def __contains__(self, key: object) -> bool:
        return key in self.variables

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.variables.get(key, default)


@dataclass(frozen=True)
class SessionEnvironment:
    """Environment and transport flags for one git invocation."""

    ssh_command: str
    variables: Mapping[str, str]
    identity_file: Path | None = None

    @property
    def has_identity(self) -> bool:
        return self.identity_file is not None


def has_ssh_key(path: str | Path) -> bool:
    """Return *True* if a regular file exists at *path*.

    Never raises; an unreadable or missing path simply reports *False*.
    """
    return os.path.isfile(path)


def build_ssh_command(identity_file: str | Path | None = None) -> str:
    """Return the ``GIT_SSH_COMMAND`` value.

    Host-key checking is always disabled.  With *identity_file*, ssh is
    restricted to that single key and ignores any user ssh config.
    """
    parts = ["ssh"]
    for flag, value in BASE_SSH_OPTIONS:
        parts += [flag, value]
    if identity_file is not None:
        parts += [
            "-o", "IdentitiesOnly=yes",
            "-i", shlex.quote(str(identity_file)),
            "-F", "/dev/null",
        ]
    return " ".join(parts)


def build_session_environment(
    key_path: str | Path,
    base: BaseEnvironment,
    committer_name: str = DEFAULT_COMMITTER_NAME,
    committer_email: str = DEFAULT_COMMITTER_EMAIL,
) -> SessionEnvironment:
    """Compute the layered environment for a session rooted next to *key_path*."""
    key_path = Path(key_path)
    identity = key_path if has_ssh_key(key_path) else None
    if identity is None:
        logger.warning("No SSH key set.")

    ssh_command = build_ssh_command(identity)

    variables: dict[str, str] = {
        "GIT_COMMITTER_NAME": committer_name,
        "GIT_COMMITTER_EMAIL": committer_email,
    }
    variables.update(base.variables)
    variables["GIT_SSH_COMMAND"] = ssh_command

    return SessionEnvironment(
        ssh_command=ssh_command,
        variables=MappingProxyType(variables),
        identity_file=identity,
    )


class GitSession:
    """A git handle bound to one working copy and one environment.

    Exposes exactly the primitives the repository facade needs.  Every
    method raises :class:`~contentgit.exceptions.GitError` on failure.
    """

    def __init__(self, path: str | Path, environment: SessionEnvironment, scrubber: Scrubber) -> None:
        self.path = Path(path)
        self.environment = environment
        self._scrubber = scrubber

    def _run(self, *args: str, check: bool = True, timeout: float | None = None) -> GitResult:
        return run_git(
            *args,
            cwd=self.path,
            env=self.environment.variables,
            check=check,
            timeout=timeout,
            scrubber=self._scrubber,
        )

    # -- Revisions ------------------------------------------------------------

    def revparse(self, *args: str) -> str:
        """Return the stripped output of ``git rev-parse``."""
        return self._run("rev-parse", *args).stdout.strip()

    def current_branch(self) -> str:
        """Return the checked-out branch name, including an unborn branch.

        A detached HEAD reports ``HEAD``.
        """
        result = self._run("symbolic-ref", "--quiet", "--short", "HEAD", check=False)
        if result.ok:
            return result.stdout.strip()
        return self.revparse("--abbrev-ref", "HEAD")

    def show(self, revision: str) -> str:
        """Return the raw content of ``git show <revision>``."""
        return self._run("show", revision).stdout

    # -- Index / commits ------------------------------------------------------

    def add(self, files: Sequence[str]) -> GitResult:
        return self._run("add", "--", *files)

    def commit(self, message: str, files: Sequence[str], author: str | None = None) -> GitResult:
        """Commit *files* only, optionally overriding the author."""
        args = ["commit", "-m", message]
        if author:
            args.append(f"--author={author}")
        args += ["--", *files]
        return self._run(*args)

    def checkout(self, *paths: str) -> GitResult:
        """Discard working-copy modifications to *paths*."""
        return self._run("checkout", "--", *paths)

    # -- Remotes --------------------------------------------------------------

    def push(self, *args: str, timeout: float | None = None) -> GitResult:
        return self._run("push", *args, timeout=timeout)

    def get_remotes(self) -> list[Remote]:
        return parse_remotes(self._run("remote", "-v").stdout)

    def remove_remote(self, name: str) -> GitResult:
        return self._run("remote", "remove", name)

    def add_remote(self, name: str, url: str) -> GitResult:
        return self._run("remote", "add", name, url)


class SessionFactory:
    """Build configured :class:`GitSession` objects.

    Parameters
    ----------
    base_env:
        Environment forwarded to git.  Defaults to a snapshot of the
        process environment taken now.
    committer_name, committer_email:
        Fallback committer identity, used only when *base_env* does not
        already define ``GIT_COMMITTER_NAME`` / ``GIT_COMMITTER_EMAIL``.
    """

    def __init__(
        self,
        base_env: BaseEnvironment | None = None,
        committer_name: str = DEFAULT_COMMITTER_NAME,
        committer_email: str = DEFAULT_COMMITTER_EMAIL,
    ) -> None:
        self.base_env = base_env if base_env is not None else BaseEnvironment.from_process()
        self.committer_name = committer_name
        self.committer_email = committer_email

    @staticmethod
    def ssh_key_path(root: str | Path) -> Path:
        """Fixed key location for a working copy, never under its content dir."""
        return Path(root) / SSH_KEY_RELATIVE_PATH

    def environment(self, root: str | Path) -> SessionEnvironment:
        return build_session_environment(
            self.ssh_key_path(root),
            self.base_env,
            committer_name=self.committer_name,
            committer_email=self.committer_email,
        )

    def open(self, root: str | Path) -> GitSession:
        """Return a session for the working copy at *root*."""
        key_path = self.ssh_key_path(root)
        return GitSession(
            root,
            self.environment(root),
            Scrubber((str(key_path), shlex.quote(str(key_path)))),
        )
