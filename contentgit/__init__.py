"""contentgit: git-backed persistence for headless content management."""

__version__ = "1.0.0"

from contentgit.exceptions import (
    ContentGitError,
    CredentialError,
    GitError,
    GitTimeoutError,
)
from contentgit.settings import ConfigManager, RepoSettings, load_settings
from contentgit.vcs.credentials import SshCredential
from contentgit.vcs.remotes import Remote, to_ssh_url
from contentgit.vcs.repo import CommitRequest, Repo
from contentgit.vcs.session import BaseEnvironment, GitSession, SessionFactory

__all__ = [
    "__version__",
    # Facade
    "Repo",
    "CommitRequest",
    # Session
    "BaseEnvironment",
    "GitSession",
    "SessionFactory",
    # Remotes / credentials
    "Remote",
    "SshCredential",
    "to_ssh_url",
    # Settings
    "ConfigManager",
    "RepoSettings",
    "load_settings",
    # Errors
    "ContentGitError",
    "CredentialError",
    "GitError",
    "GitTimeoutError",
]
