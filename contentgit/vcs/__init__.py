"""Version control layer: git sessions with SSH transport, and the repo facade.

Git is the single source of truth for content; this package only decides
*how* content changes reach it.
"""

from contentgit.vcs.repo import CommitRequest, Repo
from contentgit.vcs.session import GitSession, SessionFactory

__all__ = ["CommitRequest", "GitSession", "Repo", "SessionFactory"]
