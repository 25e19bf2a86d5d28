"""Remote references and SSH URL normalization."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from pydantic import BaseModel

from contentgit.config import DEFAULT_GIT_HOST


class Remote(BaseModel):
    """A configured git remote as reported by ``git remote -v``."""

    name: str
    fetch_url: str = ""
    push_url: str = ""


def parse_remotes(output: str) -> list[Remote]:
    """Parse ``git remote -v`` output into :class:`Remote` objects.

    Remotes keep the order in which git lists them.
    """
    remotes: dict[str, Remote] = {}
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        name, url = parts[0], parts[1]
        kind = parts[2] if len(parts) > 2 else "(fetch)"
        remote = remotes.setdefault(name, Remote(name=name))
        if kind == "(push)":
            remote.push_url = url
        else:
            remote.fetch_url = url
    return list(remotes.values())


# git@host:owner/repo(.git)
_SCP_LIKE = re.compile(r"^(?:[^@/\s]+@)?(?P<host>[^:/\s]+):(?P<path>[^\s]+)$")


def _ssh_url(host: str, path: str) -> str:
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    segments = [s for s in path.split("/") if s]
    if not host or len(segments) < 2:
        raise ValueError("remote must name a host, an owner and a repository")
    return f"git@{host}:{'/'.join(segments)}.git"


def to_ssh_url(remote: str) -> str:
    """Normalize a remote identifier to ``git@<host>:<owner>/<repo>.git``.

    Accepts HTTP(S) and ``ssh://`` URLs, scp-like ``git@host:owner/repo``,
    ``host/owner/repo`` and bare ``owner/repo`` (assumed on the default
    host).  Credentials embedded in the input are dropped.
    """
    value = remote.strip()
    if not value:
        raise ValueError("remote must not be empty")

    if "://" in value:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https", "ssh", "git", "git+ssh"):
            raise ValueError(f"unsupported remote scheme: {parts.scheme}")
        return _ssh_url(parts.hostname or "", parts.path)

    match = _SCP_LIKE.match(value)
    if match:
        return _ssh_url(match.group("host"), match.group("path"))

    segments = [s for s in value.split("/") if s]
    if len(segments) == 2:
        return _ssh_url(DEFAULT_GIT_HOST, value)
    if len(segments) >= 3:
        return _ssh_url(segments[0], "/".join(segments[1:]))
    raise ValueError("remote must name a host, an owner and a repository")
