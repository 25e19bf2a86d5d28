"""SSH key material: accepted, decoded and persisted, never echoed."""

from __future__ import annotations

import base64
import binascii
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, SecretStr

from contentgit.config import SSH_KEY_MODE
from contentgit.exceptions import CredentialError


class SshCredential(BaseModel):
    """A base64-encoded private key supplied at runtime.

    The value is held as a :class:`~pydantic.SecretStr`, so ``repr``,
    ``str`` and ``model_dump`` show a mask instead of the key.
    """

    encoded: SecretStr

    @classmethod
    def from_base64(cls, value: str) -> SshCredential:
        return cls(encoded=SecretStr(value))

    def decode(self) -> bytes:
        """Return the raw key bytes.

        Raises :class:`CredentialError` (without the input) if the value is
        not valid base64.
        """
        raw = "".join(self.encoded.get_secret_value().split())
        try:
            return base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError):
            raise CredentialError("SSH key is not valid base64") from None


def write_private_key(path: str | Path, credential: SshCredential) -> Path:
    """Write *credential* to *path* with owner-only permissions.

    Creates intermediate directories and overwrites any existing key.
    Returns the key path.
    """
    path = Path(path)
    data = credential.decode()
    path.parent.mkdir(parents=True, exist_ok=True)

    # key bytes only land in a 0600 file; os.replace swaps out any symlink at path
    fd, tmp_name = tempfile.mkstemp(prefix=".key-", dir=path.parent)
    try:
        os.fchmod(fd, SSH_KEY_MODE)
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    return path
