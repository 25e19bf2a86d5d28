"""ConfigManager: environment profiles, settings model, logging setup."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, field_validator

from contentgit.config import DEFAULT_COMMITTER_EMAIL, DEFAULT_COMMITTER_NAME

logger = logging.getLogger(__name__)

# All known configuration keys with defaults
_CONFIG_KEYS: dict[str, dict[str, Any]] = {
    "CONTENTGIT_ENV": {"default": "development", "description": "Environment profile"},
    "CONTENTGIT_REPO_PATH": {"default": ".", "description": "Working-copy root"},
    "CONTENTGIT_CONTENT_DIR": {"default": "", "description": "Content subdirectory, relative to the root"},
    "CONTENTGIT_COMMITTER_NAME": {"default": DEFAULT_COMMITTER_NAME, "description": "Fallback committer name"},
    "CONTENTGIT_COMMITTER_EMAIL": {"default": DEFAULT_COMMITTER_EMAIL, "description": "Fallback committer email"},
    "CONTENTGIT_PUSH_TIMEOUT": {"default": "", "description": "Push timeout in seconds (empty = unlimited)"},
    "CONTENTGIT_LOG_LEVEL": {"default": "INFO", "description": "Logging level"},
}

_PROFILES: dict[str, dict[str, str]] = {
    "development": {
        "CONTENTGIT_ENV": "development",
        "CONTENTGIT_LOG_LEVEL": "DEBUG",
    },
    "production": {
        "CONTENTGIT_ENV": "production",
        "CONTENTGIT_LOG_LEVEL": "WARNING",
        "CONTENTGIT_PUSH_TIMEOUT": "120",
    },
    "testing": {
        "CONTENTGIT_ENV": "testing",
        "CONTENTGIT_LOG_LEVEL": "DEBUG",
        "CONTENTGIT_PUSH_TIMEOUT": "30",
    },
}


class RepoSettings(BaseModel):
    """Typed view of the merged configuration."""

    env: str = "development"
    repo_path: Path = Path(".")
    content_dir: str = ""
    committer_name: str = DEFAULT_COMMITTER_NAME
    committer_email: str = DEFAULT_COMMITTER_EMAIL
    push_timeout: float | None = None
    log_level: str = "INFO"

    @field_validator("push_timeout", mode="before")
    @classmethod
    def _empty_timeout(cls, value: Any) -> Any:
        if value in ("", None):
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_config(cls, config: Mapping[str, str]) -> RepoSettings:
        prefix = "CONTENTGIT_"
        return cls(**{
            key[len(prefix):].lower(): value
            for key, value in config.items()
            if key.startswith(prefix) and key in _CONFIG_KEYS
        })


class ConfigManager:
    """Manage contentgit configuration across environments.

    Parameters
    ----------
    environ:
        Environment consulted for profile selection and final overrides.
        Defaults to :data:`os.environ`.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def generate_env_template(self, project_path: str | Path) -> Path:
        """Write ``.env.example`` listing every key with its default."""
        env_path = Path(project_path) / ".env.example"
        blocks = [
            f"# {info['description']}\n{key}={info['default']}\n"
            for key, info in _CONFIG_KEYS.items()
        ]
        header = "# contentgit settings; copy to .env and adjust\n\n"
        env_path.write_text(header + "\n".join(blocks), encoding="utf-8")
        return env_path

    def load_config(self, project_path: str | Path) -> dict[str, str]:
        """Merge defaults, the active profile, ``.contentgit/config.json``,
        ``.env`` and the environment, later sources winning.
        """
        root = Path(project_path)
        config = {key: str(info["default"]) for key, info in _CONFIG_KEYS.items()}

        profile = self._environ.get("CONTENTGIT_ENV", config["CONTENTGIT_ENV"])
        config.update(_PROFILES.get(profile, {}))
        config.update(self._read_json(root / ".contentgit" / "config.json"))
        config.update(self._read_dotenv(root / ".env"))
        config.update({key: self._environ[key] for key in _CONFIG_KEYS if key in self._environ})
        return config

    @staticmethod
    def _read_json(path: Path) -> dict[str, str]:
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Could not read %s", path, exc_info=True)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    @staticmethod
    def _read_dotenv(path: Path) -> dict[str, str]:
        if not path.is_file():
            return {}
        values: dict[str, str] = {}
        for raw in path.read_text(encoding="utf-8").splitlines():
            line = raw.strip()
            if line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            values[key.strip()] = value.strip().strip("'\"")
        return values

    def load_settings(self, project_path: str | Path) -> RepoSettings:
        """Return the merged configuration as :class:`RepoSettings`.

        A relative ``CONTENTGIT_REPO_PATH`` is resolved against *project_path*.
        """
        settings = RepoSettings.from_config(self.load_config(project_path))
        if not settings.repo_path.is_absolute():
            settings.repo_path = (Path(project_path) / settings.repo_path).resolve()
        return settings


def load_settings(project_path: str | Path = ".") -> RepoSettings:
    """Shortcut for ``ConfigManager().load_settings(project_path)``."""
    return ConfigManager().load_settings(project_path)


def configure_logging(level: str | int = "INFO") -> None:
    """Apply *level* to the root logger, installing a stderr handler if none exists."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(level)
