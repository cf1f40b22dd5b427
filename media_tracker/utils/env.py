from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def load_env(*, override: bool = False) -> Path | None:
    """Load the first `.env` found (repo root, then CWD) and return its path."""

    repo_root = Path(__file__).resolve().parents[2]
    for path in (repo_root / ".env", Path.cwd() / ".env"):
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
            return path
    return None


def env_str(name: str, default: str | None = None) -> str | None:
    """Stripped value of `name`; blank counts as unset."""

    value = (os.getenv(name) or "").strip()
    return value or default
