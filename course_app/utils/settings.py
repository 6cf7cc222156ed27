"""Runtime settings read from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from course_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from course_app.constants.playback_constants import DEFAULT_SEEK_TOLERANCE_SECONDS

ENV_DATA_PATH = "COURSEQT_DATA_PATH"
ENV_SYNC_URL = "COURSEQT_SYNC_URL"
ENV_HOST = "COURSEQT_HOST"
ENV_PORT = "COURSEQT_PORT"
ENV_SEEK_TOLERANCE = "COURSEQT_SEEK_TOLERANCE"

DEFAULT_DATA_PATH = Path.home() / ".courseqt" / "course_data.json"


@dataclass(slots=True)
class AppSettings:
    """Deployment-specific values. Course rules live in ``course_app.constants``."""

    data_path: Path = DEFAULT_DATA_PATH
    sync_url: str | None = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    seek_tolerance: float = DEFAULT_SEEK_TOLERANCE_SECONDS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, dotenv_path: Path | None = None) -> "AppSettings":
        """Build settings from ``environ`` (defaults to ``os.environ`` after loading .env).

        Raises:
            ValueError: a numeric variable does not parse or is out of range.
        """
        if environ is None:
            load_dotenv(dotenv_path=dotenv_path)
            environ = os.environ

        port = _parse_number(environ, ENV_PORT, int, DEFAULT_PORT)
        if not 0 < port < 65536:
            raise ValueError(f"{ENV_PORT} must be between 1 and 65535, got {port}.")
        tolerance = _parse_number(environ, ENV_SEEK_TOLERANCE, float, DEFAULT_SEEK_TOLERANCE_SECONDS)
        if tolerance < 0:
            raise ValueError(f"{ENV_SEEK_TOLERANCE} cannot be negative.")

        data_path = environ.get(ENV_DATA_PATH, "").strip()
        return cls(
            data_path=Path(data_path).expanduser() if data_path else DEFAULT_DATA_PATH,
            sync_url=environ.get(ENV_SYNC_URL, "").strip() or None,
            host=environ.get(ENV_HOST, "").strip() or DEFAULT_HOST,
            port=port,
            seek_tolerance=tolerance,
        )


def _parse_number(environ: Mapping[str, str], name: str, kind: type, default):
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return kind(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}.") from exc
