"""TOML configuration loader."""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigurationError

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    index: int = 0


@dataclass
class OpenAIVisionConfig:
    api_key: str = ""
    model: str = "gpt-4o-mini"


@dataclass
class ClaudeVisionConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiVisionConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class VisionConfig:
    backend: str = "openai"
    max_tokens: int = 1000
    openai: OpenAIVisionConfig = field(default_factory=OpenAIVisionConfig)
    claude: ClaudeVisionConfig = field(default_factory=ClaudeVisionConfig)
    gemini: GeminiVisionConfig = field(default_factory=GeminiVisionConfig)


@dataclass
class SheetsConfig:
    spreadsheet_id: str = ""
    sheet_range: str = "Sheet1!A:E"
    client_email: str = ""
    private_key: str = ""
    credentials_path: str = ""
    max_attempts: int = 3
    backoff_seconds: float = 1.0
    include_summary_row: bool = False
    value_input_option: str = "USER_ENTERED"


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000"]
    )


@dataclass
class AppConfig:
    camera: CameraConfig = field(default_factory=CameraConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    sheets: SheetsConfig = field(default_factory=SheetsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def normalize_private_key(value: str) -> str:
    """Turn literal ``\\n`` sequences (as stored in .env files) into newlines."""
    return value.replace("\\n", "\n")


def _read_service_account_file(path: str) -> tuple[str, str]:
    """Return (client_email, private_key) from a service-account JSON file."""
    p = Path(path).expanduser()
    if not p.exists():
        raise ConfigurationError(f"Service account file not found: {p}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Service account file is unreadable: {p}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Service account file is not a JSON object: {p}")
    return data.get("client_email", ""), data.get("private_key", "")


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    Credentials can be provided via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)
        else:
            logger.warning("Config file %s not found; using defaults", p)

    cam = raw.get("camera", {})
    vis = raw.get("vision", {})
    sht = raw.get("sheets", {})
    srv = raw.get("server", {})

    openai_cfg = vis.get("openai", {})
    claude_cfg = vis.get("claude", {})
    gemini_cfg = vis.get("gemini", {})

    # Resolve API keys: config file → environment variable
    openai_api_key = openai_cfg.get("api_key", "") or os.environ.get(
        "OPENAI_API_KEY", ""
    )
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )

    spreadsheet_id = sht.get("spreadsheet_id", "") or os.environ.get(
        "GOOGLE_SHEETS_ID", ""
    )
    credentials_path = sht.get("credentials_path", "") or os.environ.get(
        "GOOGLE_SERVICE_ACCOUNT_FILE", ""
    )
    client_email = sht.get("client_email", "") or os.environ.get(
        "GOOGLE_SERVICE_ACCOUNT_EMAIL", ""
    )
    private_key = sht.get("private_key", "") or os.environ.get(
        "GOOGLE_PRIVATE_KEY", ""
    )

    # An explicit email/key pair wins over the JSON file
    if credentials_path and not (client_email and private_key):
        file_email, file_key = _read_service_account_file(credentials_path)
        client_email = client_email or file_email
        private_key = private_key or file_key

    return AppConfig(
        camera=CameraConfig(index=cam.get("index", 0)),
        vision=VisionConfig(
            backend=vis.get("backend", "openai"),
            max_tokens=vis.get("max_tokens", 1000),
            openai=OpenAIVisionConfig(
                api_key=openai_api_key,
                model=openai_cfg.get("model", "gpt-4o-mini"),
            ),
            claude=ClaudeVisionConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
            gemini=GeminiVisionConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.0-flash"),
            ),
        ),
        sheets=SheetsConfig(
            spreadsheet_id=spreadsheet_id,
            sheet_range=sht.get("sheet_range", "Sheet1!A:E"),
            client_email=client_email,
            private_key=normalize_private_key(private_key),
            credentials_path=credentials_path,
            max_attempts=sht.get("max_attempts", 3),
            backoff_seconds=sht.get("backoff_seconds", 1.0),
            include_summary_row=sht.get("include_summary_row", False),
            value_input_option=sht.get("value_input_option", "USER_ENTERED"),
        ),
        server=ServerConfig(
            host=srv.get("host", "127.0.0.1"),
            port=srv.get("port", 8000),
            cors_origins=srv.get("cors_origins", ["http://localhost:3000"]),
        ),
    )
