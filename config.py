"""Configuration management for the translation pipeline."""
import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _json_object(raw: Optional[str], name: str) -> Optional[Dict[str, str]]:
    """Parse an environment variable holding a JSON object; unset or blank gives None."""
    if not raw or not raw.strip():
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"{name} is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise ValueError(f"{name} must be a JSON object, got {type(value).__name__}")
    return value


@dataclass
class Config:
    """Configuration loaded from environment variables."""

    # Translation provider: "openai" (generic chat completions) or "dashscope"
    provider: str = "openai"
    api_key: str = ""
    api_url: str = "https://api.openai.com/v1/chat/completions"
    model: Optional[str] = None  # None selects the provider's default model

    # Languages (the dashscope prompt pins the source language)
    source_language: str = "Chinese"
    target_language: str = "English"

    # Provider call settings
    request_timeout: float = 300.0
    translation_concurrency: int = 1
    # Extra "translation_options" object for the dashscope provider
    translation_options: Optional[Dict[str, str]] = None

    # File paths
    upload_dir: str = "./uploads"
    output_dir: str = "./outputs"

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            provider=os.getenv("TRANSLATOR_PROVIDER", "openai"),
            api_key=os.getenv("TRANSLATOR_API_KEY", ""),
            api_url=os.getenv("TRANSLATOR_API_URL", "https://api.openai.com/v1/chat/completions"),
            model=os.getenv("TRANSLATOR_MODEL") or None,
            source_language=os.getenv("SOURCE_LANGUAGE", "Chinese"),
            target_language=os.getenv("TARGET_LANGUAGE", "English"),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "300")),
            translation_concurrency=int(os.getenv("TRANSLATION_CONCURRENCY", "1")),
            translation_options=_json_object(os.getenv("TRANSLATION_OPTIONS"), "TRANSLATION_OPTIONS"),
            upload_dir=os.getenv("UPLOAD_DIR", "./uploads"),
            output_dir=os.getenv("OUTPUT_DIR", "./outputs"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def ensure_directories(self) -> None:
        """Create upload and output directories if they don't exist."""
        os.makedirs(self.upload_dir, exist_ok=True)
        os.makedirs(self.output_dir, exist_ok=True)


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    else:
        root.setLevel(level.upper())
