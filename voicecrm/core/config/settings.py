# File: voicecrm/core/config/settings.py

import os
from pathlib import Path


class Settings:
    # --- Paths ---
    # voicecrm/core/config/settings.py -> voicecrm/core/config -> voicecrm/core -> voicecrm -> ROOT
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = Path(os.getenv("VOICECRM_DATA_DIR", str(BASE_DIR / "data")))
    RECORDINGS_DIR: Path = DATA_DIR / "recordings"

    # --- Database ---
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "password")
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_PORT: str = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "voicecrm_db")

    @property
    def DATABASE_URL(self) -> str:
        explicit = os.getenv("DATABASE_URL")
        if explicit:
            return explicit

        # Only fall back to SQLite if explicitly requested.
        if os.getenv("USE_SQLITE", "false").lower() == "true":
            return os.getenv("SQLITE_URL", "sqlite:///./voicecrm.db")

        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("VOICECRM_LOG_LEVEL", "INFO")

    # --- API ---
    # Comma separated "token:user_id" pairs. A bare token maps to the default user.
    API_TOKENS: str = os.getenv("VOICECRM_API_TOKENS", "")
    DEFAULT_USER_ID: str = os.getenv("VOICECRM_DEFAULT_USER_ID", "admin")
    MAX_UPLOAD_BYTES: int = int(os.getenv("VOICECRM_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    API_HOST: str = os.getenv("VOICECRM_API_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("VOICECRM_API_PORT", "8000"))

    # --- Audio Capture ---
    CAPTURE_SAMPLE_RATE_HZ: int = int(os.getenv("CAPTURE_SAMPLE_RATE_HZ", "44100"))
    CAPTURE_CHANNELS: int = int(os.getenv("CAPTURE_CHANNELS", "1"))
    CAPTURE_DEVICE_NAME: str = os.getenv("CAPTURE_DEVICE_NAME", "")

    # --- Transcription ---
    # "remote", "whisper" or "none"
    TRANSCRIPTION_BACKEND: str = os.getenv("TRANSCRIPTION_BACKEND", "remote")
    TRANSCRIPTION_API_URL: str = os.getenv("TRANSCRIPTION_API_URL", "https://api.openai.com/v1/audio/transcriptions")
    TRANSCRIPTION_API_KEY: str = os.getenv("TRANSCRIPTION_API_KEY", os.getenv("OPENAI_API_KEY", ""))
    TRANSCRIPTION_MODEL: str = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")
    TRANSCRIPTION_LANGUAGE: str = os.getenv("TRANSCRIPTION_LANGUAGE", "th")
    TRANSCRIPTION_TIMEOUT_SECONDS: float = float(os.getenv("TRANSCRIPTION_TIMEOUT_SECONDS", "30"))
    FALLBACK_CONFIDENCE: float = 0.85

    # --- Model Configuration ---
    WHISPER_MODEL_NAME: str = os.getenv("WHISPER_MODEL_NAME", "large-v3")
    WHISPER_DEVICE: str = "cuda" if os.getenv("USE_CUDA", "false").lower() == "true" else "cpu"
    ENHANCER_ENABLED: bool = os.getenv("ENHANCER_ENABLED", "false").lower() == "true"
    ENHANCER_MODEL_PATH: str = os.getenv("ENHANCER_MODEL_PATH", "Qwen/Qwen2.5-7B-Instruct")

    # --- Review Policy ---
    # Classifications at or above this bar skip the pending-review queue.
    CONFIRMATION_BAR: float = float(os.getenv("CONFIRMATION_BAR", "0.75"))
    DEFAULT_CATEGORY: str = os.getenv("DEFAULT_CATEGORY", "qualification")

    def api_token_map(self) -> dict:
        """Parses API_TOKENS into {token: user_id}."""
        tokens = {}
        for entry in self.API_TOKENS.split(","):
            entry = entry.strip()
            if not entry:
                continue
            token, _, user_id = entry.partition(":")
            tokens[token] = user_id or self.DEFAULT_USER_ID
        return tokens

    def ensure_dirs(self):
        """Creates necessary data directories if they don't exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.RECORDINGS_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
