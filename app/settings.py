# app/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional
from pathlib import Path

# =============================================================================
# Vision Model Config (nested)
# =============================================================================
class VisionConfig(BaseSettings):
    """Configuration for the external vision/language model"""

    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    api_key: str = ""
    default_model: str = "gemini-2.5-flash"
    structured_model: str = "gemini-3-pro-preview"  # PRIVACY / SEARCH
    timeout: float = 60.0
    max_retries: int = 2

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator('max_retries')
    @classmethod
    def validate_retries(cls, v):
        if v < 1:
            raise ValueError("max_retries must be at least 1")
        return v

    model_config = SettingsConfigDict(
        env_prefix="VISION__",   # map .env variables like VISION__API_KEY
        extra="ignore"
    )


# =============================================================================
# Frame Capture Config (nested)
# =============================================================================
class CaptureConfig(BaseSettings):
    """Configuration for frame sampling"""

    frame_count: int = 3
    interval_ms: int = 400
    max_width: int = 640
    jpeg_quality: int = 60

    @field_validator('frame_count', 'max_width')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v

    @field_validator('interval_ms')
    @classmethod
    def validate_interval(cls, v):
        if v < 0:
            raise ValueError("Interval cannot be negative")
        return v

    @field_validator('jpeg_quality')
    @classmethod
    def validate_quality(cls, v):
        if not 1 <= v <= 100:
            raise ValueError("JPEG quality must be between 1 and 100")
        return v

    model_config = SettingsConfigDict(
        env_prefix="CAPTURE__",
        extra="ignore"
    )


# =============================================================================
# Escalation Config (nested)
# =============================================================================
class EscalationConfig(BaseSettings):
    """Configuration for the OTP step-up flow"""

    otp_code: Optional[str] = None  # fixed code for demos; random when unset
    otp_length: int = 4
    default_duration_minutes: int = 120
    resend_cooldown_seconds: float = 30.0

    @field_validator('otp_code')
    @classmethod
    def validate_otp_code(cls, v):
        if v is not None and not v.isdigit():
            raise ValueError("OTP code must be numeric")
        return v

    @field_validator('otp_length', 'default_duration_minutes')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v

    model_config = SettingsConfigDict(
        env_prefix="ESCALATION__",
        extra="ignore"
    )


# =============================================================================
# Main Application Settings
# =============================================================================
class Settings(BaseSettings):
    """Application settings with validation"""

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = "CameraShare.Core"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------
    prometheus_port: int = 9090
    enable_metrics: bool = False

    log_format: str = "json"  # json, console
    log_file_path: Optional[Path] = None
    log_max_size: str = "100MB"
    log_backup_count: int = 5

    # -------------------------------------------------------------------------
    # Nested Configs
    # -------------------------------------------------------------------------
    vision: VisionConfig = VisionConfig()
    capture: CaptureConfig = CaptureConfig()
    escalation: EscalationConfig = EscalationConfig()

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        valid_formats = ['json', 'console']
        if v not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v

    @field_validator('log_file_path')
    @classmethod
    def validate_log_path(cls, v):
        if v is not None:
            Path(v).parent.mkdir(parents=True, exist_ok=True)
        return v

    # -------------------------------------------------------------------------
    # Pydantic Settings Config
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
