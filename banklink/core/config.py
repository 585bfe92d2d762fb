"""
Configuration Management

Centralized configuration using Pydantic Settings.
All settings loaded from environment variables (prefix BANKLINK_) with sensible defaults.

The flow code never reads settings directly: it receives an immutable
BanklinkConfig built from them at call time.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SITE_URL = "https://ibanka.seb.lv/ipc/epakindex.jsp"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BANKLINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================
    # Key Material
    # ============================================================
    private_key_file: Optional[str] = Field(
        None, description="PEM file with our RSA private key (signs outbound requests)"
    )
    public_key_file: Optional[str] = Field(
        None, description="Bank's X.509 certificate (verifies callbacks)"
    )

    # ============================================================
    # Protocol Identifiers
    # ============================================================
    snd_id: Optional[str] = Field(None, description="Sender identifier assigned by the bank (IB_SND_ID)")
    rec_id: Optional[str] = Field(None, description="Receiver identifier assigned by the bank (IB_REC_ID)")
    site: str = Field(DEFAULT_SITE_URL, description="Bank authentication page (form action URL)")
    lang: str = Field("LAT", description="Language code sent as IB_LANG")

    # ============================================================
    # Wire Format
    # ============================================================
    charset: str = Field("utf-8", description="Charset used to turn the signature input into bytes")
    signature_line_width: int = Field(
        60,
        ge=0,
        description="Base64 line width for IB_CRC (0 = single line, 60 = classic encode64 wrapping)",
    )

    # ============================================================
    # HTTP Surface
    # ============================================================
    path_prefix: str = Field("/auth", description="Mount point of the auth routes")
    form_title: str = Field("Please wait...", description="Title of the redirect form page")
    form_button_label: str = Field(
        "Click here if you are not redirected automatically",
        description="Label of the manual submit button",
    )

    # ============================================================
    # Logging Configuration
    # ============================================================
    log_level: str = Field("INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string"
    )


@dataclass(frozen=True)
class BanklinkConfig:
    """
    Immutable per-strategy configuration.

    Attributes:
        snd_id: Our sender identifier
        rec_id: Our receiver identifier (informational, the bank echoes it back)
        private_key_file: Path to the signing key
        public_key_file: Path to the bank certificate
        site: Bank authentication URL (form action)
        lang: Value of IB_LANG
        charset: Charset of the signed byte string
        signature_line_width: Base64 wrapping for IB_CRC
    """
    snd_id: str
    rec_id: str = ""
    private_key_file: Optional[str] = None
    public_key_file: Optional[str] = None
    site: str = DEFAULT_SITE_URL
    lang: str = "LAT"
    charset: str = "utf-8"
    signature_line_width: int = 60

    @classmethod
    def from_settings(cls, settings: Settings) -> "BanklinkConfig":
        return cls(
            snd_id=settings.snd_id or "",
            rec_id=settings.rec_id or "",
            private_key_file=settings.private_key_file,
            public_key_file=settings.public_key_file,
            site=settings.site,
            lang=settings.lang,
            charset=settings.charset,
            signature_line_width=settings.signature_line_width,
        )


def configure_logging(settings: Settings) -> None:
    """Apply log level and format from settings to the root logger."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format,
    )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings (singleton).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
