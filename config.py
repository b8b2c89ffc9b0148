from pydantic_settings import BaseSettings
from pydantic import validator
from typing import Optional


class Settings(BaseSettings):
    # API Keys
    # Used when the host environment has not selected a credential
    google_api_key: Optional[str] = None

    # Discovery (grounded search)
    discovery_model: str = "gemini-3-flash-preview"

    # Script rewriting
    script_model: str = "gemini-3-pro-preview"
    script_thinking_budget: int = 1024

    # Voiceover Settings
    tts_model: str = "gemini-2.5-flash-preview-tts"
    tts_voice_name: str = "Kore"
    tts_sample_rate: int = 24000  # Hz
    tts_channels: int = 1
    tts_bit_depth: int = 16

    # Thumbnail Settings
    image_model: str = "gemini-2.5-flash-image"
    image_aspect_ratio: str = "16:9"

    # Background Video Settings
    video_model: str = "veo-3.1-fast-generate-preview"
    video_resolution: str = "720p"
    video_aspect_ratio: str = "16:9"
    video_count: int = 1
    video_snippet_chars: int = 100  # script characters quoted in the video prompt
    video_poll_interval: float = 5.0  # seconds
    video_poll_max_attempts: Optional[int] = 120  # None or 0 polls forever

    # Download / Publish
    download_timeout: int = 120  # seconds
    publish_delay: float = 3.0  # seconds

    # Script tone used when the caller does not pick one
    default_tone: str = "engaging and suspenseful"

    # Logging
    log_level: str = "INFO"

    @validator('video_poll_interval')
    def validate_poll_interval(cls, v):
        if v < 0:
            raise ValueError('video_poll_interval must be >= 0')
        return v

    @validator('video_snippet_chars')
    def validate_snippet_chars(cls, v):
        if v <= 0:
            raise ValueError('video_snippet_chars must be > 0')
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra fields from environment


def get_settings():
    """Get settings instance with environment variables"""
    return Settings()


settings = get_settings()
