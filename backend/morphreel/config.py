"""Application configuration using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


def split_csv(value: str) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Morphreel application settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "Morphreel"
    DEBUG: bool = False
    # Per-request diagnostics (payload shapes, state transitions). Never
    # includes credentials or image bytes.
    LOG_PAYLOAD_DIAGNOSTICS: bool = False
    CORS_ORIGINS: str = "*"

    # --- Prompt provider (vision → text) ---
    PROMPT_API_URL: str = "https://api.anthropic.com/v1/messages"
    PROMPT_MODEL: str = "claude-3-5-sonnet-latest"
    PROMPT_MAX_TOKENS: int = 1000
    PROMPT_AUTH_STYLE: str = "x-api-key"
    PROMPT_API_VERSION: str = "2023-06-01"
    PROMPT_CREDENTIAL_PREFIX: str = "sk-"
    PROMPT_RESPONSE_PATHS: str = "content.0.text"
    PROMPT_TIMEOUT_SECONDS: float = 30.0
    PROMPT_MAX_ATTEMPTS: int = 1
    PROMPT_INSTRUCTION: str = (
        "I have two photographs of the same subject taken at different times, "
        "and I want to create a meaningful video transition between them. "
        "Analyze both images carefully and write a detailed, emotionally "
        "resonant prompt for an AI video generation model. Focus on:\n\n"
        "1. Physical changes between the two moments\n"
        "2. Emotional expression visible in each image\n"
        "3. Environmental changes or constants\n"
        "4. Transition elements that highlight the passage of time\n"
        "5. Cinematic techniques that enhance the emotional impact\n\n"
        "Reply with the prompt only."
    )

    # --- Video provider (image(s) + prompt → video) ---
    VIDEO_TRANSITION_API_URL: str = "https://fal.run/fal-ai/vidu/start-end-to-video"
    VIDEO_SINGLE_API_URL: str = "https://fal.run/fal-ai/vidu/image-to-video"
    VIDEO_AUTH_STYLE: str = "key"
    VIDEO_CREDENTIAL_PREFIX: str = ""
    VIDEO_RESPONSE_PATHS: str = "video.url,video_url,url"
    # Video models routinely take several minutes; keep this above the
    # provider's typical latency and below any front proxy's limit.
    VIDEO_TIMEOUT_SECONDS: float = 360.0
    VIDEO_MAX_IMAGES: int = 2
    VIDEO_REQUIRE_PROMPT: bool = False
    VIDEO_DEFAULT_PROMPT: str = (
        "A smooth cinematic progression between the two moments, "
        "with natural morphing and subtle camera movement"
    )
    VIDEO_DEFAULT_DURATION: int = 5
    VIDEO_DEFAULT_ASPECT_RATIO: str = "16:9"
    VIDEO_MAX_ATTEMPTS: int = 1

    # --- Shared ---
    RETRY_BACKOFF_SECONDS: float = 3.0
    ALLOWED_MEDIA_TYPES: str = "image/jpeg,image/png,image/jpg"

    # --- Health ---
    HEALTH_DNS_CHECK: bool = True
    HEALTH_DNS_TIMEOUT_SECONDS: float = 3.0

    @property
    def allowed_media_types(self) -> list[str]:
        return split_csv(self.ALLOWED_MEDIA_TYPES)

    @property
    def cors_origins(self) -> list[str]:
        return split_csv(self.CORS_ORIGINS)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()
