# app/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


KNOWN_MEDIA_PROVIDERS = {
    "instagram": (
        "instagram_rapidapi", "instadownloader", "snapinsta",
        "instagram_web_avatar", "instagram_api_avatar",
    ),
    "tiktok": ("tiktok_rapidapi", "tikwm", "snaptik"),
}
KNOWN_PROFILE_PROVIDERS = ("instagram_web", "instagram_api")


def parse_provider_list(raw: str) -> list[str]:
    """Split a comma-separated provider list, keeping order and dropping blanks/duplicates."""
    names: list[str] = []
    for part in raw.split(","):
        name = part.strip().lower()
        if name and name not in names:
            names.append(name)
    return names


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"

    # HTTP surface
    host: str = "0.0.0.0"
    port: int = 3003
    allowed_origins: list[str] = ["*"]
    enable_request_logging: bool = True
    max_url_length: int = 2048

    # Fallback chain
    provider_timeout_seconds: float = 8.0  # Per-adapter bound; aggregate budget is the sum
    orchestrator_mode: Literal["sequential", "concurrent"] = "sequential"

    # Provider priority order (comma-separated, most reliable first)
    instagram_providers: str = (
        "instagram_rapidapi,instadownloader,snapinsta,instagram_web_avatar,instagram_api_avatar"
    )
    tiktok_providers: str = "tiktok_rapidapi,tikwm,snaptik"
    profile_providers: str = "instagram_web,instagram_api"

    # RapidAPI (adapters using it are skipped when no key is set)
    rapidapi_key: str | None = None
    rapidapi_instagram_host: str = "instagram-downloader-download-instagram-videos-stories1.p.rapidapi.com"
    rapidapi_tiktok_host: str = "tiktok-video-no-watermark2.p.rapidapi.com"

    # Outbound requests
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    instagram_app_id: str = "936619743392459"  # Public web client id expected by web_profile_info

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    @property
    def is_staging(self) -> bool:
        return self.app_env == "staging"

    @property
    def rapidapi_enabled(self) -> bool:
        return bool(self.rapidapi_key)

    def media_provider_order(self, platform: str) -> list[str]:
        """Configured provider names for a platform, in priority order"""
        raw = {
            "instagram": self.instagram_providers,
            "tiktok": self.tiktok_providers,
        }.get(platform, "")
        return parse_provider_list(raw)

    def profile_provider_order(self) -> list[str]:
        return parse_provider_list(self.profile_providers)


def warn_on_risky_config(s: "Settings") -> list[str]:
    warnings: list[str] = []

    # --- Security ---
    if s.is_production and s.allowed_origins == ["*"]:
        warnings.append("prod: allowed_origins=['*'] (CORS is wide open).")

    # --- Provider configuration ---
    rapidapi_names = {"instagram_rapidapi", "tiktok_rapidapi"}
    for platform, known in KNOWN_MEDIA_PROVIDERS.items():
        order = s.media_provider_order(platform)
        if not order:
            warnings.append(f"{platform}: no providers configured (every request will be notFound).")
        for name in order:
            if name not in known:
                warnings.append(f"{platform}: unknown provider '{name}' will be ignored.")
            elif name in rapidapi_names and not s.rapidapi_enabled:
                warnings.append(f"{platform}: provider '{name}' needs rapidapi_key and will be skipped.")

    for name in s.profile_provider_order():
        if name not in KNOWN_PROFILE_PROVIDERS:
            warnings.append(f"profile: unknown provider '{name}' will be ignored.")

    # --- Timeouts ---
    if s.provider_timeout_seconds <= 0:
        warnings.append("provider_timeout_seconds must be positive; requests will fail immediately.")
    elif s.provider_timeout_seconds > 30:
        warnings.append(
            f"provider_timeout_seconds={s.provider_timeout_seconds} is high; "
            "callers may wait several times this long."
        )

    if s.is_production and s.log_level.upper() == "DEBUG":
        warnings.append("prod: LOG_LEVEL=DEBUG logs upstream response fragments.")

    return warnings


def validate_or_warn(s: "Settings") -> list[str]:
    """
    Hard-fail on settings that make the gateway useless; warn on the rest.

    In prod an empty Instagram provider chain is fatal too.
    Returns the warnings so the caller can route them through its logger.
    """
    if s.provider_timeout_seconds <= 0:
        raise RuntimeError("provider_timeout_seconds must be positive")

    if s.is_production:
        known = KNOWN_MEDIA_PROVIDERS["instagram"]
        usable = [n for n in s.media_provider_order("instagram") if n in known]
        if not s.rapidapi_enabled:
            usable = [n for n in usable if n != "instagram_rapidapi"]
        if not usable:
            raise RuntimeError("No usable Instagram providers configured for production")

    return warn_on_risky_config(s)
