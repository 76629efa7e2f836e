from typing import Dict, List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
load_dotenv()  # the only .env read; Settings itself looks at the environment

# Defaults mirror the browser extension's hardcoded lists.
KNOWN_DOMAINS: List[str] = [
    "google.com",
    "microsoft.com",
    "apple.com",
    "amazon.com",
    "paypal.com",
    "facebook.com",
    "twitter.com",
    "linkedin.com",
    "github.com",
    "stackoverflow.com",
]

ABUSED_TLDS: List[str] = [".tk", ".ml", ".ga", ".cf", ".gq", ".xyz", ".top"]

BRAND_NAMES: List[str] = [
    "paypal",
    "amazon",
    "microsoft",
    "google",
    "apple",
    "facebook",
    "netflix",
    "instagram",
    "linkedin",
    "twitter",
    "dropbox",
    "yahoo",
]

SENSITIVE_KEYWORDS: List[str] = [
    "login",
    "verify",
    "account",
    "secure",
    "update",
    "confirm",
    "banking",
    "paypal",
    "amazon",
    "microsoft",
]

SHORTENERS: List[str] = ["bit.ly", "t.co", "tinyurl.com", "goo.gl", "ow.ly", "short.link", "is.gd", "buff.ly"]


class Settings(BaseSettings):
    """
    Engine policy. Every field can be overridden with a LINKGUARD_* env var
    (lists and dicts as JSON) or passed directly, which is what the tests do.
    """
    model_config = SettingsConfigDict(env_prefix="LINKGUARD_", extra="ignore")

    # Cache
    cache_ttl_ms: int = Field(24 * 60 * 60 * 1000, ge=0)
    cache_capacity: int = Field(1000, ge=1)
    cache_eviction_batch: int = Field(100, ge=1)
    sweep_interval_minutes: float = Field(60, gt=0)

    # Scoring
    severity_weights: Dict[str, int] = Field(default_factory=lambda: {"high": 40, "medium": 20, "low": 5})
    danger_threshold: int = 40
    warning_threshold: int = 20

    # Detector policy
    known_domains: List[str] = Field(default_factory=lambda: list(KNOWN_DOMAINS))
    abused_tlds: List[str] = Field(default_factory=lambda: list(ABUSED_TLDS))
    brand_names: List[str] = Field(default_factory=lambda: list(BRAND_NAMES))
    keywords: List[str] = Field(default_factory=lambda: list(SENSITIVE_KEYWORDS))
    shorteners: List[str] = Field(default_factory=lambda: list(SHORTENERS))
    max_url_length: int = 200
    max_subdomain_labels: int = 4
    typosquat_max_distance: int = 2
    entropy_threshold: float = 3.8
    entropy_min_length: int = 8

    # Diagnostics only; a slow analysis is logged, never failed
    slow_analysis_ms: float = 100.0

    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])


def get_settings() -> Settings:
    return Settings()
