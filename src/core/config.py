#!/usr/bin/env python3
"""
Centralized Configuration Manager

Provides a single source of truth for all application configuration,
including environment variables, defaults, and validation.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict

import core.env_loader  # noqa: F401  Auto-loads .env file
from core.env_loader import get_first_env, get_bool_env
from core.exceptions import ConfigurationError
from core.models.news import Category

logger = logging.getLogger(__name__)

FALLBACK_IMAGE_URL = "https://images.pexels.com/photos/1065084/pexels-photo-1065084.jpeg?auto=compress&cs=tinysrgb&w=800"


@dataclass
class DatabaseConfig:
    """Supabase connection configuration."""
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None

    def is_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


@dataclass
class IntegrationConfig:
    """External integration configuration."""
    # Generation API (Gemini)
    gemini_api_key: Optional[str] = None
    gemini_category_keys: Dict[str, str] = field(default_factory=dict)
    gemini_key_lookup_url: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"

    # Video search
    youtube_api_key: Optional[str] = None

    # Judge (OpenAI-compatible chat completions, Groq by default)
    judge_api_key: Optional[str] = None
    judge_base_url: str = "https://api.groq.com/openai/v1"
    judge_model: str = "openai/gpt-oss-20b"
    similarity_proxy_url: Optional[str] = None

    # Web push
    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_subject: str = "mailto:admin@example.com"


@dataclass
class PipelineConfig:
    """Refresh, enrichment and streaming behaviour."""
    retention_hours: int = 48
    retention_overrides: Dict[str, int] = field(default_factory=dict)

    # Feature flags
    attach_video: bool = True
    long_form_body: bool = False

    max_items_per_category: int = 15

    # Generation retry policy (fixed delay)
    generation_attempts: int = 3
    generation_retry_delay: float = 5.0
    generation_timeout: float = 60.0

    # Per-call timeouts (seconds)
    key_lookup_timeout: float = 5.0
    image_search_timeout: float = 10.0
    video_search_timeout: float = 6.0
    stream_connect_timeout: float = 20.0

    # Search retry policy (exponential backoff with jitter)
    search_max_attempts: int = 5
    search_base_delay: float = 0.5

    # Relevance checks in flight at once per refresh
    judge_concurrency: int = 8

    dedup_batch_size: int = 20
    body_cache_min_words: int = 90
    fallback_image_url: str = FALLBACK_IMAGE_URL

    def retention_for(self, category: Category) -> int:
        """Retention window in hours for a category, honouring overrides."""
        return self.retention_overrides.get(category.value, self.retention_hours)


@dataclass
class ApplicationConfig:
    """Core application configuration."""
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"
    verbose_logging: bool = False


@dataclass
class Config:
    """Master configuration container."""
    database: DatabaseConfig
    integrations: IntegrationConfig
    pipeline: PipelineConfig
    app: ApplicationConfig

    environment: str = field(default_factory=lambda: os.getenv('ENVIRONMENT', 'development'))

    def has_generation(self) -> bool:
        integrations = self.integrations
        return bool(integrations.gemini_api_key or integrations.gemini_category_keys
                    or integrations.gemini_key_lookup_url)

    def has_youtube(self) -> bool:
        return bool(self.integrations.youtube_api_key)

    def has_push(self) -> bool:
        return bool(self.integrations.vapid_public_key and self.integrations.vapid_private_key)

    def require_database(self) -> DatabaseConfig:
        """Return database config or raise when credentials are missing."""
        if not self.database.supabase_url or not self.database.supabase_service_key:
            raise ConfigurationError("Supabase credentials", "not configured")
        return self.database


class ConfigManager:
    """Manages application configuration with validation and environment loading."""

    def __init__(self):
        self._config: Optional[Config] = None

    def get_config(self, force_reload: bool = False) -> Config:
        """
        Get application configuration.

        Args:
            force_reload: Force reloading configuration from environment

        Returns:
            Complete configuration object
        """
        if self._config is None or force_reload:
            self._config = self._build_config()
        return self._config

    def _build_config(self) -> Config:
        """Build configuration from environment variables."""

        # Credentials are optional here; operations that need them raise ConfigurationError
        database_config = DatabaseConfig(
            supabase_url=os.getenv('SUPABASE_URL'),
            supabase_service_key=get_first_env('SUPABASE_SERVICE_ROLE_KEY', 'SUPABASE_SERVICE_KEY'),
        )

        category_keys = {}
        for category in Category:
            key = os.getenv(f"GEMINI_API_KEY_{category.value.upper()}")
            if key:
                category_keys[category.value] = key

        integration_config = IntegrationConfig(
            gemini_api_key=os.getenv('GEMINI_API_KEY'),
            gemini_category_keys=category_keys,
            gemini_key_lookup_url=os.getenv('GEMINI_KEY_LOOKUP_URL'),
            gemini_model=os.getenv('GEMINI_MODEL', 'gemini-2.5-flash'),
            youtube_api_key=os.getenv('YOUTUBE_API_KEY'),
            judge_api_key=get_first_env('JUDGE_API_KEY', 'GROQ_API_KEY'),
            judge_base_url=os.getenv('JUDGE_BASE_URL', 'https://api.groq.com/openai/v1'),
            judge_model=os.getenv('JUDGE_MODEL', 'openai/gpt-oss-20b'),
            similarity_proxy_url=os.getenv('SIMILARITY_PROXY_URL'),
            vapid_public_key=os.getenv('VAPID_PUBLIC_KEY'),
            vapid_private_key=os.getenv('VAPID_PRIVATE_KEY'),
            vapid_subject=os.getenv('VAPID_SUBJECT', 'mailto:admin@example.com'),
        )

        retention_overrides = {}
        for category in Category:
            override = os.getenv(f"NEWS_RETENTION_HOURS_{category.value.upper()}")
            if override:
                retention_overrides[category.value] = int(override)

        pipeline_config = PipelineConfig(
            retention_hours=int(os.getenv('NEWS_RETENTION_HOURS', '48')),
            retention_overrides=retention_overrides,
            attach_video=get_bool_env('ATTACH_VIDEO', True),
            long_form_body=get_bool_env('LONG_FORM_BODY', False),
            generation_attempts=int(os.getenv('GENERATION_ATTEMPTS', '3')),
            generation_retry_delay=float(os.getenv('GENERATION_RETRY_DELAY', '5')),
            judge_concurrency=int(os.getenv('JUDGE_CONCURRENCY', '8')),
            dedup_batch_size=int(os.getenv('DEDUP_BATCH_SIZE', '20')),
            body_cache_min_words=int(os.getenv('BODY_CACHE_MIN_WORDS', '90')),
            fallback_image_url=os.getenv('FALLBACK_IMAGE_URL', FALLBACK_IMAGE_URL),
        )

        app_config = ApplicationConfig(
            api_host=os.getenv('API_HOST', '0.0.0.0'),
            api_port=int(os.getenv('API_PORT', '8000')),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            verbose_logging=get_bool_env('VERBOSE_LOGGING', False),
        )

        config = Config(
            database=database_config,
            integrations=integration_config,
            pipeline=pipeline_config,
            app=app_config
        )

        self._validate_config(config)
        return config

    def _validate_config(self, config: Config) -> None:
        """Validate configuration values."""
        errors = []

        url = config.database.supabase_url
        if url and not url.startswith(('https://', 'http://')):
            errors.append("SUPABASE_URL must start with https:// or http://")

        if config.pipeline.retention_hours < 1:
            errors.append("NEWS_RETENTION_HOURS must be at least 1")

        for category, hours in config.pipeline.retention_overrides.items():
            if hours < 1:
                errors.append(f"NEWS_RETENTION_HOURS_{category.upper()} must be at least 1")

        if config.pipeline.generation_attempts < 1:
            errors.append("GENERATION_ATTEMPTS must be at least 1")

        if not 1 <= config.pipeline.dedup_batch_size <= 100:
            errors.append("DEDUP_BATCH_SIZE must be between 1 and 100")

        if config.pipeline.judge_concurrency < 1:
            errors.append("JUDGE_CONCURRENCY must be at least 1")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if config.app.log_level not in valid_log_levels:
            errors.append(f"LOG_LEVEL must be one of: {', '.join(valid_log_levels)}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        logger.debug("Configuration validation passed")

    def update_logging(self) -> None:
        """Configure logging based on current configuration."""
        config = self.get_config()

        numeric_level = getattr(logging, config.app.log_level)
        logging.getLogger().setLevel(numeric_level)

        if config.app.verbose_logging:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        else:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        for handler in logging.getLogger().handlers:
            handler.setLevel(numeric_level)
            formatter = logging.Formatter(format_str, datefmt='%Y-%m-%d %H:%M:%S')
            handler.setFormatter(formatter)


def integration_status(config: Config) -> Dict[str, bool]:
    """Which integrations a configuration enables."""
    return {
        'supabase': config.database.is_configured(),
        'gemini': config.has_generation(),
        'judge': bool(config.integrations.judge_api_key),
        'similarity_proxy': bool(config.integrations.similarity_proxy_url),
        'youtube': config.has_youtube(),
        'web_push': config.has_push(),
    }


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> Config:
    """Get application configuration."""
    return get_config_manager().get_config()


def reset_config() -> None:
    """Reset configuration manager (useful for testing)."""
    global _config_manager
    _config_manager = None
