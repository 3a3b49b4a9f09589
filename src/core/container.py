#!/usr/bin/env python3
"""
Dependency Injection Container

Central registry of service factories for the news pipeline. Commands and
API routes ask the container for clients instead of wiring them by hand, and
tests swap factories out with register_factory/register_instance.
"""

import logging
import threading
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Container:
    """Service registry with singleton and factory lifecycles."""

    def __init__(self):
        self._factories: Dict[str, Callable[..., Any]] = {}
        self._singletons: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def register_singleton(self, service_name: str, factory: Callable[[], T]) -> None:
        """
        Register a service created once on first use.

        Args:
            service_name: Unique name for the service
            factory: Zero-argument function creating the instance
        """
        with self._lock:
            factory._is_singleton = True
            self._factories[service_name] = factory
            self._singletons.pop(service_name, None)

    def register_factory(self, service_name: str, factory: Callable[..., T]) -> None:
        """
        Register a service built anew on every get().

        Args:
            service_name: Unique name for the service
            factory: Function creating an instance; receives get()'s keyword arguments
        """
        with self._lock:
            self._factories[service_name] = factory
            self._singletons.pop(service_name, None)

    def register_instance(self, service_name: str, instance: T) -> None:
        """Register a pre-built instance (mainly for tests)."""
        with self._lock:
            self._singletons[service_name] = instance

    def get(self, service_name: str, **kwargs) -> Any:
        """
        Get a service instance by name.

        Args:
            service_name: Name of the service
            **kwargs: Per-call dependencies forwarded to factory services

        Raises:
            KeyError: If the service is not registered
        """
        if service_name in self._singletons:
            return self._singletons[service_name]

        if service_name not in self._factories:
            raise KeyError(f"Service '{service_name}' not registered")

        factory = self._factories[service_name]
        if getattr(factory, '_is_singleton', False):
            with self._lock:
                if service_name not in self._singletons:
                    self._singletons[service_name] = factory()
                    logger.debug(f"Created singleton instance for '{service_name}'")
                return self._singletons[service_name]

        logger.debug(f"Creating new instance for '{service_name}'")
        return factory(**kwargs)

    def clear(self) -> None:
        with self._lock:
            self._factories.clear()
            self._singletons.clear()


def singleton(factory_func: Callable[[], T]) -> Callable[[], T]:
    """Mark a zero-argument factory as singleton."""
    @wraps(factory_func)
    def wrapper():
        return factory_func()

    wrapper._is_singleton = True
    return wrapper


_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get the global container (thread-safe lazy singleton)."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = Container()
                _setup_default_services(_container)
    return _container


def reset_container() -> None:
    """Drop the global container (useful for testing)."""
    global _container
    with _container_lock:
        if _container:
            _container.clear()
        _container = None


def _setup_default_services(container: Container) -> None:
    """Register the default service factories."""

    @singleton
    def create_config():
        from core.config import get_config
        return get_config()

    @singleton
    def create_notification_formatter():
        from integrations.notification_formatter import NotificationFormatter
        return NotificationFormatter()

    def create_http_session():
        from integrations.http_retry import create_session
        return create_session()

    async def open_store():
        from core.database import NewsStore
        config = container.get('config')
        return await NewsStore.open(config.require_database())

    def create_judge(session, prefer_proxy: bool = False):
        from integrations.judge_client import create_judge as build_judge
        return build_judge(container.get('config'), session, prefer_proxy=prefer_proxy)

    def create_generator(session):
        from integrations.gemini_client import GeminiClient
        config = container.get('config')
        pipeline = config.pipeline
        return GeminiClient(
            session,
            api_key=config.integrations.gemini_api_key,
            category_keys=config.integrations.gemini_category_keys,
            key_lookup_url=config.integrations.gemini_key_lookup_url,
            model=config.integrations.gemini_model,
            attempts=pipeline.generation_attempts,
            retry_delay=pipeline.generation_retry_delay,
            timeout=pipeline.generation_timeout,
            key_lookup_timeout=pipeline.key_lookup_timeout,
            stream_connect_timeout=pipeline.stream_connect_timeout,
        )

    def create_youtube_client(session):
        from integrations.youtube_client import YouTubeClient
        config = container.get('config')
        return YouTubeClient(session, config.integrations.youtube_api_key,
                             timeout=config.pipeline.video_search_timeout)

    def create_image_resolver(session, judge=None):
        from core.enrichment import ImageResolver
        from integrations.wikimedia_client import WikimediaClient
        pipeline = container.get('config').pipeline
        search = WikimediaClient(
            session,
            timeout=pipeline.image_search_timeout,
            max_attempts=pipeline.search_max_attempts,
            base_delay=pipeline.search_base_delay,
        )
        return ImageResolver(search, judge=judge, fallback_url=pipeline.fallback_image_url,
                             judge_concurrency=pipeline.judge_concurrency)

    def create_video_matcher(session, judge=None):
        from core.enrichment import VideoMatcher
        config = container.get('config')
        if not config.pipeline.attach_video or not config.has_youtube():
            return None
        return VideoMatcher(create_youtube_client(session), judge=judge)

    def create_push_notifier():
        from integrations.push_notifier import PushNotifier
        integrations = container.get('config').integrations
        return PushNotifier(
            integrations.vapid_public_key,
            integrations.vapid_private_key,
            vapid_subject=integrations.vapid_subject,
        )

    container.register_singleton('config', create_config)
    container.register_singleton('notification_formatter', create_notification_formatter)

    container.register_factory('http_session', create_http_session)
    container.register_factory('store', open_store)
    container.register_factory('judge', create_judge)
    container.register_factory('generator', create_generator)
    container.register_factory('youtube_client', create_youtube_client)
    container.register_factory('image_resolver', create_image_resolver)
    container.register_factory('video_matcher', create_video_matcher)
    container.register_factory('push_notifier', create_push_notifier)

    logger.debug("Default services registered in container")
