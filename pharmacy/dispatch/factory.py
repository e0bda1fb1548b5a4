"""
工厂函数：根据 settings.NOTIFICATION_DISPATCHER 返回对应的 Dispatcher 实例。

换投递渠道只需改环境变量 NOTIFICATION_DISPATCHER，代码零改动。
"""

from django.conf import settings

from .base import BaseNotificationDispatcher


def _build_registry() -> dict[str, type[BaseNotificationDispatcher]]:
    from .dispatchers import CeleryDispatcher, InMemoryDispatcher, LoggingDispatcher

    return {
        "celery":  CeleryDispatcher,
        "logging": LoggingDispatcher,
        "memory":  InMemoryDispatcher,
    }


def get_dispatcher() -> BaseNotificationDispatcher:
    """
    Raises:
        ValueError: NOTIFICATION_DISPATCHER 未知
    """
    channel = getattr(settings, "NOTIFICATION_DISPATCHER", "celery")
    registry = _build_registry()
    dispatcher_cls = registry.get(channel)

    if dispatcher_cls is None:
        raise ValueError(
            f"Unknown NOTIFICATION_DISPATCHER: {channel!r}. "
            f"Known channels: {list(registry.keys())}"
        )

    return dispatcher_cls()
