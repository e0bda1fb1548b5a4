"""
BaseNotificationDispatcher — 所有通知投递实现的抽象基类。

每个新投递渠道只需：
1. 继承 BaseNotificationDispatcher
2. 实现 notify()
3. 在 factory.py 的 _build_registry() 注册一行

services.py 只负责决定「该不该发、发什么」，不知道怎么发。
"""

from abc import ABC, abstractmethod


class BaseNotificationDispatcher(ABC):

    @abstractmethod
    def notify(self, kind: str, payload: dict) -> None:
        """
        投递一条通知。fire-and-forget，不保证送达，不返回结果。

        Args:
            kind:    NotificationType 的值，例如 "Ready for Pickup"
            payload: serialize_notification() 输出的 dict（JSON-able）
        """
