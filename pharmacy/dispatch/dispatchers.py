"""
具体 Dispatcher 实现。

已注册渠道：
  celery  — CeleryDispatcher    (异步写入通知收件箱)
  logging — LoggingDispatcher   (只打日志，本地开发用)
  memory  — InMemoryDispatcher  (记录在列表里，测试 / 离线用)
"""

import logging

from .base import BaseNotificationDispatcher

logger = logging.getLogger(__name__)


# ── CeleryDispatcher ───────────────────────────────────────────────────────
#
# 把通知交给 Celery worker，由 tasks.deliver_notification 写入 NotificationRecord。
# broker 不可用时只记日志，不影响处方本身的状态变更。

class CeleryDispatcher(BaseNotificationDispatcher):

    def notify(self, kind, payload):
        from pharmacy.tasks import deliver_notification

        try:
            deliver_notification.delay(kind, payload)
        except Exception as exc:
            logger.error("[Dispatch] failed to enqueue %r for user=%s: %s",
                         kind, payload.get('forUser'), exc)
            return
        logger.info("[Dispatch] enqueued %r for user=%s", kind, payload.get('forUser'))


class LoggingDispatcher(BaseNotificationDispatcher):

    def notify(self, kind, payload):
        logger.info("[Dispatch] would notify user=%s: %s (%s)",
                    payload.get('forUser'), payload.get('title'), payload.get('message'))


class InMemoryDispatcher(BaseNotificationDispatcher):

    def __init__(self):
        self.sent = []      # [(kind, payload), ...]

    def notify(self, kind, payload):
        self.sent.append((kind, payload))

    def kinds(self):
        return [kind for kind, _ in self.sent]
