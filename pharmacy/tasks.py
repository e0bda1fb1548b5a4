import logging
from celery import shared_task
from django.db import DatabaseError
from django.utils.dateparse import parse_datetime
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=10,   # 初始重试延迟（秒），指数退避会乘以 2^retry_count
    acks_late=True,           # 任务执行完才 ack，防止 worker 崩溃时通知丢失
    reject_on_worker_lost=True,
)
def deliver_notification(self, kind: str, payload: dict):
    """
    把一条通知写进患者的收件箱（NotificationRecord）。

    重试策略（只针对数据库错误）：
      - 最多重试 3 次
      - 指数退避：10s → 20s → 40s
      - 超出次数后放弃，只记日志；处方本身不受影响
    """
    from pharmacy.models import NotificationRecord

    notification_id = payload.get('id')
    logger.info("[Celery][deliver_notification] kind=%r id=%s user=%s (attempt %d/%d)",
                kind, notification_id, payload.get('forUser'),
                self.request.retries + 1, self.max_retries + 1)

    if not notification_id or not payload.get('forUser'):
        logger.error("[Celery] payload 缺少 id / forUser，丢弃: %s", payload)
        return  # 不重试，直接结束

    timestamp = parse_datetime(payload.get('timestamp') or '') or timezone.now()

    try:
        _, created = NotificationRecord.objects.get_or_create(
            id=notification_id,
            defaults={
                'for_user': payload['forUser'],
                'type': kind,
                'title': payload.get('title', ''),
                'message': payload.get('message', ''),
                'timestamp': timestamp,
                'prescription_id': payload.get('prescriptionId'),
                'action_url': payload.get('actionUrl'),
                'related_badge_id': payload.get('relatedBadgeId'),
                'related_health_info_id': payload.get('relatedHealthInfoId'),
            },
        )
    except DatabaseError as exc:
        logger.warning("[Celery] notification id=%s 写入失败 (attempt %d): %s",
                       notification_id, self.request.retries + 1, str(exc))

        if self.request.retries < self.max_retries:
            # 指数退避：countdown = 10 * 2^retries → 10s, 20s, 40s
            countdown = self.default_retry_delay * (2 ** self.request.retries)
            logger.info("[Celery] 将在 %ds 后重试 (第 %d 次)...", countdown, self.request.retries + 1)
            raise self.retry(exc=exc, countdown=countdown)

        logger.error("[Celery] notification id=%s 已达最大重试次数，放弃", notification_id)
        return

    if created:
        logger.info("[Celery] notification id=%s 已写入", notification_id)
    else:
        # acks_late 下任务可能被重复执行，get_or_create 保证幂等
        logger.info("[Celery] notification id=%s 已存在，跳过", notification_id)
