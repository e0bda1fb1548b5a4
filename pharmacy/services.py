"""
业务服务层。

PrescriptionService 把三样东西串起来：
- workflow/   纯函数，决定状态怎么变
- repository  决定存在哪
- dispatcher  决定通知怎么发

所有修改都走 _mutate()：在 repository.lock() 里 fetch → 纯函数 → update，
同一张处方的并发修改会被串行化。

实例显式构造、显式注入，不做全局单例；
View 层用 get_prescription_service() 按 settings 组装。
"""

import logging

from django.conf import settings

from .dispatch.factory import get_dispatcher
from .exceptions import NotFoundError
from .models import NotificationRecord
from .repository.factory import get_repository
from .serializers import serialize_notification
from .workflow import engine, messaging
from .workflow.notifications import notification_for_prescription
from .workflow.types import NOTIFY_STATUSES

logger = logging.getLogger(__name__)


class PrescriptionService:

    def __init__(self, repository, dispatcher, transition_policy=engine.TRANSITION_FORWARD):
        self.repository = repository
        self.dispatcher = dispatcher
        self.transition_policy = transition_policy

    # ── 内部工具 ───────────────────────────────────────────────────────────

    def _mutate(self, prescription_id, change):
        """在锁内执行 fetch → change(prescription) → update，返回 (旧, 新)。"""
        with self.repository.lock(prescription_id):
            current = self.repository.fetch(prescription_id)
            updated = change(current)
            self.repository.update(updated)
        return current, updated

    def _notify(self, prescription):
        notification = notification_for_prescription(prescription)
        self.dispatcher.notify(notification.type.value, serialize_notification(notification))

    # ── 读 ─────────────────────────────────────────────────────────────────

    def get(self, prescription_id):
        return self.repository.fetch(prescription_id)

    def list_for_patient(self, patient_id):
        return self.repository.list_for_patient(patient_id)

    def list_active(self, patient_id):
        return engine.active(self.list_for_patient(patient_id))

    def list_by_status(self, patient_id, status):
        return engine.by_status(self.list_for_patient(patient_id), status)

    def list_with_messages(self, patient_id):
        return engine.with_pharmacist_messages(self.list_for_patient(patient_id))

    def subscribe(self, patient_id, on_change):
        return self.repository.subscribe(patient_id, on_change)

    # ── 写 ─────────────────────────────────────────────────────────────────

    def submit(self, **request):
        """患者提交新处方。request 参数见 engine.new_prescription_request。"""
        prescription = engine.new_prescription_request(**request)
        self.repository.create(prescription)
        logger.info("[Workflow] submitted rx=%s for_user=%s", prescription.rx_number, prescription.for_user)
        self._notify(prescription)
        return prescription

    def update_status(self, prescription_id, new_status, message=None, override=False):
        """
        状态流转。默认 forward 策略：不允许倒退；override=True 时跳过检查（管理员）。
        进入 NOTIFY_STATUSES 时发通知。
        """
        policy = engine.TRANSITION_PERMISSIVE if override else self.transition_policy

        def change(prescription):
            engine.check_transition(prescription.status, new_status, policy)
            return engine.advance_status(prescription, new_status, message)

        previous, updated = self._mutate(prescription_id, change)
        logger.info("[Workflow] rx=%s status %s -> %s%s", updated.rx_number,
                    previous.status.value, new_status.value, " (override)" if override else "")

        if new_status in NOTIFY_STATUSES:
            self._notify(updated)
        return updated

    def add_pharmacist_message(self, prescription_id, content):
        _, updated = self._mutate(
            prescription_id,
            lambda p: messaging.add_pharmacist_message(p, content),
        )
        logger.info("[Chat] rx=%s pharmacist message #%d", updated.rx_number, len(updated.messages))
        self._notify(updated)
        return updated

    def add_user_reply(self, prescription_id, content):
        _, updated = self._mutate(
            prescription_id,
            lambda p: messaging.add_user_reply(p, content),
        )
        logger.info("[Chat] rx=%s patient reply #%d", updated.rx_number, len(updated.messages))
        return updated

    def mark_messages_read(self, prescription_id):
        _, updated = self._mutate(prescription_id, messaging.mark_messages_read)
        return updated

    def request_refill(self, prescription_id):
        """原处方不变，创建一条新的续药处方。不满足条件时什么都不写。"""
        with self.repository.lock(prescription_id):
            original = self.repository.fetch(prescription_id)
            refill = engine.request_refill(original)
            self.repository.create(refill)
        logger.info("[Workflow] refill rx=%s created from rx=%s (refills left %d)",
                    refill.rx_number, original.rx_number, refill.refills_remaining)
        self._notify(refill)
        return refill

    def confirm_pickup(self, prescription_id):
        _, updated = self._mutate(prescription_id, engine.confirm_pickup)
        logger.info("[Workflow] rx=%s picked up", updated.rx_number)
        return updated

    def update_adherence(self, prescription_id, percentage):
        _, updated = self._mutate(
            prescription_id,
            lambda p: engine.update_adherence(p, percentage),
        )
        return updated

    def delete(self, prescription_id):
        """管理操作。"""
        self.repository.delete(prescription_id)
        logger.warning("[Workflow] prescription_id=%s deleted", prescription_id)


def get_prescription_service():
    return PrescriptionService(
        repository=get_repository(),
        dispatcher=get_dispatcher(),
        transition_policy=getattr(settings, "PRESCRIPTION_TRANSITIONS", engine.TRANSITION_FORWARD),
    )


# ── 通知收件箱 ─────────────────────────────────────────────────────────────

def list_notifications(patient_id):
    return list(NotificationRecord.objects.filter(for_user=patient_id).order_by('-timestamp'))


def unread_notification_count(patient_id):
    return NotificationRecord.objects.filter(for_user=patient_id, is_read=False).count()


def mark_notification_read(notification_id):
    """Raises NotFoundError if the notification does not exist."""
    try:
        record = NotificationRecord.objects.get(id=notification_id)
    except NotificationRecord.DoesNotExist:
        raise NotFoundError(
            message='Notification not found',
            code='NOTIFICATION_NOT_FOUND',
            detail={'notification_id': notification_id},
        )
    if not record.is_read:
        record.is_read = True
        record.save(update_fields=['is_read'])
    return record


def mark_all_notifications_read(patient_id):
    """返回本次被标记的条数。"""
    return NotificationRecord.objects.filter(for_user=patient_id, is_read=False).update(is_read=True)
