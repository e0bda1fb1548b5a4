"""
把处方 / 徽章 / 健康资讯事件映射成可展示的 Notification。

只负责「生成」，不负责「投递」—— 投递交给 dispatch/。

优先级：处方上只要有药剂师消息，生成的永远是 PHARMACIST_MESSAGE，
不管当前是什么状态。
"""

from django.utils import timezone

from .types import Notification, NotificationType, PrescriptionStatus


def notification_for_prescription(prescription, now=None):
    now = now or timezone.now()
    med = prescription.medication_name
    status = prescription.status

    if status == PrescriptionStatus.REQUEST_RECEIVED:
        kind = NotificationType.REQUEST_RECEIVED
        title = "Prescription Request Received"
        message = f"Your {prescription.type.value.lower()} for {med} has been received"
    elif status == PrescriptionStatus.PREP_PACKAGING:
        kind = NotificationType.PREP_PACKAGING
        title = "Prescription Being Prepared"
        message = f"Your prescription for {med} is being prepared"
    elif status == PrescriptionStatus.READY_FOR_PICKUP:
        kind = NotificationType.READY_FOR_PICKUP
        title = "Ready for Pickup"
        message = f"Your prescription for {med} is ready for pickup"
    else:
        kind = NotificationType.INFO
        title = "Prescription Update"
        message = f"Your prescription for {med} has been updated to: {status.value}"

    pharmacist_message = prescription.latest_pharmacist_message
    if pharmacist_message:
        kind = NotificationType.PHARMACIST_MESSAGE
        title = "Message from Pharmacist"
        message = pharmacist_message

    return Notification(
        type=kind,
        title=title,
        message=message,
        timestamp=now,
        for_user=prescription.for_user,
        prescription_id=prescription.id,
    )


def adherence_reminder(prescription, now=None):
    return Notification(
        type=NotificationType.ADHERENCE_REMINDER,
        title="Medication Reminder",
        message=f"Time to take your {prescription.medication_name} ({prescription.dosage})",
        timestamp=now or timezone.now(),
        for_user=prescription.for_user,
        prescription_id=prescription.id,
    )


def badge_notification(badge, for_user, now=None):
    return Notification(
        type=NotificationType.BADGE,
        title="New Badge Earned!",
        message=f"Congratulations! You've earned the '{badge.title}' badge.",
        timestamp=now or timezone.now(),
        for_user=for_user,
        related_badge_id=badge.id,
    )


def health_info_notification(health_info, for_user, now=None):
    return Notification(
        type=NotificationType.HEALTH_INFO,
        title="New Health Information",
        message=f"New article: {health_info.title}",
        timestamp=now or timezone.now(),
        for_user=for_user,
        related_health_info_id=health_info.id,
    )
