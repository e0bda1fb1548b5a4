"""
Response serializers — 领域对象 / ORM 对象 → JSON-able dict。

只负责「输出格式化」，不做任何解析或校验。
输入解析和校验在 pharmacy/intake.py。

移动端一直读的是 camelCase 文档，这里保持同样的字段风格。
"""

from .repository.codec import encode_datetime, prescription_to_document
from .workflow.engine import adherence_level
from .workflow.messaging import can_user_reply, has_unread_messages


def serialize_prescription(prescription):
    """文档字段 + 客户端常用的派生字段。"""
    doc = prescription_to_document(prescription)
    doc['statusIndex'] = prescription.status.index
    doc['canReply'] = can_user_reply(prescription.messages)
    doc['hasUnreadMessages'] = has_unread_messages(prescription)
    doc['adherenceLevel'] = adherence_level(prescription.adherence_percentage)
    return doc


def serialize_prescription_list(prescriptions):
    results = [serialize_prescription(p) for p in prescriptions]
    return {
        'count': len(results),
        'prescriptions': results,
    }


def serialize_notification(notification):
    """Notification dataclass → dict。dispatch payload 也用这个格式。"""
    return {
        'id': notification.id,
        'type': notification.type.value,
        'title': notification.title,
        'message': notification.message,
        'timestamp': encode_datetime(notification.timestamp),
        'forUser': notification.for_user,
        'isRead': notification.is_read,
        'prescriptionId': notification.prescription_id,
        'actionUrl': notification.action_url,
        'relatedBadgeId': notification.related_badge_id,
        'relatedHealthInfoId': notification.related_health_info_id,
    }


def serialize_notification_record(record):
    return {
        'id': record.id,
        'type': record.type,
        'title': record.title,
        'message': record.message,
        'timestamp': record.timestamp.isoformat(),
        'forUser': record.for_user,
        'isRead': record.is_read,
        'prescriptionId': record.prescription_id,
        'actionUrl': record.action_url,
        'relatedBadgeId': record.related_badge_id,
        'relatedHealthInfoId': record.related_health_info_id,
    }


def serialize_inbox(records, unread_count):
    return {
        'count': len(records),
        'unreadCount': unread_count,
        'notifications': [serialize_notification_record(r) for r in records],
    }
