"""
Prescription ⇄ 文档格式（dict）。

文档格式沿用移动端一直在用的形状：
- camelCase 字段名（rxNumber / medicationName / statusHistory ...）
- 枚举存展示字符串（"Ready for Pickup"）
- 时间存 ISO 8601 字符串
- 可选字段缺省时不出现在文档里

旧版客户端只认识单字符串字段 pharmacistMessage：
- 编码时：写入最新一条药剂师消息
- 解码时：没有 pharmacistMessages 但有 pharmacistMessage → 还原成一条药剂师消息

领域模型里只有一份 messages，两个字段的并存只发生在这里。
"""

import logging
from datetime import datetime

from django.utils.dateparse import parse_datetime

from ..exceptions import DecodeError
from ..workflow.types import (
    ChatMessage,
    Prescription,
    PrescriptionStatus,
    PrescriptionType,
    StatusUpdate,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "rxNumber", "medicationName", "dosage", "instructions",
    "prescribedDate", "expiryDate", "refillsRemaining",
    "status", "type", "forUser", "forUserName",
)

# (文档字段, dataclass 字段)
_OPTIONAL_TEXT = (
    ("notes", "notes"),
    ("imageUrl", "image_url"),
)
_OPTIONAL_MONEY = (
    ("totalCost", "total_cost"),
    ("insuranceCoverage", "insurance_coverage"),
    ("copayAmount", "copay_amount"),
    ("dispensingFee", "dispensing_fee"),
)
_OPTIONAL_DATES = (
    ("lastTaken", "last_taken"),
    ("nextDueDate", "next_due_date"),
    ("messagesReadAt", "messages_read_at"),
)


# ── encode ─────────────────────────────────────────────────────────────────

def encode_datetime(value):
    return value.isoformat() if value is not None else None


def status_update_to_dict(update):
    data = {
        "status": update.status.value,
        "timestamp": encode_datetime(update.timestamp),
    }
    if update.message is not None:
        data["message"] = update.message
    return data


def chat_message_to_dict(message):
    return {
        "id": message.id,
        "content": message.content,
        "timestamp": encode_datetime(message.timestamp),
        "isFromUser": message.is_from_user,
    }


def prescription_to_document(prescription):
    doc = {
        "id": prescription.id,
        "rxNumber": prescription.rx_number,
        "medicationName": prescription.medication_name,
        "dosage": prescription.dosage,
        "instructions": prescription.instructions,
        "prescribedDate": encode_datetime(prescription.prescribed_date),
        "expiryDate": encode_datetime(prescription.expiry_date),
        "refillsRemaining": prescription.refills_remaining,
        "status": prescription.status.value,
        "type": prescription.type.value,
        "forUser": prescription.for_user,
        "forUserName": prescription.for_user_name,
        "statusHistory": [status_update_to_dict(u) for u in prescription.status_history],
        "notifiedOnStatusChange": prescription.notified_on_status_change,
        "adherencePercentage": prescription.adherence_percentage,
    }

    if prescription.messages:
        doc["pharmacistMessages"] = [chat_message_to_dict(m) for m in prescription.messages]
    legacy = prescription.latest_pharmacist_message
    if legacy is not None:
        doc["pharmacistMessage"] = legacy

    for doc_key, attr in _OPTIONAL_TEXT + _OPTIONAL_MONEY:
        value = getattr(prescription, attr)
        if value is not None:
            doc[doc_key] = value
    for doc_key, attr in _OPTIONAL_DATES:
        value = getattr(prescription, attr)
        if value is not None:
            doc[doc_key] = encode_datetime(value)

    return doc


# ── decode ─────────────────────────────────────────────────────────────────

def decode_datetime(value, field_name="timestamp"):
    if value is None or isinstance(value, datetime):
        return value
    try:
        parsed = parse_datetime(value)
    except (TypeError, ValueError):
        parsed = None
    if parsed is None:
        raise DecodeError(
            message=f"Invalid datetime for '{field_name}'",
            detail={'field': field_name, 'value': str(value)},
        )
    return parsed


def status_update_from_dict(data):
    return StatusUpdate(
        status=PrescriptionStatus(data["status"]),
        timestamp=decode_datetime(data["timestamp"]),
        message=data.get("message"),
    )


def chat_message_from_dict(data):
    return ChatMessage(
        id=data["id"],
        content=data["content"],
        timestamp=decode_datetime(data["timestamp"]),
        is_from_user=bool(data["isFromUser"]),
    )


def _decode_entries(entries, decoder, doc_id, label):
    """逐条解码，坏条目跳过并记录日志，不让一条脏数据拖垮整张处方。"""
    result = []
    for entry in entries or []:
        try:
            result.append(decoder(entry))
        except (KeyError, ValueError, TypeError, DecodeError) as exc:
            logger.warning("[Codec] rx=%s skipped malformed %s entry: %s", doc_id, label, exc)
    return tuple(result)


def prescription_from_document(doc, doc_id=None):
    doc_id = doc_id or doc.get("id")

    missing = [key for key in REQUIRED_FIELDS if doc.get(key) is None]
    if missing or not doc_id:
        raise DecodeError(
            message="Failed to decode prescription",
            detail={'prescription_id': doc_id, 'missing_fields': missing or ['id']},
        )

    try:
        status = PrescriptionStatus(doc["status"])
        rx_type = PrescriptionType(doc["type"])
        refills = int(doc["refillsRemaining"])
    except (ValueError, TypeError) as exc:
        raise DecodeError(
            message="Failed to decode prescription",
            detail={'prescription_id': doc_id, 'error': str(exc)},
        )

    history = _decode_entries(doc.get("statusHistory"), status_update_from_dict, doc_id, "statusHistory")
    messages = _decode_entries(doc.get("pharmacistMessages"), chat_message_from_dict, doc_id, "pharmacistMessages")
    prescribed_date = decode_datetime(doc["prescribedDate"], "prescribedDate")

    legacy = doc.get("pharmacistMessage")
    if not messages and legacy:
        sent_at = history[-1].timestamp if history else prescribed_date
        messages = (ChatMessage(id=f"legacy-{doc_id}", content=legacy, timestamp=sent_at, is_from_user=False),)

    optional = {}
    for doc_key, attr in _OPTIONAL_TEXT:
        optional[attr] = doc.get(doc_key)
    for doc_key, attr in _OPTIONAL_MONEY:
        value = doc.get(doc_key)
        optional[attr] = float(value) if value is not None else None
    for doc_key, attr in _OPTIONAL_DATES:
        optional[attr] = decode_datetime(doc.get(doc_key), doc_key)

    return Prescription(
        id=doc_id,
        rx_number=doc["rxNumber"],
        medication_name=doc["medicationName"],
        dosage=doc["dosage"],
        instructions=doc["instructions"],
        prescribed_date=prescribed_date,
        expiry_date=decode_datetime(doc["expiryDate"], "expiryDate"),
        refills_remaining=refills,
        status=status,
        type=rx_type,
        for_user=doc["forUser"],
        for_user_name=doc["forUserName"],
        status_history=history,
        messages=messages,
        notified_on_status_change=bool(doc.get("notifiedOnStatusChange", False)),
        adherence_percentage=float(doc.get("adherencePercentage", 100.0)),
        **optional,
    )
