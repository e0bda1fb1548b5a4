"""
患者 / 药剂师双向聊天的门控规则。

thread 就是 tuple[ChatMessage, ...]，只追加。
患者只能在药剂师先发过消息之后回复。

未读判断有两种：
- has_unread()          按条数奇偶推断：药剂师条数 > 患者条数 即未读
- has_unread_messages() 有 messages_read_at 游标时按时间判断，否则退回条数推断
"""

from dataclasses import replace

from django.utils import timezone

from ..exceptions import ChatNotInitiatedError
from .types import ChatMessage, new_id


def can_user_reply(thread):
    return any(not m.is_from_user for m in thread)


def append_pharmacist_message(thread, content, now=None):
    message = ChatMessage(
        id=new_id(),
        content=content,
        timestamp=now or timezone.now(),
        is_from_user=False,
    )
    return tuple(thread) + (message,)


def append_user_reply(thread, content, now=None):
    if not can_user_reply(thread):
        raise ChatNotInitiatedError(
            message="You can reply once the pharmacist has started the conversation.",
        )
    message = ChatMessage(
        id=new_id(),
        content=content,
        timestamp=now or timezone.now(),
        is_from_user=True,
    )
    return tuple(thread) + (message,)


def has_unread(thread):
    pharmacist = sum(1 for m in thread if not m.is_from_user)
    user = sum(1 for m in thread if m.is_from_user)
    return pharmacist > user


# ── Prescription 级别的包装 ────────────────────────────────────────────────

def add_pharmacist_message(prescription, content, now=None):
    return replace(prescription, messages=append_pharmacist_message(prescription.messages, content, now))


def add_user_reply(prescription, content, now=None):
    try:
        thread = append_user_reply(prescription.messages, content, now)
    except ChatNotInitiatedError as exc:
        exc.detail = {'prescription_id': prescription.id}
        raise
    return replace(prescription, messages=thread)


def mark_messages_read(prescription, now=None):
    return replace(prescription, messages_read_at=now or timezone.now())


def has_unread_messages(prescription):
    read_at = prescription.messages_read_at
    if read_at is None:
        return has_unread(prescription.messages)
    return any(m.timestamp > read_at for m in prescription.pharmacist_messages)
