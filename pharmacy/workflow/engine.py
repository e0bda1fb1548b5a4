"""
Prescription status workflow.

纯函数：输入一个 Prescription 快照，返回新的 Prescription。
不碰数据库、不发通知 —— 这些由 services.py 在外层完成。

规则不满足时抛 PolicyError 子类，输入对象保持不变。
"""

from dataclasses import replace
from datetime import timedelta

from django.utils import timezone

from ..exceptions import (
    InvalidTransitionError,
    PickupNotReadyError,
    RefillIneligibleError,
    ValidationError,
)
from .types import (
    NOTIFY_STATUSES,
    Prescription,
    PrescriptionStatus,
    PrescriptionType,
    StatusUpdate,
    generate_rx_number,
    new_id,
)

TRANSITION_FORWARD = "forward"
TRANSITION_PERMISSIVE = "permissive"

DEFAULT_EXPIRY = timedelta(days=180)
DEFAULT_NEW_REFILLS = 3
ADHERENCE_INTERVAL = timedelta(days=1)

PHOTO_MEDICATION_NAME = "Prescription from Photo"
PHOTO_DOSAGE = "To be determined"
PHOTO_INSTRUCTIONS = "See uploaded prescription image"


def advance_status(prescription, new_status, message=None, now=None):
    """
    切换到 new_status 并追加一条历史记录。

    这一层不校验先后顺序（任意状态都可以跟在任意状态后面），
    顺序策略见 check_transition()。
    notified_on_status_change 一旦为 True 就保持 True，不会因后续状态被清掉。
    """
    now = now or timezone.now()
    notified = prescription.notified_on_status_change or new_status in NOTIFY_STATUSES
    return replace(
        prescription,
        status=new_status,
        status_history=prescription.status_history + (StatusUpdate(new_status, now, message),),
        notified_on_status_change=notified,
    )


def check_transition(current, new_status, policy=TRANSITION_FORWARD):
    """
    forward:    只能前进或停留，倒退抛 InvalidTransitionError
    permissive: 全部放行（管理员覆盖时使用）
    """
    if policy == TRANSITION_PERMISSIVE:
        return
    if new_status.index < current.index:
        raise InvalidTransitionError(
            message=(
                f"Cannot move prescription from '{current.value}' back to '{new_status.value}'. "
                f"Use a refill request or an admin override."
            ),
            detail={'current_status': current.value, 'requested_status': new_status.value},
        )


def request_refill(prescription, now=None):
    """
    从一张已完成的处方派生出一张新的续药处方。

    条件：status == Completed 且 refills_remaining > 0，否则 RefillIneligibleError。
    原处方不变；返回的是一条全新记录（新 id、新 rx 号、聊天清空）。
    """
    if not (prescription.status == PrescriptionStatus.COMPLETED and prescription.refills_remaining > 0):
        raise RefillIneligibleError(
            message="Cannot refill: either prescription is not completed or no refills remaining",
            detail={
                'prescription_id': prescription.id,
                'current_status': prescription.status.value,
                'refills_remaining': prescription.refills_remaining,
            },
        )

    now = now or timezone.now()
    return replace(
        prescription,
        id=new_id(),
        rx_number=generate_rx_number(),
        status=PrescriptionStatus.REQUEST_RECEIVED,
        type=PrescriptionType.REFILL,
        prescribed_date=now,
        refills_remaining=prescription.refills_remaining - 1,
        status_history=(
            StatusUpdate(PrescriptionStatus.REQUEST_RECEIVED, now, "Refill request received"),
        ),
        messages=(),
        messages_read_at=None,
        notified_on_status_change=True,
    )


def confirm_pickup(prescription, now=None):
    """Ready for Pickup → Completed，否则 PickupNotReadyError。"""
    if prescription.status != PrescriptionStatus.READY_FOR_PICKUP:
        raise PickupNotReadyError(
            message="Cannot confirm pickup: prescription is not ready for pickup",
            detail={'prescription_id': prescription.id, 'current_status': prescription.status.value},
        )
    return advance_status(
        prescription,
        PrescriptionStatus.COMPLETED,
        "Prescription picked up by patient",
        now=now,
    )


def new_prescription_request(
    for_user,
    for_user_name,
    prescription_type=PrescriptionType.NEW,
    medication_name="",
    dosage="",
    instructions="",
    image_url=None,
    doctor_name="",
    refills_remaining=None,
    expiry_date=None,
    notes=None,
    total_cost=None,
    insurance_coverage=None,
    copay_amount=None,
    dispensing_fee=None,
    now=None,
):
    """
    患者提交的新处方请求（手工填写或拍照上传）。

    拍照上传时药名 / 剂量 / 用法由药房后续补全，先用占位文本。
    """
    now = now or timezone.now()

    if image_url:
        medication_name = medication_name or PHOTO_MEDICATION_NAME
        dosage = dosage or PHOTO_DOSAGE
        instructions = instructions or PHOTO_INSTRUCTIONS
        photo_note = f"Prescription submitted via photo. Doctor: {doctor_name}"
        notes = f"{photo_note}\n{notes}" if notes else photo_note

    if refills_remaining is None:
        refills_remaining = DEFAULT_NEW_REFILLS if prescription_type == PrescriptionType.NEW else 0

    return Prescription(
        rx_number=generate_rx_number(),
        medication_name=medication_name,
        dosage=dosage,
        instructions=instructions,
        prescribed_date=now,
        expiry_date=expiry_date or now + DEFAULT_EXPIRY,
        refills_remaining=refills_remaining,
        status=PrescriptionStatus.REQUEST_RECEIVED,
        type=prescription_type,
        for_user=for_user,
        for_user_name=for_user_name,
        status_history=(
            StatusUpdate(PrescriptionStatus.REQUEST_RECEIVED, now, "Prescription request received"),
        ),
        notes=notes,
        image_url=image_url,
        total_cost=total_cost,
        insurance_coverage=insurance_coverage,
        copay_amount=copay_amount,
        dispensing_fee=dispensing_fee,
        notified_on_status_change=True,
    )


# ── Adherence ──────────────────────────────────────────────────────────────

def update_adherence(prescription, percentage, now=None):
    """记录一次服药，下一次提醒时间固定为一天后。"""
    if percentage is None or not 0 <= percentage <= 100:
        raise ValidationError(
            message="Adherence percentage must be between 0 and 100.",
            code='INVALID_ADHERENCE',
            detail={'percentage': percentage},
        )
    now = now or timezone.now()
    return replace(
        prescription,
        adherence_percentage=float(percentage),
        last_taken=now,
        next_due_date=now + ADHERENCE_INTERVAL,
    )


def adherence_level(percentage):
    if percentage >= 90:
        return "Excellent"
    if percentage >= 75:
        return "Good"
    if percentage >= 60:
        return "Fair"
    return "Needs Improvement"


# ── Queries ────────────────────────────────────────────────────────────────

def active(prescriptions):
    return [p for p in prescriptions if p.status != PrescriptionStatus.COMPLETED]


def by_status(prescriptions, status):
    return [p for p in prescriptions if p.status == status]


def for_member(prescriptions, user_id):
    return [p for p in prescriptions if p.for_user == user_id]


def with_pharmacist_messages(prescriptions):
    return [p for p in prescriptions if p.messages]
