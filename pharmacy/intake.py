"""
请求体解析 + 校验 —— View 层只调用这里，拿到干净的参数。

所有校验错误一次性收集，统一抛 ValidationError：
{
    "errors": [
        {"field": "medicationName", "message": "..."},
        ...
    ]
}
"""

from django.utils.dateparse import parse_datetime

from .exceptions import ValidationError
from .workflow.types import PrescriptionStatus, PrescriptionType

_MONEY_FIELDS = (
    ("totalCost", "total_cost"),
    ("insuranceCoverage", "insurance_coverage"),
    ("copayAmount", "copay_amount"),
    ("dispensingFee", "dispensing_fee"),
)


def _raise_if_errors(errors):
    if errors:
        raise ValidationError(
            message="Request validation failed.",
            code="VALIDATION_ERROR",
            detail={"errors": errors},
        )


def _require_dict(data):
    if not isinstance(data, dict):
        raise ValidationError(
            message="Request body must be a JSON object.",
            detail={"errors": [{"field": "", "message": "Expected a JSON object."}]},
        )


def _text(data, key):
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def parse_submission(data):
    """
    新处方提交。两种方式：
    - 手工填写：medicationName / dosage / instructions 必填
    - 拍照上传：imageUrl 必填，其余由药房补全

    Returns:
        dict，可直接作为 new_prescription_request(**kwargs) 的参数
    """
    _require_dict(data)
    errors = []

    for_user = _text(data, "forUser")
    for_user_name = _text(data, "forUserName")
    if not for_user:
        errors.append({"field": "forUser", "message": "forUser is required."})
    if not for_user_name:
        errors.append({"field": "forUserName", "message": "forUserName is required."})

    rx_type = PrescriptionType.NEW
    if data.get("type") is not None:
        try:
            rx_type = PrescriptionType(data["type"])
        except ValueError:
            errors.append({
                "field": "type",
                "message": f"type must be one of {[t.value for t in PrescriptionType]}.",
            })

    image_url = _text(data, "imageUrl") or None
    if image_url is None:
        for key in ("medicationName", "dosage", "instructions"):
            if not _text(data, key):
                errors.append({"field": key, "message": f"{key} is required unless imageUrl is provided."})

    refills = data.get("refillsRemaining")
    if refills is not None and (not isinstance(refills, int) or isinstance(refills, bool) or refills < 0):
        errors.append({"field": "refillsRemaining", "message": "refillsRemaining must be a non-negative integer."})

    expiry_date = None
    if data.get("expiryDate"):
        expiry_date = parse_datetime(str(data["expiryDate"]))
        if expiry_date is None:
            errors.append({"field": "expiryDate", "message": "expiryDate must be an ISO 8601 datetime."})

    money = {}
    for key, attr in _MONEY_FIELDS:
        value = data.get(key)
        if value is None:
            money[attr] = None
        elif isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
            money[attr] = float(value)
        else:
            errors.append({"field": key, "message": f"{key} must be a non-negative number."})

    _raise_if_errors(errors)

    return {
        "for_user": for_user,
        "for_user_name": for_user_name,
        "prescription_type": rx_type,
        "medication_name": _text(data, "medicationName"),
        "dosage": _text(data, "dosage"),
        "instructions": _text(data, "instructions"),
        "image_url": image_url,
        "doctor_name": _text(data, "doctorName"),
        "refills_remaining": refills,
        "expiry_date": expiry_date,
        "notes": _text(data, "notes") or None,
        **money,
    }


def parse_status_update(data):
    """{status, message?, override?} → (PrescriptionStatus, message, override)"""
    _require_dict(data)
    errors = []

    status = None
    try:
        status = PrescriptionStatus(data.get("status"))
    except ValueError:
        errors.append({
            "field": "status",
            "message": f"status must be one of {[s.value for s in PrescriptionStatus]}.",
        })

    # 只认 JSON true/false，字符串 "false" 不能当成管理员覆盖
    override = data.get("override")
    if override is None:
        override = False
    elif not isinstance(override, bool):
        errors.append({"field": "override", "message": "override must be a boolean."})

    _raise_if_errors(errors)
    return status, _text(data, "message") or None, override


def parse_message_content(data):
    _require_dict(data)
    content = _text(data, "content")
    if not content:
        _raise_if_errors([{"field": "content", "message": "content must not be empty."}])
    return content


def parse_adherence(data):
    _require_dict(data)
    value = data.get("percentage")
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        _raise_if_errors([{"field": "percentage", "message": "percentage must be a number between 0 and 100."}])
    return float(value)
