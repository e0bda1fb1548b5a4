"""
统一异常体系。

所有业务异常继承 BaseAppException，包含：
- type:        错误类型标识（validation_error / policy / storage）
- code:        业务错误码（REFILL_INELIGIBLE / PRESCRIPTION_NOT_FOUND / ...）
- message:     人类可读的描述
- detail:      可选的附加信息（dict / list / None）
- http_status: HTTP 状态码

两大类：
- PolicyError   领域规则不满足。调用方会被告知，数据不会被修改。
- StorageError  持久层失败。原样抛给调用方，核心层不做重试。

View 层只需 raise，exception_handler 统一捕获并格式化响应。
"""


class BaseAppException(Exception):
    """所有业务异常的基类。"""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ValidationError(BaseAppException):
    """输入验证失败。intake 层抛出，400。"""

    type = 'validation_error'
    code = 'VALIDATION_ERROR'
    http_status = 400


# ── PolicyError ────────────────────────────────────────────────────────────

class PolicyError(BaseAppException):
    """领域规则阻止操作。workflow 层抛出，409。"""

    type = 'policy'
    code = 'POLICY_VIOLATION'
    http_status = 409


class RefillIneligibleError(PolicyError):
    """只有 Completed 且 refills_remaining > 0 的处方才能续药。"""

    code = 'REFILL_INELIGIBLE'


class PickupNotReadyError(PolicyError):
    """只有 Ready for Pickup 的处方才能确认取药。"""

    code = 'PICKUP_NOT_READY'


class ChatNotInitiatedError(PolicyError):
    """药剂师还没发过消息，患者不能先开口。"""

    code = 'CHAT_NOT_INITIATED'


class InvalidTransitionError(PolicyError):
    """forward 策略下不允许状态倒退。"""

    code = 'INVALID_TRANSITION'


# ── StorageError ───────────────────────────────────────────────────────────

class StorageError(BaseAppException):
    """持久层失败的基类。"""

    type = 'storage'
    code = 'STORAGE_ERROR'
    http_status = 500


class NotFoundError(StorageError):
    code = 'PRESCRIPTION_NOT_FOUND'
    http_status = 404


class TransportError(StorageError):
    """数据库 / 网络不可用。"""

    code = 'STORAGE_TRANSPORT'
    http_status = 503


class DecodeError(StorageError):
    """存储里的文档无法还原成 Prescription。"""

    code = 'STORAGE_DECODE'
    http_status = 500
