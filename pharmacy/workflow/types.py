"""
处方领域模型 — workflow 层唯一认识的标准格式。

全部是 frozen dataclass：状态流转函数永远返回新对象，不原地修改。
status_history / messages 用 tuple 保存，只追加，不重排。

Repository 负责和存储格式互转，业务层永远不碰原始文档。
"""

import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class PrescriptionStatus(str, Enum):
    """有序枚举。声明顺序就是流程顺序，进度条靠 index 判断是否到达。"""

    REQUEST_RECEIVED = "Request Received"
    ENTERED = "Entered into System"
    PHARMACIST_CHECK = "Pharmacist Check"
    PREP_PACKAGING = "Prep & Packaging"
    BILLING = "Billing"
    READY_FOR_PICKUP = "Ready for Pickup"
    COMPLETED = "Completed"

    @property
    def index(self) -> int:
        return _STATUS_ORDER.index(self)

    def is_reached(self, current: "PrescriptionStatus") -> bool:
        """当前状态为 current 时，self 这一步是否已经走到。"""
        return current.index >= self.index


_STATUS_ORDER = list(PrescriptionStatus)

# 进入这几个状态时需要通知患者
NOTIFY_STATUSES = frozenset({
    PrescriptionStatus.REQUEST_RECEIVED,
    PrescriptionStatus.PREP_PACKAGING,
    PrescriptionStatus.READY_FOR_PICKUP,
})


class PrescriptionType(str, Enum):
    NEW = "New Prescription"
    REFILL = "Refill"


@dataclass(frozen=True)
class StatusUpdate:
    status: PrescriptionStatus
    timestamp: datetime
    message: Optional[str] = None


@dataclass(frozen=True)
class ChatMessage:
    id: str
    content: str
    timestamp: datetime
    is_from_user: bool      # True = 患者发的，False = 药剂师发的


@dataclass(frozen=True)
class Prescription:
    """
    处方实体。

    不变量：
    - status 永远等于 status_history 最后一条的 status
    - status_history / messages 只追加
    - messages_read_at 是患者最后一次查看聊天的时间（None = 从未标记）
    """

    rx_number: str
    medication_name: str
    dosage: str
    instructions: str
    prescribed_date: datetime
    expiry_date: datetime
    refills_remaining: int
    status: PrescriptionStatus
    type: PrescriptionType
    for_user: str           # 本人或家庭成员的 user id
    for_user_name: str
    id: str = field(default_factory=lambda: new_id())
    status_history: tuple = ()
    messages: tuple = ()
    notes: Optional[str] = None
    image_url: Optional[str] = None

    # 费用，各自独立可空
    total_cost: Optional[float] = None
    insurance_coverage: Optional[float] = None
    copay_amount: Optional[float] = None
    dispensing_fee: Optional[float] = None

    notified_on_status_change: bool = False

    # 用药依从性（gamification）
    adherence_percentage: float = 100.0
    last_taken: Optional[datetime] = None
    next_due_date: Optional[datetime] = None

    messages_read_at: Optional[datetime] = None

    @property
    def pharmacist_messages(self) -> tuple:
        return tuple(m for m in self.messages if not m.is_from_user)

    @property
    def has_pharmacist_messages(self) -> bool:
        return bool(self.pharmacist_messages)

    @property
    def latest_pharmacist_message(self) -> Optional[str]:
        pharmacist = self.pharmacist_messages
        return pharmacist[-1].content if pharmacist else None


class NotificationType(str, Enum):
    REQUEST_RECEIVED = "Request Received"
    PREP_PACKAGING = "Prep & Packaging"
    READY_FOR_PICKUP = "Ready for Pickup"
    PHARMACIST_MESSAGE = "Pharmacist Message"
    ADHERENCE_REMINDER = "Medication Reminder"
    HEALTH_INFO = "Health Information"
    BADGE = "New Badge"
    INFO = "Information"


@dataclass(frozen=True)
class Notification:
    type: NotificationType
    title: str
    message: str
    timestamp: datetime
    for_user: str
    id: str = field(default_factory=lambda: new_id())
    is_read: bool = False
    prescription_id: Optional[str] = None
    action_url: Optional[str] = None
    related_badge_id: Optional[str] = None
    related_health_info_id: Optional[str] = None


@dataclass(frozen=True)
class Badge:
    title: str
    description: str
    category: str
    points: int
    id: str = field(default_factory=lambda: new_id())


@dataclass(frozen=True)
class HealthInfo:
    title: str
    summary: str
    category: str
    id: str = field(default_factory=lambda: new_id())


def new_id() -> str:
    return str(uuid.uuid4())


def generate_rx_number() -> str:
    """药房展示用的处方号：RX + 6 位随机数。"""
    return f"RX{random.randint(100000, 999999)}"
