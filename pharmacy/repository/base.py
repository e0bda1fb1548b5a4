"""
BasePrescriptionRepository — 所有持久化实现的抽象基类。

每个新存储只需：
1. 继承 BasePrescriptionRepository
2. 实现 create / fetch / update / delete / list_for_patient / subscribe / lock
3. 在 factory.py 的 _build_registry() 注册一行

services.py 完全不知道背后是内存还是数据库。

错误约定：
- fetch 找不到     → NotFoundError
- 存储不可用       → TransportError
- 文档还原失败     → DecodeError
核心层不做重试，原样抛给调用方。
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List, Optional

from ..exceptions import StorageError
from ..workflow.types import Prescription

# on_change(prescriptions, error)：两者只有一个非 None
ChangeCallback = Callable[[Optional[List[Prescription]], Optional[StorageError]], None]


class Subscription:
    """subscribe() 的返回值。cancel() 之后不再推送。"""

    def __init__(self, on_cancel: Callable[[], None]):
        self._on_cancel = on_cancel
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._on_cancel()


class BasePrescriptionRepository(ABC):

    @abstractmethod
    def create(self, prescription: Prescription) -> Prescription:
        """保存一张新处方，返回已保存的对象。"""

    @abstractmethod
    def fetch(self, prescription_id: str) -> Prescription:
        """按 id 读取。不存在时抛 NotFoundError。"""

    @abstractmethod
    def update(self, prescription: Prescription) -> None:
        """upsert：存在则覆盖变化字段，不存在则新建。"""

    @abstractmethod
    def delete(self, prescription_id: str) -> None:
        """管理操作。正常流程不会删除处方。"""

    @abstractmethod
    def list_for_patient(self, patient_id: str) -> List[Prescription]:
        """某个患者（或家庭成员）名下的全部处方。"""

    @abstractmethod
    def subscribe(self, patient_id: str, on_change: ChangeCallback) -> Subscription:
        """
        订阅某个患者名下处方的变化。

        订阅后立即推送一次当前快照；之后每次 create / update / delete
        都推送该患者最新的完整列表。
        """

    @abstractmethod
    def lock(self, prescription_id: str) -> Iterator[None]:
        """
        Context manager：串行化同一张处方的 fetch → 修改 → update，
        避免两个调用方同时 advance_status / request_refill 时丢更新。
        """
