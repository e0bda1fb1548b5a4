"""
InMemoryPrescriptionRepository — 测试 / 离线场景用。

Prescription 本身是 frozen dataclass，直接存对象即可，不需要拷贝。
_items / _subscribers / _locks 的读写都在 _guard 内完成；回调在锁外执行。
"""

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager

from ..exceptions import NotFoundError
from ..workflow.engine import for_member
from .base import BasePrescriptionRepository, Subscription

logger = logging.getLogger(__name__)


class InMemoryPrescriptionRepository(BasePrescriptionRepository):

    def __init__(self, prescriptions=None):
        self._items = {}
        self._subscribers = defaultdict(list)   # patient_id → [callback, ...]
        self._guard = threading.Lock()
        self._locks = defaultdict(threading.Lock)
        for prescription in prescriptions or []:
            self._items[prescription.id] = prescription

    def create(self, prescription):
        with self._guard:
            self._items[prescription.id] = prescription
        self._notify(prescription.for_user)
        return prescription

    def fetch(self, prescription_id):
        with self._guard:
            prescription = self._items.get(prescription_id)
        if prescription is None:
            raise NotFoundError(
                message='Prescription not found',
                detail={'prescription_id': prescription_id},
            )
        return prescription

    def update(self, prescription):
        with self._guard:
            previous = self._items.get(prescription.id)
            self._items[prescription.id] = prescription
        self._notify(prescription.for_user)
        if previous is not None and previous.for_user != prescription.for_user:
            self._notify(previous.for_user)

    def delete(self, prescription_id):
        with self._guard:
            removed = self._items.pop(prescription_id, None)
            self._locks.pop(prescription_id, None)
        if removed is None:
            raise NotFoundError(
                message='Prescription not found',
                detail={'prescription_id': prescription_id},
            )
        self._notify(removed.for_user)

    def list_for_patient(self, patient_id):
        with self._guard:
            snapshot = list(self._items.values())
        return for_member(snapshot, patient_id)

    def subscribe(self, patient_id, on_change):
        with self._guard:
            self._subscribers[patient_id].append(on_change)
        on_change(self.list_for_patient(patient_id), None)

        def cancel():
            with self._guard:
                self._subscribers[patient_id].remove(on_change)

        return Subscription(cancel)

    @contextmanager
    def lock(self, prescription_id):
        with self._guard:
            item_lock = self._locks[prescription_id]
        with item_lock:
            yield

    def _notify(self, patient_id):
        snapshot = self.list_for_patient(patient_id)
        with self._guard:
            callbacks = list(self._subscribers.get(patient_id, ()))
        for callback in callbacks:
            callback(snapshot, None)
