"""
DjangoPrescriptionRepository — 生产环境用，数据落在 PrescriptionRecord 表。

- status_history / messages 存 JSON 列，条目格式由 codec 决定
- 读出来的行先拼成文档，再交给 codec 还原，旧字段兼容逻辑只写一遍
- lock() = transaction.atomic + select_for_update，行级串行化
- subscribe() 基于 post_save / post_delete signal，只在本进程内生效
"""

import logging
import uuid
from contextlib import contextmanager

from django.db import DatabaseError, transaction
from django.db.models.signals import post_delete, post_save

from ..exceptions import NotFoundError, StorageError, TransportError
from ..models import PrescriptionRecord
from . import codec
from .base import BasePrescriptionRepository, Subscription

logger = logging.getLogger(__name__)


@contextmanager
def _transport_errors(operation):
    try:
        yield
    except DatabaseError as exc:
        logger.error("[Repository] %s failed: %s", operation, exc)
        raise TransportError(
            message=f"Prescription storage unavailable ({operation})",
            detail={'operation': operation},
        ) from exc


def record_fields(prescription):
    """Prescription → PrescriptionRecord 列值（不含 id）。"""
    return {
        'rx_number': prescription.rx_number,
        'medication_name': prescription.medication_name,
        'dosage': prescription.dosage,
        'instructions': prescription.instructions,
        'prescribed_date': prescription.prescribed_date,
        'expiry_date': prescription.expiry_date,
        'refills_remaining': prescription.refills_remaining,
        'status': prescription.status.value,
        'type': prescription.type.value,
        'for_user': prescription.for_user,
        'for_user_name': prescription.for_user_name,
        'status_history': [codec.status_update_to_dict(u) for u in prescription.status_history],
        'messages': [codec.chat_message_to_dict(m) for m in prescription.messages],
        'pharmacist_message': prescription.latest_pharmacist_message,
        'messages_read_at': prescription.messages_read_at,
        'notes': prescription.notes,
        'image_url': prescription.image_url,
        'total_cost': prescription.total_cost,
        'insurance_coverage': prescription.insurance_coverage,
        'copay_amount': prescription.copay_amount,
        'dispensing_fee': prescription.dispensing_fee,
        'notified_on_status_change': prescription.notified_on_status_change,
        'adherence_percentage': prescription.adherence_percentage,
        'last_taken': prescription.last_taken,
        'next_due_date': prescription.next_due_date,
    }


def prescription_from_record(record):
    doc = {
        'id': record.id,
        'rxNumber': record.rx_number,
        'medicationName': record.medication_name,
        'dosage': record.dosage,
        'instructions': record.instructions,
        'prescribedDate': record.prescribed_date,
        'expiryDate': record.expiry_date,
        'refillsRemaining': record.refills_remaining,
        'status': record.status,
        'type': record.type,
        'forUser': record.for_user,
        'forUserName': record.for_user_name,
        'statusHistory': record.status_history,
        'pharmacistMessages': record.messages,
        'pharmacistMessage': record.pharmacist_message,
        'messagesReadAt': record.messages_read_at,
        'notes': record.notes,
        'imageUrl': record.image_url,
        'totalCost': record.total_cost,
        'insuranceCoverage': record.insurance_coverage,
        'copayAmount': record.copay_amount,
        'dispensingFee': record.dispensing_fee,
        'notifiedOnStatusChange': record.notified_on_status_change,
        'adherencePercentage': record.adherence_percentage,
        'lastTaken': record.last_taken,
        'nextDueDate': record.next_due_date,
    }
    return codec.prescription_from_document(doc, record.id)


class DjangoPrescriptionRepository(BasePrescriptionRepository):

    def create(self, prescription):
        with _transport_errors('create'):
            PrescriptionRecord.objects.create(id=prescription.id, **record_fields(prescription))
        logger.info("[Repository] created rx=%s for_user=%s", prescription.rx_number, prescription.for_user)
        return prescription

    def fetch(self, prescription_id):
        with _transport_errors('fetch'):
            try:
                record = PrescriptionRecord.objects.get(id=prescription_id)
            except PrescriptionRecord.DoesNotExist:
                raise NotFoundError(
                    message='Prescription not found',
                    detail={'prescription_id': prescription_id},
                )
        return prescription_from_record(record)

    def update(self, prescription):
        with _transport_errors('update'):
            PrescriptionRecord.objects.update_or_create(
                id=prescription.id,
                defaults=record_fields(prescription),
            )

    def delete(self, prescription_id):
        with _transport_errors('delete'):
            record = PrescriptionRecord.objects.filter(id=prescription_id).first()
            if record is None:
                raise NotFoundError(
                    message='Prescription not found',
                    detail={'prescription_id': prescription_id},
                )
            # 逐条 delete() 才会触发 post_delete，订阅方能收到
            record.delete()
        logger.info("[Repository] deleted prescription_id=%s", prescription_id)

    def list_for_patient(self, patient_id):
        with _transport_errors('list_for_patient'):
            records = list(PrescriptionRecord.objects.filter(for_user=patient_id).order_by('prescribed_date'))
        return [prescription_from_record(r) for r in records]

    def subscribe(self, patient_id, on_change):
        uid = f"prescription-subscription-{uuid.uuid4()}"

        def push():
            try:
                snapshot = self.list_for_patient(patient_id)
            except StorageError as exc:
                on_change(None, exc)
                return
            on_change(snapshot, None)

        def receiver(sender, instance, **kwargs):
            if instance.for_user == patient_id:
                push()

        post_save.connect(receiver, sender=PrescriptionRecord, weak=False, dispatch_uid=uid)
        post_delete.connect(receiver, sender=PrescriptionRecord, weak=False, dispatch_uid=uid)

        def cancel():
            post_save.disconnect(sender=PrescriptionRecord, dispatch_uid=uid)
            post_delete.disconnect(sender=PrescriptionRecord, dispatch_uid=uid)

        push()
        return Subscription(cancel)

    @contextmanager
    def lock(self, prescription_id):
        with _transport_errors('lock'):
            with transaction.atomic():
                list(PrescriptionRecord.objects.select_for_update().filter(id=prescription_id))
                yield
