"""
Unit tests for notification dispatchers and the Celery delivery task.

Celery task 直接同步调用，不连 broker。
"""
import pytest
from unittest.mock import patch

from django.db import DatabaseError

from pharmacy.dispatch.dispatchers import CeleryDispatcher, InMemoryDispatcher, LoggingDispatcher
from pharmacy.dispatch.factory import get_dispatcher
from pharmacy.models import NotificationRecord
from pharmacy.serializers import serialize_notification
from pharmacy.tasks import deliver_notification
from pharmacy.workflow.notifications import notification_for_prescription
from pharmacy.workflow.types import PrescriptionStatus as S
from tests.conftest import PrescriptionFactory


@pytest.fixture
def ready_payload():
    p = PrescriptionFactory(status=S.READY_FOR_PICKUP, medication_name='Atorvastatin')
    return serialize_notification(notification_for_prescription(p))


class TestFactory:

    @pytest.mark.parametrize('channel,cls', [
        ('celery', CeleryDispatcher),
        ('logging', LoggingDispatcher),
        ('memory', InMemoryDispatcher),
    ])
    def test_registry(self, settings, channel, cls):
        settings.NOTIFICATION_DISPATCHER = channel
        assert isinstance(get_dispatcher(), cls)

    def test_unknown(self, settings):
        settings.NOTIFICATION_DISPATCHER = 'apns'
        with pytest.raises(ValueError):
            get_dispatcher()


class TestCeleryDispatcher:

    @patch('pharmacy.tasks.deliver_notification')
    def test_enqueues_task(self, mock_task, ready_payload):
        CeleryDispatcher().notify('Ready for Pickup', ready_payload)
        mock_task.delay.assert_called_once_with('Ready for Pickup', ready_payload)

    @patch('pharmacy.tasks.deliver_notification')
    def test_broker_failure_is_swallowed(self, mock_task, ready_payload):
        mock_task.delay.side_effect = ConnectionError('broker down')
        # fire-and-forget：不向调用方抛
        CeleryDispatcher().notify('Ready for Pickup', ready_payload)


@pytest.mark.django_db
class TestDeliverNotificationTask:

    def test_creates_inbox_record(self, ready_payload):
        deliver_notification('Ready for Pickup', ready_payload)

        record = NotificationRecord.objects.get(id=ready_payload['id'])
        assert record.for_user == 'user123'
        assert record.type == 'Ready for Pickup'
        assert record.message == 'Your prescription for Atorvastatin is ready for pickup'
        assert record.prescription_id == ready_payload['prescriptionId']
        assert record.is_read is False

    def test_duplicate_delivery_is_idempotent(self, ready_payload):
        deliver_notification('Ready for Pickup', ready_payload)
        deliver_notification('Ready for Pickup', ready_payload)

        assert NotificationRecord.objects.count() == 1

    def test_incomplete_payload_is_dropped(self):
        deliver_notification('Information', {'title': 'no id'})
        assert NotificationRecord.objects.count() == 0

    def test_database_error_triggers_retry(self, ready_payload):
        with patch.object(NotificationRecord.objects, 'get_or_create', side_effect=DatabaseError('locked')), \
                patch.object(deliver_notification, 'retry', side_effect=RuntimeError('retry scheduled')) as mock_retry:
            with pytest.raises(RuntimeError):
                deliver_notification('Ready for Pickup', ready_payload)

        assert mock_retry.call_args.kwargs['countdown'] == 10
