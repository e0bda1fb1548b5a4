"""
Shared fixtures for all tests.

factory-boy factories live here so both unit/ and integration/ can import them.
"""
import pytest
from datetime import timedelta
from django.test import Client
from django.utils import timezone

import factory
from pharmacy.dispatch.dispatchers import InMemoryDispatcher
from pharmacy.models import NotificationRecord
from pharmacy.repository.django_orm import DjangoPrescriptionRepository
from pharmacy.repository.memory import InMemoryPrescriptionRepository
from pharmacy.services import PrescriptionService
from pharmacy.workflow.types import (
    ChatMessage,
    Prescription,
    PrescriptionStatus,
    PrescriptionType,
    StatusUpdate,
    new_id,
)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class PrescriptionFactory(factory.Factory):
    """领域对象工厂。status_history 默认只有一条，且与 status 一致。"""

    class Meta:
        model = Prescription

    id = factory.LazyFunction(new_id)
    rx_number = factory.Sequence(lambda n: f'RX{100000 + n}')
    medication_name = 'Metformin'
    dosage = '500mg'
    instructions = 'Take one tablet twice daily with meals'
    prescribed_date = factory.LazyFunction(lambda: timezone.now() - timedelta(days=7))
    expiry_date = factory.LazyAttribute(lambda o: o.prescribed_date + timedelta(days=180))
    refills_remaining = 3
    status = PrescriptionStatus.REQUEST_RECEIVED
    type = PrescriptionType.NEW
    for_user = 'user123'
    for_user_name = 'John Doe'
    status_history = factory.LazyAttribute(lambda o: (StatusUpdate(o.status, o.prescribed_date),))


class NotificationRecordFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = NotificationRecord

    id = factory.LazyFunction(new_id)
    for_user = 'user123'
    type = 'Ready for Pickup'
    title = 'Ready for Pickup'
    message = 'Your prescription for Metformin is ready for pickup'
    timestamp = factory.LazyFunction(timezone.now)


def chat(*senders, start=None):
    """
    快速构造聊天记录：chat('pharmacist', 'user', 'pharmacist')
    每条间隔一分钟。
    """
    start = start or timezone.now() - timedelta(hours=1)
    return tuple(
        ChatMessage(
            id=new_id(),
            content=f'message {i}',
            timestamp=start + timedelta(minutes=i),
            is_from_user=(sender == 'user'),
        )
        for i, sender in enumerate(senders)
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _logging_dispatcher(settings):
    """默认不连 Celery broker；需要验证 Celery 的测试自己改回 'celery' 并 mock task。"""
    settings.NOTIFICATION_DISPATCHER = 'logging'
    settings.PRESCRIPTION_REPOSITORY = 'django'
    settings.PRESCRIPTION_TRANSITIONS = 'forward'


@pytest.fixture
def memory_repo():
    return InMemoryPrescriptionRepository()


@pytest.fixture
def django_repo():
    return DjangoPrescriptionRepository()


@pytest.fixture
def dispatcher():
    return InMemoryDispatcher()


@pytest.fixture
def service(memory_repo, dispatcher):
    return PrescriptionService(repository=memory_repo, dispatcher=dispatcher)


@pytest.fixture
def api_client():
    """Django test client for integration tests."""
    return Client()


@pytest.fixture
def sample_submission():
    """Minimal valid payload for POST /api/prescriptions/."""
    return {
        'forUser': 'user123',
        'forUserName': 'John Doe',
        'medicationName': 'Lisinopril',
        'dosage': '10mg',
        'instructions': 'Take one tablet daily',
    }
