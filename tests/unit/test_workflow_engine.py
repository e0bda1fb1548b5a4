"""
Unit tests for the status workflow engine.

纯函数测试，不需要数据库：
1. advance_status 的历史追加和通知标记
2. forward / permissive 流转策略
3. 续药 / 取药的前置条件
4. 新处方提交（手工 / 拍照）
5. 依从性和查询辅助函数
"""
import pytest
from datetime import timedelta
from django.utils import timezone

from pharmacy.exceptions import (
    InvalidTransitionError,
    PickupNotReadyError,
    RefillIneligibleError,
    ValidationError,
)
from pharmacy.workflow import engine
from pharmacy.workflow.types import (
    PrescriptionStatus as S,
    PrescriptionType,
    StatusUpdate,
)
from tests.conftest import PrescriptionFactory, chat


# -------------------------------------------------------------------
# advance_status
# -------------------------------------------------------------------

class TestAdvanceStatus:

    @pytest.mark.parametrize('target', list(S))
    def test_any_status_appends_exactly_one_entry(self, target):
        p = PrescriptionFactory(status=S.BILLING)
        now = timezone.now()

        result = engine.advance_status(p, target, 'note', now=now)

        assert result.status == target
        assert result.status_history[-1] == StatusUpdate(target, now, 'note')
        assert len(result.status_history) == len(p.status_history) + 1

    def test_input_not_mutated(self):
        p = PrescriptionFactory(status=S.ENTERED)
        engine.advance_status(p, S.PHARMACIST_CHECK)

        assert p.status == S.ENTERED
        assert len(p.status_history) == 1

    @pytest.mark.parametrize('target', [S.REQUEST_RECEIVED, S.PREP_PACKAGING, S.READY_FOR_PICKUP])
    def test_notify_worthy_statuses_set_flag(self, target):
        p = PrescriptionFactory(status=S.ENTERED)
        assert engine.advance_status(p, target).notified_on_status_change is True

    @pytest.mark.parametrize('target', [S.ENTERED, S.PHARMACIST_CHECK, S.BILLING, S.COMPLETED])
    def test_other_statuses_leave_unset_flag_false(self, target):
        p = PrescriptionFactory(status=S.ENTERED)
        assert engine.advance_status(p, target).notified_on_status_change is False

    @pytest.mark.parametrize('target', [S.ENTERED, S.PHARMACIST_CHECK, S.BILLING, S.COMPLETED])
    def test_flag_is_sticky_once_set(self, target):
        p = PrescriptionFactory(status=S.PREP_PACKAGING, notified_on_status_change=True)
        assert engine.advance_status(p, target).notified_on_status_change is True

    def test_history_is_only_appended(self):
        p = PrescriptionFactory(status=S.REQUEST_RECEIVED)
        p = engine.advance_status(p, S.ENTERED)
        p = engine.advance_status(p, S.PHARMACIST_CHECK)

        assert [u.status for u in p.status_history] == [S.REQUEST_RECEIVED, S.ENTERED, S.PHARMACIST_CHECK]
        assert p.status == p.status_history[-1].status


class TestStatusOrder:

    def test_index_follows_declaration(self):
        assert [s.index for s in S] == list(range(7))

    def test_is_reached(self):
        assert S.ENTERED.is_reached(S.BILLING)
        assert S.BILLING.is_reached(S.BILLING)
        assert not S.READY_FOR_PICKUP.is_reached(S.BILLING)


class TestCheckTransition:

    def test_forward_allows_moving_ahead_and_skipping(self):
        engine.check_transition(S.ENTERED, S.BILLING)
        engine.check_transition(S.ENTERED, S.ENTERED)

    def test_forward_rejects_backward(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            engine.check_transition(S.COMPLETED, S.REQUEST_RECEIVED)

        assert exc_info.value.code == 'INVALID_TRANSITION'
        assert exc_info.value.detail['current_status'] == 'Completed'

    def test_permissive_allows_backward(self):
        engine.check_transition(S.COMPLETED, S.REQUEST_RECEIVED, engine.TRANSITION_PERMISSIVE)


# -------------------------------------------------------------------
# Refill
# -------------------------------------------------------------------

class TestRequestRefill:

    @pytest.mark.parametrize('status', [s for s in S if s != S.COMPLETED])
    def test_not_completed_is_ineligible(self, status):
        p = PrescriptionFactory(status=status, refills_remaining=2)
        with pytest.raises(RefillIneligibleError):
            engine.request_refill(p)

    def test_no_refills_left_is_ineligible(self):
        p = PrescriptionFactory(status=S.COMPLETED, refills_remaining=0)
        with pytest.raises(RefillIneligibleError) as exc_info:
            engine.request_refill(p)

        assert exc_info.value.http_status == 409
        assert exc_info.value.detail['refills_remaining'] == 0

    def test_refill_creates_new_record(self):
        p = PrescriptionFactory(status=S.COMPLETED, refills_remaining=2, messages=chat('pharmacist', 'user'))
        now = timezone.now()

        refill = engine.request_refill(p, now=now)

        assert refill.id != p.id
        assert refill.rx_number.startswith('RX') and len(refill.rx_number) == 8
        assert refill.refills_remaining == 1
        assert refill.status == S.REQUEST_RECEIVED
        assert refill.type == PrescriptionType.REFILL
        assert refill.prescribed_date == now
        assert refill.status_history == (StatusUpdate(S.REQUEST_RECEIVED, now, 'Refill request received'),)
        assert refill.messages == ()
        assert refill.latest_pharmacist_message is None
        assert refill.notified_on_status_change is True
        # 原处方不变
        assert p.refills_remaining == 2
        assert len(p.messages) == 2


# -------------------------------------------------------------------
# Pickup
# -------------------------------------------------------------------

class TestConfirmPickup:

    @pytest.mark.parametrize('status', [s for s in S if s != S.READY_FOR_PICKUP])
    def test_not_ready(self, status):
        with pytest.raises(PickupNotReadyError):
            engine.confirm_pickup(PrescriptionFactory(status=status))

    def test_ready_becomes_completed(self):
        p = PrescriptionFactory(status=S.READY_FOR_PICKUP)
        result = engine.confirm_pickup(p)

        assert result.status == S.COMPLETED
        assert len(result.status_history) == len(p.status_history) + 1
        assert result.status_history[-1].message == 'Prescription picked up by patient'

    def test_prep_to_pickup_scenario(self):
        p = PrescriptionFactory(status=S.PREP_PACKAGING)

        ready = engine.advance_status(p, S.READY_FOR_PICKUP)
        assert ready.notified_on_status_change is True

        done = engine.confirm_pickup(ready)
        assert done.status == S.COMPLETED
        assert len(done.status_history) == 3
        assert done.notified_on_status_change is True


# -------------------------------------------------------------------
# Submission
# -------------------------------------------------------------------

class TestNewPrescriptionRequest:

    def test_manual_entry(self):
        now = timezone.now()
        p = engine.new_prescription_request(
            for_user='user123', for_user_name='John Doe',
            medication_name='Lisinopril', dosage='10mg', instructions='Once daily',
            now=now,
        )

        assert p.status == S.REQUEST_RECEIVED
        assert p.status_history == (StatusUpdate(S.REQUEST_RECEIVED, now, 'Prescription request received'),)
        assert p.refills_remaining == 3
        assert p.expiry_date == now + timedelta(days=180)
        assert p.notified_on_status_change is True
        assert p.total_cost is None

    def test_refill_type_defaults_to_zero_refills(self):
        p = engine.new_prescription_request(
            for_user='u', for_user_name='U', prescription_type=PrescriptionType.REFILL,
            medication_name='A', dosage='1', instructions='x',
        )
        assert p.refills_remaining == 0

    def test_photo_upload_uses_placeholders(self):
        p = engine.new_prescription_request(
            for_user='u', for_user_name='U',
            image_url='https://cdn.example.com/rx.jpg', doctor_name='Dr. Lee',
        )

        assert p.medication_name == 'Prescription from Photo'
        assert p.dosage == 'To be determined'
        assert p.instructions == 'See uploaded prescription image'
        assert p.notes == 'Prescription submitted via photo. Doctor: Dr. Lee'


# -------------------------------------------------------------------
# Adherence & queries
# -------------------------------------------------------------------

class TestAdherence:

    def test_update_sets_timestamps(self):
        now = timezone.now()
        p = engine.update_adherence(PrescriptionFactory(), 87.5, now=now)

        assert p.adherence_percentage == 87.5
        assert p.last_taken == now
        assert p.next_due_date == now + timedelta(days=1)

    @pytest.mark.parametrize('value', [-1, 100.1, None])
    def test_out_of_range(self, value):
        with pytest.raises(ValidationError) as exc_info:
            engine.update_adherence(PrescriptionFactory(), value)
        assert exc_info.value.code == 'INVALID_ADHERENCE'

    @pytest.mark.parametrize('value,level', [
        (100, 'Excellent'), (90, 'Excellent'), (75, 'Good'), (60, 'Fair'), (59.9, 'Needs Improvement'),
    ])
    def test_levels(self, value, level):
        assert engine.adherence_level(value) == level


class TestQueries:

    def test_filters(self):
        done = PrescriptionFactory(status=S.COMPLETED, for_user='family001')
        billing = PrescriptionFactory(status=S.BILLING, messages=chat('pharmacist'))
        received = PrescriptionFactory(status=S.REQUEST_RECEIVED)
        ps = [done, billing, received]

        assert engine.active(ps) == [billing, received]
        assert engine.by_status(ps, S.BILLING) == [billing]
        assert engine.for_member(ps, 'family001') == [done]
        assert engine.with_pharmacist_messages(ps) == [billing]
