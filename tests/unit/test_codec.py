"""
Unit tests for the document codec.

重点：
1. 文档形状（camelCase、枚举存展示字符串、可选字段缺省不出现）
2. 旧版 pharmacistMessage 单字段的双向兼容
3. 坏文档 → DecodeError
"""
import pytest

from pharmacy.exceptions import DecodeError
from pharmacy.repository.codec import prescription_from_document, prescription_to_document
from pharmacy.workflow.types import PrescriptionStatus as S
from tests.conftest import PrescriptionFactory, chat


class TestEncode:

    def test_enum_values_are_display_strings(self):
        doc = prescription_to_document(PrescriptionFactory(status=S.READY_FOR_PICKUP))

        assert doc['status'] == 'Ready for Pickup'
        assert doc['type'] == 'New Prescription'
        assert doc['statusHistory'][0]['status'] == 'Ready for Pickup'

    def test_absent_optionals_are_omitted(self):
        doc = prescription_to_document(PrescriptionFactory())

        for key in ('notes', 'imageUrl', 'totalCost', 'copayAmount', 'lastTaken', 'pharmacistMessage', 'pharmacistMessages'):
            assert key not in doc

    def test_billing_figures_are_independent(self):
        doc = prescription_to_document(PrescriptionFactory(copay_amount=10.99))

        assert doc['copayAmount'] == 10.99
        assert 'totalCost' not in doc

    def test_legacy_field_mirrors_latest_pharmacist_message(self):
        messages = chat('pharmacist', 'user', 'pharmacist')
        doc = prescription_to_document(PrescriptionFactory(messages=messages))

        assert doc['pharmacistMessage'] == messages[2].content
        assert len(doc['pharmacistMessages']) == 3


class TestDecode:

    def test_restores_encoded_prescription(self):
        original = PrescriptionFactory(status=S.BILLING, messages=chat('pharmacist', 'user'), total_cost=45.99)
        restored = prescription_from_document(prescription_to_document(original))

        assert restored == original

    def test_legacy_only_document_gets_a_thread(self):
        doc = prescription_to_document(PrescriptionFactory())
        doc['pharmacistMessage'] = "We're contacting your doctor."

        restored = prescription_from_document(doc)

        assert len(restored.messages) == 1
        assert restored.messages[0].is_from_user is False
        assert restored.messages[0].content == "We're contacting your doctor."

    def test_missing_required_field(self):
        doc = prescription_to_document(PrescriptionFactory())
        del doc['rxNumber']

        with pytest.raises(DecodeError) as exc_info:
            prescription_from_document(doc)

        assert exc_info.value.detail['missing_fields'] == ['rxNumber']

    def test_unknown_status(self):
        doc = prescription_to_document(PrescriptionFactory())
        doc['status'] = 'Shipped'

        with pytest.raises(DecodeError):
            prescription_from_document(doc)

    def test_malformed_history_entry_is_skipped(self):
        doc = prescription_to_document(PrescriptionFactory())
        doc['statusHistory'].append({'status': 'Nope', 'timestamp': 'garbage'})

        assert len(prescription_from_document(doc).status_history) == 1
