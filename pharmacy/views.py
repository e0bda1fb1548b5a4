"""
HTTP 入口。

View 只做三件事：intake 解析 → 调 service → serializer 输出。
业务异常直接 raise，由 exception_handler.unified_exception_handler 统一格式化。
"""

from rest_framework import status as http
from rest_framework.response import Response
from rest_framework.views import APIView

from . import intake, services
from .exceptions import ValidationError
from .serializers import serialize_inbox, serialize_prescription, serialize_prescription_list
from .workflow.types import PrescriptionStatus


class PrescriptionAPIView(APIView):
    """每个请求按 settings 组装一个 PrescriptionService。"""

    authentication_classes = []
    permission_classes = []

    def get_service(self):
        return services.get_prescription_service()


class PrescriptionCreateView(PrescriptionAPIView):
    """POST /api/prescriptions/ - 患者提交新处方（手工填写或拍照）"""

    def post(self, request):
        params = intake.parse_submission(request.data)
        prescription = self.get_service().submit(**params)
        return Response(serialize_prescription(prescription), status=http.HTTP_201_CREATED)


class PrescriptionDetailView(PrescriptionAPIView):
    """GET / DELETE /api/prescriptions/<id>/"""

    def get(self, request, prescription_id):
        prescription = self.get_service().get(prescription_id)
        return Response(serialize_prescription(prescription))

    def delete(self, request, prescription_id):
        self.get_service().delete(prescription_id)
        return Response(status=http.HTTP_204_NO_CONTENT)


class PatientPrescriptionListView(PrescriptionAPIView):
    """GET /api/patients/<patient_id>/prescriptions/?status=Billing&active=1&messages=1"""

    def get(self, request, patient_id):
        service = self.get_service()
        status_param = request.query_params.get('status')

        if status_param:
            try:
                status = PrescriptionStatus(status_param)
            except ValueError:
                raise ValidationError(
                    message=f"Unknown status: {status_param!r}.",
                    detail={'known_statuses': [s.value for s in PrescriptionStatus]},
                )
            prescriptions = service.list_by_status(patient_id, status)
        elif request.query_params.get('active') == '1':
            prescriptions = service.list_active(patient_id)
        elif request.query_params.get('messages') == '1':
            prescriptions = service.list_with_messages(patient_id)
        else:
            prescriptions = service.list_for_patient(patient_id)

        return Response(serialize_prescription_list(prescriptions))


class PrescriptionStatusView(PrescriptionAPIView):
    """POST /api/prescriptions/<id>/status/ - 药房推进状态"""

    def post(self, request, prescription_id):
        new_status, message, override = intake.parse_status_update(request.data)
        prescription = self.get_service().update_status(prescription_id, new_status, message, override=override)
        return Response(serialize_prescription(prescription))


class PharmacistMessageView(PrescriptionAPIView):
    """POST /api/prescriptions/<id>/messages/pharmacist/"""

    def post(self, request, prescription_id):
        content = intake.parse_message_content(request.data)
        prescription = self.get_service().add_pharmacist_message(prescription_id, content)
        return Response(serialize_prescription(prescription), status=http.HTTP_201_CREATED)


class UserReplyView(PrescriptionAPIView):
    """POST /api/prescriptions/<id>/messages/reply/ - 药剂师先开口后患者才能回复"""

    def post(self, request, prescription_id):
        content = intake.parse_message_content(request.data)
        prescription = self.get_service().add_user_reply(prescription_id, content)
        return Response(serialize_prescription(prescription), status=http.HTTP_201_CREATED)


class MessagesReadView(PrescriptionAPIView):
    """POST /api/prescriptions/<id>/messages/read/"""

    def post(self, request, prescription_id):
        prescription = self.get_service().mark_messages_read(prescription_id)
        return Response(serialize_prescription(prescription))


class RefillView(PrescriptionAPIView):
    """POST /api/prescriptions/<id>/refill/ - 返回新建的续药处方"""

    def post(self, request, prescription_id):
        refill = self.get_service().request_refill(prescription_id)
        return Response(serialize_prescription(refill), status=http.HTTP_201_CREATED)


class PickupView(PrescriptionAPIView):
    """POST /api/prescriptions/<id>/pickup/"""

    def post(self, request, prescription_id):
        prescription = self.get_service().confirm_pickup(prescription_id)
        return Response(serialize_prescription(prescription))


class AdherenceView(PrescriptionAPIView):
    """POST /api/prescriptions/<id>/adherence/"""

    def post(self, request, prescription_id):
        percentage = intake.parse_adherence(request.data)
        prescription = self.get_service().update_adherence(prescription_id, percentage)
        return Response(serialize_prescription(prescription))


# ── Notifications ──────────────────────────────────────────────────────────

class NotificationListView(APIView):
    """GET /api/patients/<patient_id>/notifications/"""

    authentication_classes = []
    permission_classes = []

    def get(self, request, patient_id):
        records = services.list_notifications(patient_id)
        unread = services.unread_notification_count(patient_id)
        return Response(serialize_inbox(records, unread))


class NotificationReadView(APIView):
    """POST /api/notifications/<id>/read/"""

    authentication_classes = []
    permission_classes = []

    def post(self, request, notification_id):
        services.mark_notification_read(notification_id)
        return Response({'id': notification_id, 'isRead': True})


class NotificationReadAllView(APIView):
    """POST /api/patients/<patient_id>/notifications/read/"""

    authentication_classes = []
    permission_classes = []

    def post(self, request, patient_id):
        marked = services.mark_all_notifications_read(patient_id)
        return Response({'marked': marked, 'unreadCount': 0})
