from django.urls import path
from .views import (
    AdherenceView,
    MessagesReadView,
    NotificationListView,
    NotificationReadAllView,
    NotificationReadView,
    PatientPrescriptionListView,
    PharmacistMessageView,
    PickupView,
    PrescriptionCreateView,
    PrescriptionDetailView,
    PrescriptionStatusView,
    RefillView,
    UserReplyView,
)

urlpatterns = [
    path('prescriptions/', PrescriptionCreateView.as_view(), name='prescription-create'),
    path('prescriptions/<str:prescription_id>/', PrescriptionDetailView.as_view(), name='prescription-detail'),
    path('prescriptions/<str:prescription_id>/status/', PrescriptionStatusView.as_view(), name='prescription-status'),
    path('prescriptions/<str:prescription_id>/messages/pharmacist/', PharmacistMessageView.as_view(), name='prescription-pharmacist-message'),
    path('prescriptions/<str:prescription_id>/messages/reply/', UserReplyView.as_view(), name='prescription-user-reply'),
    path('prescriptions/<str:prescription_id>/messages/read/', MessagesReadView.as_view(), name='prescription-messages-read'),
    path('prescriptions/<str:prescription_id>/refill/', RefillView.as_view(), name='prescription-refill'),
    path('prescriptions/<str:prescription_id>/pickup/', PickupView.as_view(), name='prescription-pickup'),
    path('prescriptions/<str:prescription_id>/adherence/', AdherenceView.as_view(), name='prescription-adherence'),
    path('patients/<str:patient_id>/prescriptions/', PatientPrescriptionListView.as_view(), name='patient-prescriptions'),
    path('patients/<str:patient_id>/notifications/', NotificationListView.as_view(), name='patient-notifications'),
    path('patients/<str:patient_id>/notifications/read/', NotificationReadAllView.as_view(), name='patient-notifications-read'),
    path('notifications/<str:notification_id>/read/', NotificationReadView.as_view(), name='notification-read'),
]
