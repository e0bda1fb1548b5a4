from django.db import models

from .workflow.types import NotificationType, PrescriptionStatus, PrescriptionType


class PrescriptionRecord(models.Model):
    STATUS_CHOICES = [(s.value, s.value) for s in PrescriptionStatus]
    TYPE_CHOICES = [(t.value, t.value) for t in PrescriptionType]

    id = models.CharField(primary_key=True, max_length=64, editable=False)
    rx_number = models.CharField(max_length=20)
    medication_name = models.CharField(max_length=200)
    dosage = models.CharField(max_length=100)
    instructions = models.TextField()
    prescribed_date = models.DateTimeField()
    expiry_date = models.DateTimeField()
    refills_remaining = models.IntegerField(default=0)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES)
    type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    for_user = models.CharField(max_length=64, db_index=True)
    for_user_name = models.CharField(max_length=200)
    # 以下两个 JSON 列存的是 codec 的文档格式
    status_history = models.JSONField(default=list, blank=True)
    messages = models.JSONField(default=list, blank=True)
    # 旧版客户端读取的单字符串字段，由 repository 从 messages 同步
    pharmacist_message = models.TextField(blank=True, null=True)
    messages_read_at = models.DateTimeField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    image_url = models.CharField(max_length=500, blank=True, null=True)
    total_cost = models.FloatField(blank=True, null=True)
    insurance_coverage = models.FloatField(blank=True, null=True)
    copay_amount = models.FloatField(blank=True, null=True)
    dispensing_fee = models.FloatField(blank=True, null=True)
    notified_on_status_change = models.BooleanField(default=False)
    adherence_percentage = models.FloatField(default=100.0)
    last_taken = models.DateTimeField(blank=True, null=True)
    next_due_date = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'prescriptions'


class NotificationRecord(models.Model):
    TYPE_CHOICES = [(t.value, t.value) for t in NotificationType]

    id = models.CharField(primary_key=True, max_length=64, editable=False)
    for_user = models.CharField(max_length=64, db_index=True)
    type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    timestamp = models.DateTimeField()
    is_read = models.BooleanField(default=False)
    prescription_id = models.CharField(max_length=64, blank=True, null=True)
    action_url = models.CharField(max_length=500, blank=True, null=True)
    related_badge_id = models.CharField(max_length=64, blank=True, null=True)
    related_health_info_id = models.CharField(max_length=64, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-timestamp']
