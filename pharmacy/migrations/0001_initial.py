from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='PrescriptionRecord',
            fields=[
                ('id', models.CharField(editable=False, max_length=64, primary_key=True, serialize=False)),
                ('rx_number', models.CharField(max_length=20)),
                ('medication_name', models.CharField(max_length=200)),
                ('dosage', models.CharField(max_length=100)),
                ('instructions', models.TextField()),
                ('prescribed_date', models.DateTimeField()),
                ('expiry_date', models.DateTimeField()),
                ('refills_remaining', models.IntegerField(default=0)),
                ('status', models.CharField(choices=[
                    ('Request Received', 'Request Received'),
                    ('Entered into System', 'Entered into System'),
                    ('Pharmacist Check', 'Pharmacist Check'),
                    ('Prep & Packaging', 'Prep & Packaging'),
                    ('Billing', 'Billing'),
                    ('Ready for Pickup', 'Ready for Pickup'),
                    ('Completed', 'Completed'),
                ], max_length=32)),
                ('type', models.CharField(choices=[
                    ('New Prescription', 'New Prescription'),
                    ('Refill', 'Refill'),
                ], max_length=32)),
                ('for_user', models.CharField(db_index=True, max_length=64)),
                ('for_user_name', models.CharField(max_length=200)),
                ('status_history', models.JSONField(blank=True, default=list)),
                ('messages', models.JSONField(blank=True, default=list)),
                ('pharmacist_message', models.TextField(blank=True, null=True)),
                ('messages_read_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('image_url', models.CharField(blank=True, max_length=500, null=True)),
                ('total_cost', models.FloatField(blank=True, null=True)),
                ('insurance_coverage', models.FloatField(blank=True, null=True)),
                ('copay_amount', models.FloatField(blank=True, null=True)),
                ('dispensing_fee', models.FloatField(blank=True, null=True)),
                ('notified_on_status_change', models.BooleanField(default=False)),
                ('adherence_percentage', models.FloatField(default=100.0)),
                ('last_taken', models.DateTimeField(blank=True, null=True)),
                ('next_due_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'prescriptions',
            },
        ),
        migrations.CreateModel(
            name='NotificationRecord',
            fields=[
                ('id', models.CharField(editable=False, max_length=64, primary_key=True, serialize=False)),
                ('for_user', models.CharField(db_index=True, max_length=64)),
                ('type', models.CharField(choices=[
                    ('Request Received', 'Request Received'),
                    ('Prep & Packaging', 'Prep & Packaging'),
                    ('Ready for Pickup', 'Ready for Pickup'),
                    ('Pharmacist Message', 'Pharmacist Message'),
                    ('Medication Reminder', 'Medication Reminder'),
                    ('Health Information', 'Health Information'),
                    ('New Badge', 'New Badge'),
                    ('Information', 'Information'),
                ], max_length=32)),
                ('title', models.CharField(max_length=200)),
                ('message', models.TextField()),
                ('timestamp', models.DateTimeField()),
                ('is_read', models.BooleanField(default=False)),
                ('prescription_id', models.CharField(blank=True, max_length=64, null=True)),
                ('action_url', models.CharField(blank=True, max_length=500, null=True)),
                ('related_badge_id', models.CharField(blank=True, max_length=64, null=True)),
                ('related_health_info_id', models.CharField(blank=True, max_length=64, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'notifications',
                'ordering': ['-timestamp'],
            },
        ),
    ]
