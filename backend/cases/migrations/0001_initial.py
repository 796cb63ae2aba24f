import cases.models
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

_TERMINAL = ["approved_resolved", "rejected_closed"]

_STATUS_CHOICES = [
    ("submitted", "Submitted"),
    ("complete", "Complete"),
    ("incomplete", "Incomplete"),
    ("hearing_scheduled", "Hearing Scheduled"),
    ("under_hearing", "Under Hearing"),
    ("approved_resolved", "Approved / Resolved"),
    ("rejected_closed", "Rejected / Closed"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Case",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("tracking_code", models.CharField(default=cases.models.generate_tracking_code, editable=False, max_length=20, unique=True, verbose_name="Tracking Code")),
                ("applicant_name", models.CharField(max_length=255, verbose_name="Applicant Name")),
                ("applicant_email", models.EmailField(db_index=True, max_length=254, verbose_name="Applicant Email")),
                ("applicant_phone", models.CharField(blank=True, default="", max_length=20, verbose_name="Applicant Phone")),
                ("applicant_national_id", models.CharField(blank=True, db_index=True, default="", max_length=20, verbose_name="Applicant National ID")),
                ("organization_name", models.CharField(blank=True, default="", max_length=255, verbose_name="Organization Name")),
                ("organization_address", models.CharField(blank=True, default="", max_length=500, verbose_name="Organization Address")),
                ("case_type", models.CharField(max_length=100, verbose_name="Case Type")),
                ("description", models.JSONField(blank=True, default=dict, verbose_name="Description")),
                ("status", models.CharField(choices=_STATUS_CHOICES, db_index=True, default="submitted", max_length=30, verbose_name="Current Status")),
                ("closed_at", models.DateTimeField(blank=True, null=True, verbose_name="Closed At")),
                ("applicant_user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="applications", to=settings.AUTH_USER_MODEL, verbose_name="Applicant Account")),
                ("assigned_registrar", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="registrar_cases", to=settings.AUTH_USER_MODEL, verbose_name="Assigned Registrar")),
                ("assigned_hearing_officer", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="hearing_officer_cases", to=settings.AUTH_USER_MODEL, verbose_name="Assigned Hearing Officer")),
                ("closed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="closed_cases", to=settings.AUTH_USER_MODEL, verbose_name="Closed By")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_cases", to=settings.AUTH_USER_MODEL, verbose_name="Created By")),
                ("updated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="updated_cases", to=settings.AUTH_USER_MODEL, verbose_name="Updated By")),
            ],
            options={
                "verbose_name": "Case",
                "verbose_name_plural": "Cases",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="cases_case_status_created_idx"),
                    models.Index(fields=["assigned_hearing_officer", "status"], name="cases_case_officer_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("closed_at__isnull", False), ("status__in", _TERMINAL)),
                            models.Q(
                                models.Q(("status__in", _TERMINAL), _negated=True),
                                ("closed_at__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="case_closed_at_iff_terminal",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CaseDocument",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("document_type", models.CharField(choices=[("hearing_order", "Hearing Order"), ("supporting", "Supporting Document")], default="hearing_order", max_length=30, verbose_name="Document Type")),
                ("file", models.FileField(upload_to="case_documents/%Y/%m/", verbose_name="File")),
                ("file_name", models.CharField(blank=True, default="", max_length=255, verbose_name="Original File Name")),
                ("content_type", models.CharField(blank=True, default="", max_length=100, verbose_name="Content Type")),
                ("size", models.PositiveBigIntegerField(default=0, verbose_name="Size (bytes)")),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="documents", to="cases.case", verbose_name="Case")),
                ("uploaded_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="uploaded_case_documents", to=settings.AUTH_USER_MODEL, verbose_name="Uploaded By")),
            ],
            options={
                "verbose_name": "Case Document",
                "verbose_name_plural": "Case Documents",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Hearing",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("scheduled_for", models.DateTimeField(db_index=True, verbose_name="Hearing Date/Time")),
                ("hearing_type", models.CharField(choices=[("initial", "Initial"), ("subsequent", "Subsequent"), ("extension", "Extension (Adjournment)")], default="initial", max_length=20, verbose_name="Hearing Type")),
                ("sequence_no", models.PositiveIntegerField(default=1, verbose_name="Sequence No.")),
                ("is_active", models.BooleanField(db_index=True, default=True, verbose_name="Active")),
                ("reminder_sent", models.BooleanField(default=False, verbose_name="Reminder Sent")),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="hearings", to="cases.case", verbose_name="Case")),
                ("hearing_order", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="hearings", to="cases.casedocument", verbose_name="Hearing Order")),
                ("scheduled_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="scheduled_hearings", to=settings.AUTH_USER_MODEL, verbose_name="Scheduled By")),
            ],
            options={
                "verbose_name": "Hearing",
                "verbose_name_plural": "Hearings",
                "ordering": ["case_id", "sequence_no"],
                "constraints": [
                    models.UniqueConstraint(fields=("case", "sequence_no"), name="unique_hearing_sequence_per_case"),
                    models.UniqueConstraint(condition=models.Q(("is_active", True)), fields=("case",), name="one_active_hearing_per_case"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CaseRemark",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("remark", models.TextField(blank=True, default="", verbose_name="Remark")),
                ("proceedings", models.TextField(blank=True, default="", verbose_name="Proceedings")),
                ("remark_type", models.CharField(choices=[("complete", "Marked Complete"), ("incomplete", "Marked Incomplete"), ("resubmitted", "Resubmitted"), ("hearing_scheduled", "Hearing Scheduled"), ("adjourned", "Adjourned"), ("approved", "Approved"), ("rejected", "Rejected")], max_length=30, verbose_name="Remark Type")),
                ("status_at_time", models.CharField(choices=_STATUS_CHOICES, max_length=30, verbose_name="Status at Time")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("author", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="case_remarks", to=settings.AUTH_USER_MODEL, verbose_name="Author")),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="remarks", to="cases.case", verbose_name="Case")),
            ],
            options={
                "verbose_name": "Case Remark",
                "verbose_name_plural": "Case Remarks",
                "ordering": ["created_at", "pk"],
            },
        ),
    ]
