from django.contrib import admin

from .models import Case, CaseDocument, CaseRemark, Hearing


class HearingInline(admin.TabularInline):
    model = Hearing
    extra = 0
    can_delete = False
    readonly_fields = ("sequence_no", "scheduled_for", "hearing_type",
                       "is_active", "hearing_order", "scheduled_by",
                       "reminder_sent")


class CaseRemarkInline(admin.TabularInline):
    model = CaseRemark
    extra = 0
    can_delete = False
    readonly_fields = ("remark_type", "remark", "proceedings",
                       "status_at_time", "author", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = ("tracking_code", "applicant_name", "case_type",
                    "status", "assigned_hearing_officer", "created_at")
    list_filter = ("status", "case_type")
    search_fields = ("tracking_code", "applicant_name", "applicant_email")
    readonly_fields = ("tracking_code", "status", "closed_at", "closed_by")
    inlines = [HearingInline, CaseRemarkInline]


@admin.register(Hearing)
class HearingAdmin(admin.ModelAdmin):
    list_display = ("case", "sequence_no", "hearing_type",
                    "scheduled_for", "is_active", "reminder_sent")
    list_filter = ("hearing_type", "is_active")


@admin.register(CaseDocument)
class CaseDocumentAdmin(admin.ModelAdmin):
    list_display = ("case", "document_type", "file_name",
                    "uploaded_by", "created_at")
    list_filter = ("document_type",)


@admin.register(CaseRemark)
class CaseRemarkAdmin(admin.ModelAdmin):
    list_display = ("case", "remark_type", "status_at_time",
                    "author", "created_at")
    list_filter = ("remark_type",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
