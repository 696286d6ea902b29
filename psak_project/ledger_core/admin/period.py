from django.contrib import admin

from ledger_core.models import PeriodAudit, PeriodSnapshot, PeriodStatus

from .ReadOnly import ReadOnlyAdmin


# Closing and reopening go through services.periods, never the admin
@admin.register(PeriodStatus)
class PeriodStatusAdmin(ReadOnlyAdmin):
    list_display = ("period", "status", "closed_at", "closed_by", "audit",
                    "reopened_at", "reopened_by")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related(
            "closed_by", "reopened_by")


@admin.register(PeriodSnapshot)
class PeriodSnapshotAdmin(ReadOnlyAdmin):
    list_display = ("period", "account", "snapshot_date", "debit_total",
                    "credit_total", "balance")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("account")


@admin.register(PeriodAudit)
class PeriodAuditAdmin(ReadOnlyAdmin):
    list_display = ("id", "period", "status", "critical_count", "created_at",
                    "completed_at")

    def critical_count(self, obj):
        return len(obj.critical_issues)

    critical_count.short_description = "Critical"
