from django.contrib import admin

from ledger_core.models import AuditLog

from .ReadOnly import ReadOnlyAdmin


# Register `AuditLog` model
@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdmin):
    list_display = (
        "id",
        "user",
        "action",
        "object_type",
        "object_id",
        "reason",
        "created_at",
    )
    search_fields = ("object_type", "object_id", "user__username")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        return super().get_queryset(request).select_related("user")
