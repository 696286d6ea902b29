from django.contrib import admin
from django.utils.html import format_html

from ledger_core.models import Journal, JournalLine

from .ReadOnly import ReadOnlyAdmin


class JournalLineInline(admin.TabularInline):
    """Show JournalLine rows on the Journal page (view only)"""

    model = JournalLine
    extra = 0
    fields = ("sort_order", "account", "description", "debit", "credit",
              "project_code")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


# Register `Journal` model
@admin.register(Journal)
class JournalAdmin(ReadOnlyAdmin):
    list_display = (
        "number",
        "date",
        "period",
        "status",
        "kind",
        "source_doc_type",
        "source_doc_id",
        "balanced",
    )
    search_fields = ("number", "description", "source_doc_id")
    date_hierarchy = "date"
    inlines = [JournalLineInline]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("lines")

    """ Computed column for balance check """
    def balanced(self, obj):
        d, c = obj.compute_totals()
        return format_html("<b>{}</b> / <small>{}</small>", d, c)

    balanced.short_description = "Debits / Credits"


# Register `JournalLine` model
@admin.register(JournalLine)
class JournalLineAdmin(ReadOnlyAdmin):
    list_display = ("journal", "account", "debit", "credit", "project_code")
    search_fields = ("journal__number", "account__code", "project_code")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("journal", "account")
