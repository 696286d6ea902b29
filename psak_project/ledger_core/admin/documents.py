from django.contrib import admin

from ledger_core.models import (Bill, BillLine, Invoice, InvoiceLine, Payment,
                                Receipt)

from .ReadOnly import ReadOnlyAdmin


class BillLineInline(admin.TabularInline):
    model = BillLine
    extra = 0
    fields = ("sort_order", "description", "quantity", "unit_price", "amount",
              "expense_account", "project_code")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class InvoiceLineInline(admin.TabularInline):
    model = InvoiceLine
    extra = 0
    fields = ("sort_order", "description", "quantity", "unit_price", "amount",
              "revenue_account")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


# Documents are created and voided through services, so they are view-only here
@admin.register(Bill)
class BillAdmin(ReadOnlyAdmin):
    list_display = ("number", "vendor", "date", "due_date", "category",
                    "total", "status", "journal", "voided_at")
    search_fields = ("number", "vendor__name", "faktur_pajak_number")
    inlines = [BillLineInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("vendor", "journal")


@admin.register(Invoice)
class InvoiceAdmin(ReadOnlyAdmin):
    list_display = ("number", "client", "date", "due_date", "total", "status",
                    "journal", "voided_at")
    search_fields = ("number", "client__name")
    inlines = [InvoiceLineInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("client", "journal")


@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdmin):
    list_display = ("number", "bill", "vendor", "date", "amount",
                    "pph23_withheld", "journal", "voided_at")
    search_fields = ("number", "bill__number", "vendor__name")


@admin.register(Receipt)
class ReceiptAdmin(ReadOnlyAdmin):
    list_display = ("number", "invoice", "client", "date", "amount",
                    "pph23_withheld", "journal", "voided_at")
    search_fields = ("number", "invoice__number", "client__name")
