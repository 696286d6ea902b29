from django.contrib import admin

from ledger_core.models import Account, Client, Project, Vendor


# Register `Account` model
@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "ac_type", "normal_side", "parent_code",
                    "is_active")
    list_filter = ("ac_type", "is_active")
    search_fields = ("code", "name")
    ordering = ("code",)

    # code and type freeze once journal lines point at the account
    def get_readonly_fields(self, request, obj=None):
        if obj is not None and obj.is_referenced():
            return ("code", "ac_type")
        return ()

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_referenced():
            return False
        return super().has_delete_permission(request, obj)


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ("name", "npwp", "provides_faktur_pajak",
                    "subject_to_pph23", "pph23_rate", "payment_terms",
                    "is_active")
    list_filter = ("provides_faktur_pajak", "subject_to_pph23", "is_active")
    search_fields = ("name", "npwp")


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("name", "npwp", "withholds_pph23", "pph23_rate",
                    "payment_terms", "is_active")
    list_filter = ("withholds_pph23", "is_active")
    search_fields = ("name", "npwp")


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "client", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")
