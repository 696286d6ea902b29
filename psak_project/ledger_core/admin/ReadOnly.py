from django.contrib import admin
from django.core.exceptions import PermissionDenied

"""Base admin for ledger rows: viewable, never editable through the admin."""
class ReadOnlyAdmin(admin.ModelAdmin):
    list_per_page = 50

    # make every model field readonly
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # The change page stays reachable so rows can be inspected;
    # every field on it is readonly.
    def has_change_permission(self, request, obj=None):
        return True

    def save_model(self, request, obj, form, change):
        raise PermissionDenied("Ledger rows cannot be changed via the admin.")

    # Disable admin actions like delete_selected
    def get_actions(self, request):
        return {}

    # Common filters if present
    def get_list_filter(self, request):
        possible = {f.name for f in self.model._meta.fields}
        return tuple(
            c for c in ("period", "status", "account", "action") if c in possible
        )
