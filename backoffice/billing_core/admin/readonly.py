from django.contrib import admin
from django.core.exceptions import PermissionDenied

from .mixins import TenantAdminMixin


class ReadOnlyAdmin(TenantAdminMixin, admin.ModelAdmin):
    """Base admin for rows that are only ever written by services."""
    list_per_page = 50

    # make every model field readonly
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # Prevent any attempt to save via the admin UI
    def save_model(self, request, obj, form, change):
        raise PermissionDenied("Rows cannot be changed via the admin.")

    # Disable admin actions like delete_selected
    def get_actions(self, request):
        return {}
