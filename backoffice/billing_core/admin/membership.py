from django.contrib import admin

from ..models import Account, AccountMembership


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "owner", "created_at")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(AccountMembership)
class AccountMembershipAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "account", "role", "is_active")
    list_filter = ("role", "is_active", "account")
    search_fields = ("user__username", "account__name")
