from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Role, User


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "description")
    search_fields = ("name",)
    ordering = ("name",)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "national_id", "district",
                    "first_name", "last_name", "is_active")
    search_fields = ("username", "email", "national_id", "phone_number")
    list_filter = ("is_active", "is_staff", "roles", "district")
    filter_horizontal = ("groups", "user_permissions", "roles")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Adjudication", {"fields": ("national_id", "phone_number", "district", "roles")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Adjudication", {"fields": ("email", "national_id", "phone_number",
                                     "first_name", "last_name", "district", "roles")}),
    )
