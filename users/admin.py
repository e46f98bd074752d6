from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User, PreapprovedStudent

@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ('email', 'name', 'role', 'gender', 'year', 'team', 'verified', 'is_admin')
    list_filter = ('role', 'gender', 'verified', 'is_admin', 'is_staff', 'is_active')
    search_fields = ('email', 'name', 'roll_number', 'username')
    fieldsets = UserAdmin.fieldsets + (
        ('Portal', {'fields': ('name', 'gender', 'year', 'roll_number', 'role', 'verified', 'is_admin', 'team')}),
        ('Verification', {'fields': ('verification_method', 'document_key', 'photo_url', 'social_profiles', 'admin_notes')}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Portal', {'fields': ('email', 'name', 'gender', 'role')}),
    )


@admin.register(PreapprovedStudent)
class PreapprovedStudentAdmin(admin.ModelAdmin):
    list_display = ('roll_number', 'name', 'created_at')
    search_fields = ('roll_number', 'name')
