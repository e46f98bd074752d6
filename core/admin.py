from django.contrib import admin
from .models import AdminConfig, AdminLog


@admin.register(AdminLog)
class AdminLogAdmin(admin.ModelAdmin):
    list_display = ('action', 'actor', 'target_type', 'target_id', 'created_at')
    list_filter = ('action', 'target_type', 'created_at')
    search_fields = ('action', 'actor__email')
    readonly_fields = ('actor', 'action', 'target_type', 'target_id', 'meta', 'created_at')


@admin.register(AdminConfig)
class AdminConfigAdmin(admin.ModelAdmin):
    list_display = ('key', 'description', 'updated_at')
    search_fields = ('key',)
