from django.contrib import admin
from .models import Resource


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ('title', 'category', 'status', 'added_by', 'approved_by', 'created_at')
    list_filter = ('status', 'category')
    search_fields = ('title', 'description', 'url', 'file_name')
    readonly_fields = ('file_key', 'file_url', 'file_download_url', 'file_size', 'created_at', 'updated_at')
