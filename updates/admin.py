from django.contrib import admin
from .models import Update, UpdateRun


@admin.register(Update)
class UpdateAdmin(admin.ModelAdmin):
    list_display = ('title', 'source', 'published_at', 'pinned', 'is_public')
    list_filter = ('source', 'pinned', 'is_public')
    search_fields = ('title', 'summary', 'url')
    readonly_fields = ('hash', 'created_at', 'updated_at')


@admin.register(UpdateRun)
class UpdateRunAdmin(admin.ModelAdmin):
    list_display = ('source', 'started_at', 'finished_at', 'ok', 'items_fetched', 'items_inserted')
    list_filter = ('ok', 'source')
