from django.contrib import admin
from .models import Team, JoinRequest, Invitation


class JoinRequestInline(admin.TabularInline):
    model = JoinRequest
    extra = 0
    readonly_fields = ('user', 'created_at')


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'leader', 'problem_statement_title', 'created_at')
    search_fields = ('name', 'leader__email', 'problem_statement_title')
    inlines = [JoinRequestInline]


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):
    list_display = ('team', 'inviter', 'invitee', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('team__name', 'invitee__email')
