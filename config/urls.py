from django.contrib import admin
from django.urls import path, include
from core.views import HealthCheckView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/', include('authx.urls')),
    path('api/users/', include('users.urls')),
    path('api/teams/', include('teams.urls')),
    path('api/invitations/', include('teams.urls_invitations')),
    path('api/resources/', include('resources.urls')),
    path('api/ideas/', include('ideas.urls')),
    path('api/comments/', include('ideas.urls_comments')),
    path('api/updates/', include('updates.urls')),
    path('api/admin/resources/', include('resources.urls_admin')),
    path('api/admin/updates/', include('updates.urls_admin')),
    path('api/admin/', include('backoffice.urls')),
    path("api/health/", HealthCheckView.as_view(), name="health-check"),
]
