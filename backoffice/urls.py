# backoffice/urls.py
from django.urls import path

from .views import (
    IdeaDetailView,
    IdeaListView,
    LogListView,
    MetricsView,
    SocialConfigView,
    TeamDetailView,
    TeamListView,
    UserBulkAdminView,
    UserBulkDeleteView,
    UserBulkVerifyView,
    UserDetailView,
    UserListView,
)

urlpatterns = [
    path("metrics/", MetricsView.as_view(), name="admin-metrics"),
    path("users/", UserListView.as_view(), name="admin-user-list"),
    path("users/bulk-verify/", UserBulkVerifyView.as_view(), name="admin-user-bulk-verify"),
    path("users/bulk-admin/", UserBulkAdminView.as_view(), name="admin-user-bulk-admin"),
    path("users/bulk-delete/", UserBulkDeleteView.as_view(), name="admin-user-bulk-delete"),
    path("users/<int:pk>/", UserDetailView.as_view(), name="admin-user-detail"),
    path("teams/", TeamListView.as_view(), name="admin-team-list"),
    path("teams/<int:pk>/", TeamDetailView.as_view(), name="admin-team-detail"),
    path("ideas/", IdeaListView.as_view(), name="admin-idea-list"),
    path("ideas/<int:pk>/", IdeaDetailView.as_view(), name="admin-idea-detail"),
    path("logs/", LogListView.as_view(), name="admin-log-list"),
    path("social-config/", SocialConfigView.as_view(), name="admin-social-config"),
]
