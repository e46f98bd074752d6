# updates/urls_admin.py
from django.urls import path

from .views import (
    AdminUpdateDetailView,
    AdminUpdateListView,
    AdminUpdateNotifyView,
    AdminUpdateRunsView,
    FeederIngestView,
)

urlpatterns = [
    path("", AdminUpdateListView.as_view(), name="admin-update-list"),
    path("notify/", AdminUpdateNotifyView.as_view(), name="admin-update-notify"),
    path("runs/", AdminUpdateRunsView.as_view(), name="admin-update-runs"),
    path("ingest/", FeederIngestView.as_view(), name="admin-update-ingest"),
    path("<int:pk>/", AdminUpdateDetailView.as_view(), name="admin-update-detail"),
]
