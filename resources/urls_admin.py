# resources/urls_admin.py
from django.urls import path

from .views import (
    AdminResourceApproveView,
    AdminResourceBulkDeleteView,
    AdminResourceCountsView,
    AdminResourceDetailView,
    AdminResourceListView,
    AdminResourceRejectView,
)

urlpatterns = [
    path("", AdminResourceListView.as_view(), name="admin-resource-list"),
    path("counts/", AdminResourceCountsView.as_view(), name="admin-resource-counts"),
    path("bulk-delete/", AdminResourceBulkDeleteView.as_view(), name="admin-resource-bulk-delete"),
    path("<int:pk>/", AdminResourceDetailView.as_view(), name="admin-resource-detail"),
    path("<int:pk>/approve/", AdminResourceApproveView.as_view(), name="admin-resource-approve"),
    path("<int:pk>/reject/", AdminResourceRejectView.as_view(), name="admin-resource-reject"),
]
