# resources/urls.py
from django.urls import path

from .views import (
    MyResourcesView,
    ResourceCategoriesView,
    ResourceEditView,
    ResourceFileView,
    ResourceListCreateView,
    ResourceUploadView,
)

urlpatterns = [
    path("", ResourceListCreateView.as_view(), name="resource-list"),
    path("upload/", ResourceUploadView.as_view(), name="resource-upload"),
    path("categories/", ResourceCategoriesView.as_view(), name="resource-categories"),
    path("mine/", MyResourcesView.as_view(), name="resource-mine"),
    path("<int:pk>/", ResourceEditView.as_view(), name="resource-edit"),
    path("<int:pk>/view/", ResourceFileView.as_view(), name="resource-view"),
    path("<int:pk>/download/", ResourceFileView.as_view(download=True), name="resource-download"),
]
