# updates/urls.py
from django.urls import path

from .views import PublicUpdateListView

urlpatterns = [
    path("", PublicUpdateListView.as_view(), name="update-list"),
]
