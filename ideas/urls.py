# ideas/urls.py
from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import IdeaViewSet

router = SimpleRouter()
router.register(r'', IdeaViewSet, basename='idea')

urlpatterns = [
    path('', include(router.urls)),
]
