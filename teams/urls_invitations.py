# teams/urls_invitations.py
from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import InvitationViewSet

router = SimpleRouter()
router.register(r'', InvitationViewSet, basename='invitation')

urlpatterns = [
    path('', include(router.urls)),
]
