# users/urls.py

from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import MySocialProfilesView, SocialConfigView, UserSocialProfilesView, UserViewSet

router = SimpleRouter()
router.register(r'', UserViewSet, basename='user')

urlpatterns = [
    path('social/config/', SocialConfigView.as_view(), name='social-config'),
    path('social/me/', MySocialProfilesView.as_view(), name='social-me'),
    path('social/<int:user_id>/', UserSocialProfilesView.as_view(), name='social-user'),
    path('', include(router.urls)),
]
