from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import EnvelopeViewSet, obtain_auth_token

router = DefaultRouter()
router.register(r'envelopes', EnvelopeViewSet, basename='envelope')

urlpatterns = [
    path('api-token-auth/', obtain_auth_token, name='api-token-auth'),
    path('', include(router.urls)),
]
