# users/urls.py

from django.urls import path
from .views import UserListView, MeView

urlpatterns = [
    path('', UserListView.as_view(), name='user-list'),
    path('me/', MeView.as_view(), name='user-me'),
]
