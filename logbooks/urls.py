# logbooks/urls.py

from django.urls import path
from .views import (
    LogbookListCreateView,
    LogbookDetailView,
    LogbookValidateView,
    LogbookAttachmentView,
)

urlpatterns = [
    path('', LogbookListCreateView.as_view(), name='logbook-list'),
    path('<int:logbook_id>/', LogbookDetailView.as_view(), name='logbook-detail'),
    path('<int:logbook_id>/validate/', LogbookValidateView.as_view(), name='logbook-validate'),
    path('<int:logbook_id>/attachments/', LogbookAttachmentView.as_view(), name='logbook-attachments'),
]
