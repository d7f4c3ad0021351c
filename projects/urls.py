# projects/urls.py

from django.urls import path

from logbooks.views import ProjectLogbookListView
from .views import (
    ProjectListCreateView,
    ProjectDetailView,
    ProjectActivateView,
    ProjectResultsView,
    ProjectPublishView,
)

urlpatterns = [
    path('', ProjectListCreateView.as_view(), name='project-list'),
    path('<int:project_id>/', ProjectDetailView.as_view(), name='project-detail'),
    path('<int:project_id>/activate/', ProjectActivateView.as_view(), name='project-activate'),
    path('<int:project_id>/results/', ProjectResultsView.as_view(), name='project-results'),
    path('<int:project_id>/publish/', ProjectPublishView.as_view(), name='project-publish'),
    path('<int:project_id>/logbooks/', ProjectLogbookListView.as_view(), name='project-logbooks'),
]
