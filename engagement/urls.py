# engagement/urls.py

from django.urls import path
from .views import LikeView, BookmarkView, CommentListCreateView, CommentDetailView

urlpatterns = [
    path('likes/', LikeView.as_view(), name='likes'),
    path('bookmarks/', BookmarkView.as_view(), name='bookmarks'),
    path('comments/', CommentListCreateView.as_view(), name='comment-list'),
    path('comments/<int:comment_id>/', CommentDetailView.as_view(), name='comment-detail'),
]
