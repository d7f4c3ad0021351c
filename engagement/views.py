# engagement/views.py
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from core.generics import paginated_response
from core.query import translator_for
from .models import Bookmark, Comment, Like
from .serializers import (
    BookmarkSerializer,
    CommentInputSerializer,
    CommentSerializer,
    COMMENT_QUERY_FIELDS,
    LikeSerializer,
    REACTION_QUERY_FIELDS,
    ReactionInputSerializer,
)
from .services import ReactionService
from .throttles import ReactionCreateThrottle

reaction_query = translator_for(REACTION_QUERY_FIELDS)
comment_query = translator_for(COMMENT_QUERY_FIELDS)


class ReactionToggleView(APIView):
    """
    GET    the caller's own likes/bookmarks (project embedded)
    POST   {"project": <id>}   create
    DELETE {"project": <id>}   remove (body or ?project=)
    """
    permission_classes = [IsAuthenticated]
    throttle_classes = [ReactionCreateThrottle]

    kind = None
    model = None
    serializer_class = None

    def get(self, request):
        qs = self.model.objects.filter(user=request.user).select_related("project")
        return paginated_response(request, qs, reaction_query, self.serializer_class)

    def post(self, request):
        payload = ReactionInputSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        reaction = ReactionService.add(self.kind, request.user, payload.validated_data["project"])
        return Response(
            self.serializer_class(reaction, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )

    def delete(self, request):
        project_id = request.data.get("project") or request.query_params.get("project")
        ReactionService.remove(self.kind, request.user, project_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LikeView(ReactionToggleView):
    kind = Like.KIND
    model = Like
    serializer_class = LikeSerializer


class BookmarkView(ReactionToggleView):
    kind = Bookmark.KIND
    model = Bookmark
    serializer_class = BookmarkSerializer


class CommentListCreateView(APIView):
    """
    GET  /api/comments/?filter[project]=<id>
    POST /api/comments/   {"project": <id>, "content": "..."}
    """
    permission_classes = [IsAuthenticated]
    throttle_classes = [ReactionCreateThrottle]

    def get(self, request):
        qs = Comment.objects.select_related("user")
        return paginated_response(request, qs, comment_query, CommentSerializer)

    def post(self, request):
        payload = CommentInputSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        comment = ReactionService.add_comment(
            request.user,
            payload.validated_data["project"],
            payload.validated_data["content"],
        )
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, comment_id):
        ReactionService.delete_comment(request.user, comment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
