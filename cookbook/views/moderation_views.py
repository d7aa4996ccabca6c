"""Staff-only comment moderation."""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from cookbook.models import Comment
from cookbook.serializers import (
    BulkModerationSerializer,
    CommentStatusSerializer,
    ModerationCommentSerializer,
)
from cookbook.views.comment_views import comment_service

STATUS_ALL = "ALL"


@api_view(["GET"])
@permission_classes([IsAdminUser])
def moderation_comments_api(request):
    """Comments across all recipes, newest first; `?status=` narrows the list."""
    status_filter = request.query_params.get("status", STATUS_ALL).upper()
    if status_filter != STATUS_ALL and status_filter not in Comment.STATUSES:
        raise ValidationError({"status": [f"Invalid status: {status_filter}"]})
    comments = comment_service.moderation_queue(None if status_filter == STATUS_ALL else status_filter)
    return Response({"comments": ModerationCommentSerializer(comments, many=True).data})


@api_view(["PATCH", "DELETE"])
@permission_classes([IsAdminUser])
def moderation_comment_api(request, comment_id):
    comment = comment_service.fetch(comment_id)
    if request.method == "DELETE":
        comment_service.delete_comment(comment)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = CommentStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    comment_service.set_status(comment, serializer.validated_data["status"])
    return Response({"comment": ModerationCommentSerializer(comment).data})


@api_view(["POST"])
@permission_classes([IsAdminUser])
def approve_comment_api(request, comment_id):
    comment = comment_service.approve(comment_service.fetch(comment_id))
    return Response({"comment": ModerationCommentSerializer(comment).data})


@api_view(["POST"])
@permission_classes([IsAdminUser])
def moderation_bulk_api(request):
    """POST {commentIds: [...], action: approve|reject|pending|delete}."""
    serializer = BulkModerationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    ids = serializer.validated_data["commentIds"]
    action = serializer.validated_data["action"]

    if action == BulkModerationSerializer.ACTION_DELETE:
        count = comment_service.bulk_delete(ids)
    else:
        count = comment_service.bulk_set_status(ids, BulkModerationSerializer.ACTION_STATUSES[action])
    return Response({"action": action, "count": count})
