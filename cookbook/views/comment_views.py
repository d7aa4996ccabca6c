"""JSON endpoints for reading, posting and deleting recipe comments."""

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from cookbook.models import Recipe
from cookbook.serializers import CommentRequestSerializer, CommentSerializer, CommentThreadSerializer
from cookbook.services.comments import CommentService

comment_service = CommentService()


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticatedOrReadOnly])
def comments_api(request):
    """
    GET ?recipeId= returns the approved comment thread for a recipe.
    POST {recipeId, content, parentId?} adds a comment, held for moderation
    unless the author is staff.
    """
    if request.method == "GET":
        recipe_id = request.query_params.get("recipeId")
        if not recipe_id or not recipe_id.isdigit():
            raise ValidationError({"recipeId": ["A valid recipeId is required."]})
        recipe = get_object_or_404(Recipe, pk=recipe_id)
        thread = comment_service.approved_thread(recipe)
        return Response({"comments": CommentThreadSerializer(thread, many=True).data})

    serializer = CommentRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    recipe = get_object_or_404(Recipe, pk=data["recipeId"])
    parent = comment_service.fetch(data["parentId"]) if data.get("parentId") else None

    comment = comment_service.create_comment(request.user, recipe, data["content"], parent=parent)
    return Response(
        {"comment": CommentSerializer(comment).data, "pending": not comment.is_approved},
        status=status.HTTP_201_CREATED,
    )


@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
def comment_detail_api(request, comment_id):
    """Delete a comment; only its author or staff may do so."""
    comment = comment_service.fetch(comment_id)
    if not comment_service.can_delete(comment, request.user):
        raise PermissionDenied("Not authorized to delete this comment.")
    comment_service.delete_comment(comment)
    return Response(status=status.HTTP_204_NO_CONTENT)
