"""JSON endpoints for recipe likes."""

from django.shortcuts import get_object_or_404
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from cookbook.models import Recipe
from cookbook.serializers import LikeRequestSerializer
from cookbook.services.counters import get_counter_service
from cookbook.services.likes import LikeService


def _like_service():
    return LikeService(get_counter_service())


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticatedOrReadOnly])
def likes_api(request):
    """
    GET ?recipeId= returns the combined like count.
    POST {recipeId} likes the recipe for the current user.
    """
    source = request.query_params if request.method == "GET" else request.data
    serializer = LikeRequestSerializer(data={"recipeId": source.get("recipeId")})
    serializer.is_valid(raise_exception=True)
    recipe = get_object_or_404(Recipe, pk=serializer.validated_data["recipeId"])

    service = _like_service()
    if request.method == "POST":
        service.like(request.user, recipe)
    return Response({"likes": service.combined_count(recipe)})


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticatedOrReadOnly])
def recipe_likes_api(request, recipe_id):
    """Like summary for one recipe; POST records the current user's like."""
    recipe = get_object_or_404(Recipe, pk=recipe_id)
    service = _like_service()
    if request.method == "POST":
        service.like(request.user, recipe)
        return Response({"likeCount": service.combined_count(recipe), "alreadyLiked": True})
    return Response(service.summary(request.user, recipe))
