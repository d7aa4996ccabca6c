from rest_framework import filters, generics, permissions
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from cookbook.counter_store import METRIC_LIKES, METRIC_VIEWS
from cookbook.models import Recipe
from cookbook.repos.recipe_repo import RecipeRepo
from cookbook.serializers import RecipeDetailSerializer, RecipeSerializer
from cookbook.services.counters import get_counter_service
from cookbook.services.subscriptions import has_active_subscription

recipe_repo = RecipeRepo()


class RecipeListApi(generics.ListAPIView):
    """
    List published recipes, with search and ordering.

    Premium rows are locked the same way as on the detail endpoint.
    """
    serializer_class = RecipeSerializer
    permission_classes = [permissions.AllowAny]

    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['title', 'description', 'category']
    ordering_fields = ['published_at', 'view_count', 'like_count']

    def get_queryset(self):
        """Optionally restrict the recipes to a `category` query parameter."""
        category = self.request.query_params.get('category')
        return recipe_repo.list_published(category=category).select_related('author')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["has_access"] = has_active_subscription(self.request.user.pk)
        return context


class RecipeDetailApi(generics.RetrieveAPIView):
    """
    Retrieve one published recipe by slug.

    Each retrieval records a view. Premium recipes are returned locked
    (description withheld) unless the caller holds an open subscription.
    """
    serializer_class = RecipeDetailSerializer
    permission_classes = [permissions.AllowAny]
    lookup_field = 'slug'

    def get_object(self):
        try:
            return recipe_repo.get_published(self.kwargs[self.lookup_field])
        except Recipe.DoesNotExist:
            raise NotFound("Recipe not found.")

    def retrieve(self, request, *args, **kwargs):
        recipe = self.get_object()
        counters = get_counter_service()
        counters.record_view(recipe.pk)

        has_access = not recipe.is_premium or has_active_subscription(request.user.pk)
        counts = {
            "views": counters.read_combined_count(recipe.pk, METRIC_VIEWS),
            "likes": counters.read_combined_count(recipe.pk, METRIC_LIKES),
        }
        context = self.get_serializer_context()
        context.update({"has_access": has_access, "counts": counts})
        serializer = self.get_serializer(recipe, context=context)
        return Response(serializer.data)
