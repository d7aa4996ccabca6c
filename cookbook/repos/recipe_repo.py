"""Repository helpers for fetching published recipes."""

from typing import Any, Dict, Optional, Sequence
from django.db.models import Q, QuerySet
from django.utils import timezone
from cookbook.db_accessor import DB_Accessor
from cookbook.models import Recipe


class RecipeRepo(DB_Accessor):
    """Repository for Recipe queries visible to the public site."""
    def __init__(self) -> None:
        """Initialise with the Recipe model."""
        super().__init__(Recipe)

    def list_published(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        order_by: Sequence[str] = ("-published_at", "-id"),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> QuerySet:
        """Return visible, already-published recipes with optional filters and paging."""
        filters: Dict[str, Any] = {
            "is_hidden": False,
            "published_at__isnull": False,
            "published_at__lte": timezone.now(),
        }
        if category and category.lower() != "all":
            filters["category__iexact"] = category

        qs = self.list(filters=filters, order_by=order_by)
        if search:
            qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))
        return self._apply_slice(qs, offset=offset, limit=limit)

    def get_published(self, slug: str) -> Recipe:
        """Fetch one visible recipe by slug; raises Recipe.DoesNotExist."""
        return self.list_published().get(slug=slug)
