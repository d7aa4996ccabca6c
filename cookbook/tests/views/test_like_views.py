from unittest.mock import patch

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from cookbook.counter_store import METRIC_LIKES
from cookbook.models import Recipe, UserLike
from cookbook.services.counters import CounterService
from cookbook.tests.helpers import FakeCounterStore, make_recipe, make_user


class LikeApiViewTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.recipe = make_recipe(author=make_user(username="author"))
        self.store = FakeCounterStore()
        patcher = patch(
            "cookbook.views.like_views.get_counter_service",
            side_effect=lambda: CounterService(self.store),
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_get_likes_returns_combined_count(self):
        Recipe.objects.filter(pk=self.recipe.pk).update(like_count=3)
        for _ in range(7):
            self.store.increment(METRIC_LIKES, self.recipe.pk)

        response = self.client.get(reverse("likes_api"), {"recipeId": self.recipe.pk})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"likes": 10})

    def test_get_likes_requires_recipe_id(self):
        response = self.client.get(reverse("likes_api"))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field"], "recipeId")

    def test_get_likes_unknown_recipe_is_404(self):
        response = self.client.get(reverse("likes_api"), {"recipeId": 999999})
        self.assertEqual(response.status_code, 404)
        self.assertIn("error", response.json())

    def test_post_like_requires_authentication(self):
        response = self.client.post(reverse("likes_api"), {"recipeId": self.recipe.pk}, format="json")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(UserLike.objects.exists())

    def test_post_like_counts_once(self):
        self.client.force_authenticate(user=self.user)

        first = self.client.post(reverse("likes_api"), {"recipeId": self.recipe.pk}, format="json")
        second = self.client.post(reverse("likes_api"), {"recipeId": self.recipe.pk}, format="json")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), {"likes": 1})
        self.assertEqual(second.status_code, 400)
        self.assertEqual(second.json(), {"error": "You already liked this recipe."})
        self.assertEqual(self.store.pending(METRIC_LIKES, self.recipe.pk), 1)

    def test_recipe_likes_summary(self):
        url = reverse("recipe_likes_api", kwargs={"recipe_id": self.recipe.pk})
        self.assertEqual(self.client.get(url).json(), {"likeCount": 0, "alreadyLiked": False})

        self.client.force_authenticate(user=self.user)
        response = self.client.post(url)
        self.assertEqual(response.json(), {"likeCount": 1, "alreadyLiked": True})
        self.assertEqual(self.client.get(url).json(), {"likeCount": 1, "alreadyLiked": True})
