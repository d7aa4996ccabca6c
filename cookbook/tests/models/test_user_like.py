from django.db import IntegrityError
from django.test import TestCase

from cookbook.models import UserLike
from cookbook.tests.helpers import make_recipe, make_user


class UserLikeModelTestCase(TestCase):
    def setUp(self):
        self.user_a = make_user(username="usera")
        self.user_b = make_user(username="userb")
        self.recipe = make_recipe(author=self.user_a)

    def test_user_can_like_a_recipe(self):
        like = UserLike.objects.create(user=self.user_b, recipe=self.recipe)

        self.assertEqual(like.user, self.user_b)
        self.assertEqual(like.recipe, self.recipe)
        self.assertEqual(self.recipe.likes.count(), 1)

    def test_duplicate_like_violates_unique_constraint(self):
        UserLike.objects.create(user=self.user_b, recipe=self.recipe)

        with self.assertRaises(IntegrityError):
            UserLike.objects.create(user=self.user_b, recipe=self.recipe)

    def test_different_users_can_like_same_recipe(self):
        UserLike.objects.create(user=self.user_a, recipe=self.recipe)
        UserLike.objects.create(user=self.user_b, recipe=self.recipe)

        self.assertEqual(UserLike.objects.filter(recipe=self.recipe).count(), 2)
