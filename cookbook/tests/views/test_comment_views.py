from django.core import mail
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from cookbook.models import Comment
from cookbook.tests.helpers import make_comment, make_recipe, make_user


class CommentApiViewTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user(username="reader")
        self.recipe = make_recipe(title="Garlic butter pasta")
        self.url = reverse("comments_api")

    def test_get_requires_recipe_id(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field"], "recipeId")

    def test_get_unknown_recipe_is_404(self):
        response = self.client.get(self.url, {"recipeId": 999999})
        self.assertEqual(response.status_code, 404)

    def test_get_returns_approved_thread(self):
        parent = make_comment(recipe=self.recipe, user=self.user, text="Lovely")
        make_comment(recipe=self.recipe, user=self.user, text="Thanks", parent=parent)
        make_comment(recipe=self.recipe, user=self.user, text="awaiting", status=Comment.STATUS_PENDING)

        response = self.client.get(self.url, {"recipeId": self.recipe.pk})

        self.assertEqual(response.status_code, 200)
        comments = response.json()["comments"]
        self.assertEqual([c["text"] for c in comments], ["Lovely"])
        self.assertEqual(comments[0]["author"], "reader")
        self.assertEqual([r["text"] for r in comments[0]["replies"]], ["Thanks"])

    def test_post_requires_authentication(self):
        response = self.client.post(self.url, {"recipeId": self.recipe.pk, "content": "Hi"}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_post_creates_pending_comment(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.url, {"recipeId": self.recipe.pk, "content": "Lovely"}, format="json")

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["pending"])
        self.assertEqual(body["comment"]["status"], Comment.STATUS_PENDING)
        self.assertEqual(Comment.objects.get().text, "Lovely")

    def test_post_reply(self):
        parent = make_comment(recipe=self.recipe, user=make_user(username="cook"))
        self.client.force_authenticate(user=self.user)

        response = self.client.post(
            self.url,
            {"recipeId": self.recipe.pk, "content": "Agreed", "parentId": str(parent.pk)},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["comment"]["parent"], str(parent.pk))

    def test_post_rejects_empty_and_long_content(self):
        self.client.force_authenticate(user=self.user)

        empty = self.client.post(self.url, {"recipeId": self.recipe.pk, "content": "   "}, format="json")
        long = self.client.post(self.url, {"recipeId": self.recipe.pk, "content": "x" * 1001}, format="json")

        self.assertEqual(empty.status_code, 400)
        self.assertEqual(empty.json()["field"], "content")
        self.assertEqual(long.status_code, 400)
        self.assertFalse(Comment.objects.exists())

    def test_post_rate_limited(self):
        self.client.force_authenticate(user=self.user)
        for n in range(3):
            self.client.post(self.url, {"recipeId": self.recipe.pk, "content": f"c{n}"}, format="json")

        response = self.client.post(self.url, {"recipeId": self.recipe.pk, "content": "again"}, format="json")

        self.assertEqual(response.status_code, 429)
        self.assertIn("error", response.json())

    def test_suspended_user_cannot_post(self):
        self.user.is_active = False
        self.user.save()
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.url, {"recipeId": self.recipe.pk, "content": "Hi"}, format="json")

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "Account suspended.")

    def test_delete_own_comment(self):
        comment = make_comment(recipe=self.recipe, user=self.user)
        self.client.force_authenticate(user=self.user)

        response = self.client.delete(reverse("comment_detail_api", kwargs={"comment_id": comment.pk}))

        self.assertEqual(response.status_code, 204)
        self.assertFalse(Comment.objects.exists())

    def test_cannot_delete_someone_elses_comment(self):
        comment = make_comment(recipe=self.recipe, user=make_user(username="other"))
        self.client.force_authenticate(user=self.user)

        response = self.client.delete(reverse("comment_detail_api", kwargs={"comment_id": comment.pk}))

        self.assertEqual(response.status_code, 403)
        self.assertTrue(Comment.objects.exists())


class ModerationApiViewTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_user(username="admin", is_staff=True)
        self.client.force_authenticate(user=self.admin)
        self.author = make_user(username="reader", email="reader@example.org")
        self.recipe = make_recipe(title="Garlic butter pasta")

    def pending(self, **extra):
        return make_comment(recipe=self.recipe, user=self.author, status=Comment.STATUS_PENDING, **extra)

    def test_non_staff_forbidden(self):
        client = APIClient()
        client.force_authenticate(user=self.author)
        response = client.get(reverse("moderation_comments_api"))
        self.assertEqual(response.status_code, 403)

    def test_list_filters_by_status(self):
        pending = self.pending()
        make_comment(recipe=self.recipe, user=self.author)

        all_comments = self.client.get(reverse("moderation_comments_api")).json()["comments"]
        pending_only = self.client.get(reverse("moderation_comments_api"), {"status": "pending"}).json()["comments"]

        self.assertEqual(len(all_comments), 2)
        self.assertEqual([c["id"] for c in pending_only], [str(pending.pk)])
        self.assertEqual(pending_only[0]["recipe_title"], "Garlic butter pasta")
        self.assertEqual(pending_only[0]["user_email"], "reader@example.org")

    def test_list_rejects_unknown_status(self):
        response = self.client.get(reverse("moderation_comments_api"), {"status": "SPAM"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid status: SPAM")

    def test_patch_sets_status(self):
        comment = self.pending()
        url = reverse("moderation_comment_api", kwargs={"comment_id": comment.pk})

        response = self.client.patch(url, {"status": "REJECTED"}, format="json")

        self.assertEqual(response.status_code, 200)
        comment.refresh_from_db()
        self.assertEqual(comment.status, Comment.STATUS_REJECTED)

    def test_patch_invalid_status(self):
        comment = self.pending()
        url = reverse("moderation_comment_api", kwargs={"comment_id": comment.pk})
        response = self.client.patch(url, {"status": "HIDDEN"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_delete_comment(self):
        comment = self.pending()
        response = self.client.delete(reverse("moderation_comment_api", kwargs={"comment_id": comment.pk}))
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Comment.objects.exists())

    def test_approve_shortcut_notifies_parent_author(self):
        parent = make_comment(recipe=self.recipe, user=self.author)
        reply = make_comment(
            recipe=self.recipe, user=make_user(username="cook"), parent=parent, status=Comment.STATUS_PENDING
        )

        response = self.client.post(reverse("approve_comment_api", kwargs={"comment_id": reply.pk}))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["comment"]["status"], Comment.STATUS_APPROVED)
        self.assertEqual(mail.outbox[0].to, ["reader@example.org"])

    def test_unknown_comment_is_404(self):
        response = self.client.post(
            reverse("approve_comment_api", kwargs={"comment_id": "00000000-0000-0000-0000-000000000000"})
        )
        self.assertEqual(response.status_code, 404)

    def test_bulk_approve_and_delete(self):
        first, second, third = self.pending(), self.pending(), self.pending()
        url = reverse("moderation_bulk_api")

        response = self.client.post(
            url, {"commentIds": [str(first.pk), str(second.pk)], "action": "approve"}, format="json"
        )
        self.assertEqual(response.json(), {"action": "approve", "count": 2})
        self.assertEqual(Comment.objects.filter(status=Comment.STATUS_APPROVED).count(), 2)

        self.client.post(url, {"commentIds": [str(third.pk)], "action": "delete"}, format="json")
        self.assertFalse(Comment.objects.filter(pk=third.pk).exists())

    def test_bulk_requires_ids_and_known_action(self):
        url = reverse("moderation_bulk_api")
        comment = self.pending()

        no_ids = self.client.post(url, {"commentIds": [], "action": "approve"}, format="json")
        bad_action = self.client.post(url, {"commentIds": [str(comment.pk)], "action": "spam"}, format="json")

        self.assertEqual(no_ids.status_code, 400)
        self.assertEqual(bad_action.status_code, 400)
        comment.refresh_from_db()
        self.assertEqual(comment.status, Comment.STATUS_PENDING)
