"""Service helpers for recipe comments and their moderation."""

import logging
from datetime import timedelta

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from cookbook.errors import AccountSuspended, CommentRateLimited, InvalidReply
from cookbook.models import Comment
from cookbook.services import mailer

logger = logging.getLogger(__name__)

COMMENT_RATE_LIMIT = 3
COMMENT_RATE_WINDOW = timedelta(minutes=1)
# levels of replies shown under a top-level comment
REPLY_DEPTH = 2


class CommentService:
    """
    Encapsulate comment creation, threading and moderation.

    Comments from non-staff users wait in the moderation queue as PENDING.
    A reply's parent author is emailed when the reply becomes visible.
    """

    def __init__(self, comment_model=Comment, clock=timezone.now):
        self.comment_model = comment_model
        self.clock = clock

    def fetch(self, comment_id):
        """Fetch a comment by id or raise 404."""
        return get_object_or_404(self.comment_model.objects.select_related('user', 'recipe'), id=comment_id)

    def create_comment(self, user, recipe, text, parent=None):
        if not user.is_active:
            raise AccountSuspended()
        if parent is not None and parent.recipe_id != recipe.pk:
            raise InvalidReply()

        with transaction.atomic():
            if not user.is_staff:
                recent = self.comment_model.objects.filter(
                    user=user, created_at__gte=self.clock() - COMMENT_RATE_WINDOW
                ).count()
                if recent >= COMMENT_RATE_LIMIT:
                    raise CommentRateLimited()
            comment = self.comment_model.objects.create(
                user=user,
                recipe=recipe,
                parent=parent,
                text=text,
                status=Comment.STATUS_APPROVED if user.is_staff else Comment.STATUS_PENDING,
            )
        logger.info("Comment %s created on recipe %s (%s)", comment.pk, recipe.pk, comment.status)
        if comment.is_approved:
            self._notify_parent_author(comment)
        return comment

    def can_delete(self, comment, user):
        """Return True when the user owns the comment or is staff."""
        return comment.user_id == user.pk or user.is_staff

    def delete_comment(self, comment):
        recipe_id = comment.recipe_id
        comment.delete()
        return recipe_id

    # ---------- reading ----------

    def approved_thread(self, recipe):
        """
        Top-level approved comments, newest first, each carrying
        `thread_replies` (approved, oldest first) up to REPLY_DEPTH levels.

        A reply under a comment that is not approved is not shown.
        """
        comments = list(
            self.comment_model.objects.filter(recipe=recipe, status=Comment.STATUS_APPROVED)
            .select_related('user')
            .order_by('created_at')
        )
        children = {}
        for comment in comments:
            comment.thread_replies = []
            children.setdefault(comment.parent_id, []).append(comment)

        def attach(nodes, depth):
            for node in nodes:
                if depth < REPLY_DEPTH:
                    node.thread_replies = children.get(node.pk, [])
                    attach(node.thread_replies, depth + 1)

        top_level = list(reversed(children.get(None, [])))
        attach(top_level, 0)
        return top_level

    def moderation_queue(self, status=None):
        queryset = self.comment_model.objects.select_related('user', 'recipe').order_by('-created_at')
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    # ---------- moderation ----------

    def set_status(self, comment, status):
        was_approved = comment.is_approved
        comment.status = status
        comment.save(update_fields=['status', 'updated_at'])
        logger.info("Comment %s moderated to %s", comment.pk, status)
        if comment.is_approved and not was_approved:
            self._notify_parent_author(comment)
        return comment

    def approve(self, comment):
        return self.set_status(comment, Comment.STATUS_APPROVED)

    def reject(self, comment):
        return self.set_status(comment, Comment.STATUS_REJECTED)

    def bulk_set_status(self, comment_ids, status):
        """Set `status` on every listed comment; returns how many matched."""
        comments = list(self.moderation_queue().filter(id__in=comment_ids))
        for comment in comments:
            self.set_status(comment, status)
        return len(comments)

    def bulk_delete(self, comment_ids):
        deleted, _ = self.comment_model.objects.filter(id__in=comment_ids).delete()
        logger.info("Deleted %d comments in bulk", deleted)
        return deleted

    def _notify_parent_author(self, reply):
        if reply.parent_id is None:
            return
        parent = self.comment_model.objects.select_related('user', 'recipe').get(pk=reply.parent_id)
        author = parent.user
        if author.pk == reply.user_id or not author.notify_comment_replies:
            return
        mailer.send_quietly(mailer.send_comment_reply_email, author.email, parent.recipe.title, reply.text)
