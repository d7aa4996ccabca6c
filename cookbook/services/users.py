"""Staff actions on user accounts."""

import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404

from cookbook.errors import CannotModifyOwnAccount

logger = logging.getLogger(__name__)


class UserService:
    """Suspend, reactivate and promote users; staff cannot act on themselves except to activate."""

    def __init__(self, user_model=None):
        self.user_model = user_model or get_user_model()

    def fetch(self, user_id):
        """Fetch a user by id or raise 404."""
        return get_object_or_404(self.user_model, pk=user_id)

    def suspend(self, actor, user):
        if actor.pk == user.pk:
            raise CannotModifyOwnAccount("Cannot suspend your own account.")
        user.is_active = False
        user.save(update_fields=['is_active'])
        logger.info("User %s suspended by %s", user.pk, actor.pk)
        return user

    def activate(self, actor, user):
        user.is_active = True
        user.save(update_fields=['is_active'])
        logger.info("User %s activated by %s", user.pk, actor.pk)
        return user

    def promote(self, actor, user):
        if actor.pk == user.pk:
            raise CannotModifyOwnAccount("Cannot modify your own role.")
        user.is_staff = True
        user.save(update_fields=['is_staff'])
        logger.info("User %s promoted to staff by %s", user.pk, actor.pk)
        return user
