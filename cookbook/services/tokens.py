"""Single-use verification tokens for password reset and password creation."""

import logging
import secrets
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from cookbook.errors import InvalidToken
from cookbook.models import VerificationToken

logger = logging.getLogger(__name__)

RESET_PASSWORD_TTL = timedelta(hours=1)
SET_PASSWORD_TTL = timedelta(hours=24)


class VerificationTokenService:
    """Issue and consume tokens tied to an email identifier."""

    def __init__(self, token_model=VerificationToken, clock=timezone.now):
        self.token_model = token_model
        self.clock = clock

    def issue(self, identifier, ttl=RESET_PASSWORD_TTL):
        return self.token_model.objects.create(
            identifier=identifier,
            token=secrets.token_hex(32),
            expires=self.clock() + ttl,
        )

    def consume(self, token):
        """
        Return the identifier bound to `token` and delete the token.

        Unknown tokens raise InvalidToken; expired ones are deleted first.
        """
        if not token:
            raise InvalidToken()
        with transaction.atomic():
            record = self.token_model.objects.select_for_update().filter(token=token).first()
            if record is None:
                raise InvalidToken("Token is invalid or has already been used.")
            record.delete()
        if record.is_expired(self.clock()):
            raise InvalidToken("Token has expired. Please request a new one.")
        return record.identifier

    def purge_expired(self):
        deleted, _ = self.token_model.objects.filter(expires__lte=self.clock()).delete()
        if deleted:
            logger.info("Purged %d expired verification tokens", deleted)
        return deleted
