import re
from django.core.exceptions import ValidationError
from allauth.account.adapter import DefaultAccountAdapter


def unique_username(base, user_model, exclude_user_id=None):
    """
    Normalize a base string and make it unique for the given User model.
    """
    base = (base or "").strip().lstrip("@")
    base = re.sub(r"[^a-zA-Z0-9_.]", "", base).lower()
    if len(base) < 3:
        base = f"{base}user" if base else "user"

    username = base
    counter = 1
    qs = user_model.objects.filter(username=username)
    if exclude_user_id:
        qs = qs.exclude(pk=exclude_user_id)
    while qs.exists():
        username = f"{base}{counter}"
        counter += 1
        qs = user_model.objects.filter(username=username)
        if exclude_user_id:
            qs = qs.exclude(pk=exclude_user_id)

    return username


def username_from_email(email, user_model):
    """Derive a unique username from the local part of an email address."""
    local_part = (email or "").split("@", 1)[0]
    return unique_username(local_part, user_model)


class AccountAdapter(DefaultAccountAdapter):
    """Customise allauth username handling for sign-ups."""

    def clean_username(self, username, shallow=False):
        """
        Allow usernames without '@'. Only allow letters, digits, underscore, dot.
        Raise ValidationError (not ValueError) so allauth can handle it.
        """
        if username.startswith("@"):
            username = username[1:]
        if not re.match(r"^[a-zA-Z0-9_.]+$", username):
            raise ValidationError("Username must contain only letters, numbers, underscores, or dots.")
        return super().clean_username(username, shallow=shallow)

    def populate_username(self, request, user):
        """
        Deterministic username generation from the username field or the
        email local-part; collisions get a numeric suffix ('test' -> 'test1').
        """
        UserModel = type(user)
        base = (user.username or "").strip()
        if not base:
            base = (getattr(user, "email", "") or "").split("@", 1)[0]
        user.username = unique_username(base, UserModel, exclude_user_id=user.pk or None)
