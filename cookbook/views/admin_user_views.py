"""Staff-only account actions."""

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from cookbook.serializers import AdminUserSerializer
from cookbook.services.users import UserService

user_service = UserService()


def _run(request, action, user_id):
    user = user_service.fetch(user_id)
    getattr(user_service, action)(request.user, user)
    return Response({"user": AdminUserSerializer(user).data})


@api_view(["GET"])
@permission_classes([IsAdminUser])
def admin_user_status_api(request, user_id):
    return Response({"user": AdminUserSerializer(user_service.fetch(user_id)).data})


@api_view(["POST"])
@permission_classes([IsAdminUser])
def admin_suspend_user_api(request, user_id):
    """Suspended users cannot sign in or post comments."""
    return _run(request, "suspend", user_id)


@api_view(["POST"])
@permission_classes([IsAdminUser])
def admin_activate_user_api(request, user_id):
    return _run(request, "activate", user_id)


@api_view(["POST"])
@permission_classes([IsAdminUser])
def admin_promote_user_api(request, user_id):
    return _run(request, "promote", user_id)
