from rest_framework import serializers
from cookbook.models import Comment, NewsletterSubscriber, Recipe, Subscription, User
from cookbook.services.subscriptions import VALID_PLANS


class RecipeSerializer(serializers.ModelSerializer):
    """
    Serializer for Recipe with common fields.

    Premium recipes are `locked` (description withheld) unless the view
    puts `has_access=True` in the serializer context.
    """
    author = serializers.CharField(source="author.username", read_only=True, default=None)
    total_time_min = serializers.IntegerField(read_only=True)
    locked = serializers.SerializerMethodField()

    class Meta:
        model = Recipe
        fields = [
            "id",
            "slug",
            "author",
            "title",
            "description",
            "category",
            "tags",
            "prep_time_min",
            "cook_time_min",
            "total_time_min",
            "serves",
            "is_premium",
            "locked",
            "view_count",
            "like_count",
            "published_at",
        ]
        read_only_fields = fields

    def get_locked(self, obj):
        return bool(obj.is_premium and not self.context.get("has_access"))

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if data["locked"]:
            data["description"] = ""
        return data


class RecipeDetailSerializer(RecipeSerializer):
    """Recipe detail with live counts taken from `context["counts"]`."""

    def to_representation(self, instance):
        data = super().to_representation(instance)
        counts = self.context.get("counts") or {}
        data["view_count"] = counts.get("views", data["view_count"])
        data["like_count"] = counts.get("likes", data["like_count"])
        return data


class SubscriptionSerializer(serializers.ModelSerializer):
    lifecycle_state = serializers.CharField(read_only=True)

    class Meta:
        model = Subscription
        fields = [
            "id",
            "plan",
            "status",
            "lifecycle_state",
            "cancel_at_period_end",
            "start_date",
            "current_period_end",
            "canceled_at",
        ]
        read_only_fields = fields


class AdminSubscriptionSerializer(SubscriptionSerializer):
    user = serializers.EmailField(source="user.email", read_only=True)

    class Meta(SubscriptionSerializer.Meta):
        fields = ["user", "billing_reference"] + SubscriptionSerializer.Meta.fields
        read_only_fields = fields


class PlanField(serializers.ChoiceField):
    default_error_messages = {"invalid_choice": "Invalid plan specified."}

    def __init__(self, **kwargs):
        super().__init__(choices=VALID_PLANS, **kwargs)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.strip().upper()
        return super().to_internal_value(data)


class CheckoutRequestSerializer(serializers.Serializer):
    plan = PlanField(required=False, default=Subscription.PLAN_BASIC)


class ChangePlanRequestSerializer(serializers.Serializer):
    newPlan = PlanField()


class LikeRequestSerializer(serializers.Serializer):
    recipeId = serializers.IntegerField(min_value=1)


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    token = serializers.CharField()
    newPassword = serializers.CharField(min_length=8, trim_whitespace=False)


class CreatePasswordSerializer(serializers.Serializer):
    token = serializers.CharField()
    password = serializers.CharField(min_length=8, trim_whitespace=False)
    name = serializers.CharField(required=False, allow_blank=True, max_length=150)


class CommentSerializer(serializers.ModelSerializer):
    author = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = Comment
        fields = ["id", "recipe", "parent", "author", "text", "status", "created_at"]
        read_only_fields = fields


class CommentThreadSerializer(CommentSerializer):
    """A comment with its approved replies nested under `replies`."""
    replies = serializers.SerializerMethodField()

    class Meta(CommentSerializer.Meta):
        fields = CommentSerializer.Meta.fields + ["replies"]
        read_only_fields = fields

    def get_replies(self, obj):
        replies = getattr(obj, "thread_replies", [])
        return CommentThreadSerializer(replies, many=True, context=self.context).data


class ModerationCommentSerializer(CommentSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True)
    recipe_title = serializers.CharField(source="recipe.title", read_only=True)

    class Meta(CommentSerializer.Meta):
        fields = CommentSerializer.Meta.fields + ["user_email", "recipe_title"]
        read_only_fields = fields


class CommentRequestSerializer(serializers.Serializer):
    recipeId = serializers.IntegerField(min_value=1)
    content = serializers.CharField(max_length=1000)
    parentId = serializers.UUIDField(required=False, allow_null=True)


class CommentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Comment.STATUSES)


class BulkModerationSerializer(serializers.Serializer):
    ACTION_DELETE = "delete"
    ACTION_STATUSES = {
        "approve": Comment.STATUS_APPROVED,
        "reject": Comment.STATUS_REJECTED,
        "pending": Comment.STATUS_PENDING,
    }

    commentIds = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    action = serializers.ChoiceField(choices=list(ACTION_STATUSES) + [ACTION_DELETE])


class NewsletterSubscribeSerializer(serializers.Serializer):
    email = serializers.EmailField()


class NewsletterSubscriberSerializer(serializers.ModelSerializer):
    class Meta:
        model = NewsletterSubscriber
        fields = ["id", "email", "is_verified", "verified_at", "created_at"]
        read_only_fields = fields


class NewsletterSubscriberUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    isVerified = serializers.BooleanField(required=False, allow_null=True, default=None)


class NewsletterCampaignSerializer(serializers.Serializer):
    subject = serializers.CharField(max_length=200)
    content = serializers.CharField()
    testEmail = serializers.EmailField(required=False, allow_blank=True)


class AdminUserSerializer(serializers.ModelSerializer):
    status = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "username", "status", "is_staff"]
        read_only_fields = fields

    def get_status(self, obj):
        return "SUSPENDED" if obj.is_suspended else "ACTIVE"
