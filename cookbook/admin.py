from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin
from django.utils.html import format_html
from rest_framework.exceptions import APIException
from cookbook.models import (
    Comment,
    NewsletterSubscriber,
    ProcessedBillingEvent,
    Recipe,
    Subscription,
    User,
    UserLike,
    VerificationToken,
)
from cookbook.services.comments import CommentService
from cookbook.services.subscriptions import get_subscription_service
from cookbook.services.users import UserService


@admin.register(User)
class CookbookUserAdmin(UserAdmin):
    """Stock user admin plus verification, reply notifications and account actions."""
    list_display = ('email', 'username', 'full_name', 'is_staff', 'is_active', 'email_verified_at')
    search_fields = ('email', 'username', 'first_name', 'last_name')
    ordering = ('email',)
    fieldsets = UserAdmin.fieldsets + (
        ('Verification', {'fields': ('email_verified_at',)}),
        ('Notifications', {'fields': ('notify_comment_replies',)}),
    )
    actions = ['suspend_users', 'activate_users', 'promote_users']

    def _run(self, request, queryset, action, done_label):
        service = UserService()
        done = 0
        for user in queryset:
            try:
                getattr(service, action)(request.user, user)
            except APIException as e:
                self.message_user(request, f"{user.email}: {e.detail}", level=messages.ERROR)
            else:
                done += 1
        if done:
            self.message_user(request, f"{done} user(s) {done_label}.", level=messages.SUCCESS)

    @admin.action(description='Suspend selected users')
    def suspend_users(self, request, queryset):
        self._run(request, queryset, 'suspend', 'suspended')

    @admin.action(description='Reactivate selected users')
    def activate_users(self, request, queryset):
        self._run(request, queryset, 'activate', 'activated')

    @admin.action(description='Promote selected users to staff')
    def promote_users(self, request, queryset):
        self._run(request, queryset, 'promote', 'promoted')


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    """Admin configuration for recipes with moderation actions."""
    list_display = ('title', 'author', 'published_at', 'is_premium', 'is_hidden', 'view_count', 'like_count')
    list_filter = ('is_hidden', 'is_premium', 'published_at')
    search_fields = ('title', 'description', 'author__username')
    readonly_fields = ('view_count', 'like_count')
    actions = ['hide_content', 'approve_content']

    @admin.action(description='Hide selected recipes (Remove)')
    def hide_content(self, request, queryset):
        """Mark selected recipes as hidden."""
        queryset.update(is_hidden=True)

    @admin.action(description='Approve selected recipes (Unhide)')
    def approve_content(self, request, queryset):
        """Unhide selected recipes."""
        queryset.update(is_hidden=False)


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    """Admin configuration for comments with moderation actions."""
    list_display = ('short_text', 'user', 'recipe', 'status', 'is_reply', 'created_at')
    list_filter = ('status', 'created_at')
    search_fields = ('text', 'user__username', 'recipe__title')
    raw_id_fields = ('user', 'recipe', 'parent')
    actions = ['approve_content', 'reject_content']

    def short_text(self, obj):
        """Shorten comment text for list display."""
        return obj.text[:50] + "..." if len(obj.text) > 50 else obj.text

    @admin.display(boolean=True, description='Reply')
    def is_reply(self, obj):
        return obj.is_reply

    @admin.action(description='Approve selected comments')
    def approve_content(self, request, queryset):
        """Approve through the service so reply notifications go out."""
        count = CommentService().bulk_set_status(queryset.values_list('id', flat=True), Comment.STATUS_APPROVED)
        self.message_user(request, f"{count} comment(s) approved.", level=messages.SUCCESS)

    @admin.action(description='Reject selected comments')
    def reject_content(self, request, queryset):
        count = CommentService().bulk_set_status(queryset.values_list('id', flat=True), Comment.STATUS_REJECTED)
        self.message_user(request, f"{count} comment(s) rejected.", level=messages.SUCCESS)


@admin.register(NewsletterSubscriber)
class NewsletterSubscriberAdmin(admin.ModelAdmin):
    list_display = ('email', 'is_verified', 'verified_at', 'created_at')
    list_filter = ('is_verified',)
    search_fields = ('email',)
    readonly_fields = ('verification_token', 'created_at', 'updated_at')


@admin.register(UserLike)
class UserLikeAdmin(admin.ModelAdmin):
    list_display = ('user', 'recipe', 'created_at')
    search_fields = ('user__email', 'recipe__title')
    raw_id_fields = ('user', 'recipe')


@admin.register(VerificationToken)
class VerificationTokenAdmin(admin.ModelAdmin):
    list_display = ('identifier', 'expires', 'created_at')
    search_fields = ('identifier',)
    readonly_fields = ('token',)


@admin.register(ProcessedBillingEvent)
class ProcessedBillingEventAdmin(admin.ModelAdmin):
    list_display = ('event_id', 'event_type', 'processed_at')
    search_fields = ('event_id',)
    list_filter = ('event_type',)


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """
    Subscriptions with lifecycle overrides.

    Actions go through the subscription service so Stripe is updated before
    the local row; a failed row is reported and the rest still run.
    """
    list_display = ('user', 'plan', 'status_display', 'current_period_end', 'billing_reference')
    list_filter = ('status', 'plan', 'cancel_at_period_end')
    search_fields = ('user__email', 'billing_reference')
    readonly_fields = ('billing_reference', 'canceled_at', 'created_at', 'updated_at')
    actions = ['cancel_now', 'schedule_cancel', 'resume']

    def status_display(self, obj):
        """Show the derived lifecycle state, highlighting pending cancellations."""
        if obj.is_pending_cancel:
            return format_html('<span style="color:orange;">{}</span>', obj.lifecycle_state)
        return obj.lifecycle_state
    status_display.short_description = "State"

    def _run(self, request, queryset, action, done_label):
        service = get_subscription_service()
        done = 0
        for subscription in queryset.select_related('user'):
            try:
                getattr(service, action)(subscription)
            except APIException as e:
                self.message_user(
                    request,
                    f"{subscription.user.email}: {e.detail}",
                    level=messages.ERROR,
                )
            else:
                done += 1
        if done:
            self.message_user(request, f"{done} subscription(s) {done_label}.", level=messages.SUCCESS)

    @admin.action(description='Cancel selected subscriptions now')
    def cancel_now(self, request, queryset):
        self._run(request, queryset, 'admin_cancel', 'cancelled')

    @admin.action(description='Cancel selected subscriptions at period end')
    def schedule_cancel(self, request, queryset):
        self._run(request, queryset, 'admin_schedule_cancel', 'scheduled to cancel')

    @admin.action(description='Resume selected subscriptions')
    def resume(self, request, queryset):
        self._run(request, queryset, 'admin_resume', 'resumed')
