"""
URL configuration for recipepress project.

JSON endpoints live under `api/` (public, subscriber and comment moderation) and `admin-api/`
(staff); allauth handles sign-in and sign-up under `accounts/`.
"""
from django.contrib import admin
from django.urls import path, include
from cookbook import views
from cookbook.views.recipe_views import RecipeListApi, RecipeDetailApi

urlpatterns = [
    path('admin/', admin.site.urls),
    path('accounts/', include('allauth.urls')),

    path('api/likes', views.likes_api, name='likes_api'),
    path('api/likes/<int:recipe_id>', views.recipe_likes_api, name='recipe_likes_api'),
    path('api/recipes/', RecipeListApi.as_view(), name='recipe_list_api'),
    path('api/recipes/<slug:slug>/', RecipeDetailApi.as_view(), name='recipe_detail_api'),

    path('api/subscriptions', views.subscriptions_api, name='subscriptions_api'),
    path('api/subscriptions/cancel', views.cancel_subscription_api, name='cancel_subscription_api'),
    path('api/subscriptions/uncancel', views.uncancel_subscription_api, name='uncancel_subscription_api'),
    path('api/subscriptions/change-plan', views.change_plan_api, name='change_plan_api'),
    path('api/subscription-check', views.subscription_check_api, name='subscription_check_api'),
    path('api/webhooks/stripe', views.stripe_webhook, name='stripe_webhook'),

    path('api/auth/forgot-password', views.forgot_password_api, name='forgot_password_api'),
    path('api/auth/reset-password', views.reset_password_api, name='reset_password_api'),
    path('api/auth/create-password', views.create_password_api, name='create_password_api'),

    path('api/comments', views.comments_api, name='comments_api'),
    path('api/comments/<uuid:comment_id>', views.comment_detail_api, name='comment_detail_api'),
    path('api/comments/<uuid:comment_id>/approve', views.approve_comment_api, name='approve_comment_api'),
    path('api/moderation/comments', views.moderation_comments_api, name='moderation_comments_api'),
    path('api/moderation/comments/bulk', views.moderation_bulk_api, name='moderation_bulk_api'),
    path(
        'api/moderation/comments/<uuid:comment_id>',
        views.moderation_comment_api,
        name='moderation_comment_api',
    ),

    path('api/newsletter', views.newsletter_subscribe_api, name='newsletter_subscribe_api'),
    path('api/newsletter/verify', views.newsletter_verify_api, name='newsletter_verify_api'),

    path(
        'admin-api/subscriptions/<int:subscription_id>/cancel',
        views.admin_cancel_subscription_api,
        name='admin_cancel_subscription_api',
    ),
    path(
        'admin-api/subscriptions/<int:subscription_id>/schedule-cancel',
        views.admin_schedule_cancel_subscription_api,
        name='admin_schedule_cancel_subscription_api',
    ),
    path(
        'admin-api/subscriptions/<int:subscription_id>/resume',
        views.admin_resume_subscription_api,
        name='admin_resume_subscription_api',
    ),

    path('admin-api/users/<int:user_id>/status', views.admin_user_status_api, name='admin_user_status_api'),
    path('admin-api/users/<int:user_id>/suspend', views.admin_suspend_user_api, name='admin_suspend_user_api'),
    path('admin-api/users/<int:user_id>/activate', views.admin_activate_user_api, name='admin_activate_user_api'),
    path('admin-api/users/<int:user_id>/promote', views.admin_promote_user_api, name='admin_promote_user_api'),

    path(
        'admin-api/newsletter/campaign',
        views.admin_newsletter_campaign_api,
        name='admin_newsletter_campaign_api',
    ),
    path(
        'admin-api/newsletter/<int:subscriber_id>',
        views.admin_newsletter_subscriber_api,
        name='admin_newsletter_subscriber_api',
    ),
]
