from .like_views import *
from .recipe_views import *
from .subscription_views import *
from .admin_subscription_views import *
from .webhook_views import *
from .auth_token_views import *
from .comment_views import *
from .moderation_views import *
from .newsletter_views import *
from .admin_user_views import *
