from django.apps import AppConfig

class CookbookConfig(AppConfig):
    """Django app config for the recipe publishing app."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'cookbook'
