from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'storefront.core'
    label = 'core'

    def ready(self):
        import storefront.core.cache_signals  # noqa: F401
