from django.apps import AppConfig


class TasksConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tasks'

    def ready(self):
        # The app owns the one pattern store instance requests share.
        from .ai_engine.store import build_pattern_store

        self.pattern_store = build_pattern_store()
