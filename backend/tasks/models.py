from django.db import models
from django.utils.translation import gettext_lazy as _


class UserPattern(models.Model):
    """
    Learned prioritization state for one user: completion patterns and the
    normalized adaptive weight vector.
    """
    # Identity comes from the upstream auth provider, not from a local user table
    user_id = models.CharField(max_length=255, unique=True, verbose_name=_("user id"))

    preferred_times = models.JSONField(
        default=dict,
        verbose_name=_("preferred times"),
        help_text=_("Completion counts keyed by hour bucket, e.g. '9-10'.")
    )
    category_efficiency = models.JSONField(
        default=dict,
        verbose_name=_("category efficiency"),
        help_text=_("Per-category {completed, total, rate}.")
    )
    complexity_preference = models.JSONField(
        default=dict,
        verbose_name=_("complexity preference"),
        help_text=_("Per complexity-decile {completed, total, rate}.")
    )
    weights = models.JSONField(
        default=dict,
        verbose_name=_("adaptive weights"),
        help_text=_("urgency, impact, complexity, context, time_awareness; sums to 1.")
    )

    last_updated = models.DateTimeField(auto_now=True, verbose_name=_("last updated"))

    class Meta:
        verbose_name = _("User Pattern")
        verbose_name_plural = _("User Patterns")
        ordering = ['-last_updated']

    def __str__(self):
        return f"Pattern for {self.user_id}"


class FeedbackEvent(models.Model):
    """
    A user's reaction to a prioritized task. Every event drives one learning step.
    """
    ACTION_COMPLETED = 'completed'
    ACTION_POSTPONED = 'postponed'
    ACTION_REORDERED = 'reordered'
    ACTION_DELETED = 'deleted'
    ACTION_LIKED = 'liked'
    ACTION_DISLIKED = 'disliked'

    ACTION_CHOICES = [
        (ACTION_COMPLETED, _("Completed")),
        (ACTION_POSTPONED, _("Postponed")),
        (ACTION_REORDERED, _("Reordered")),
        (ACTION_DELETED, _("Deleted")),
        (ACTION_LIKED, _("Liked")),
        (ACTION_DISLIKED, _("Disliked")),
    ]

    user_id = models.CharField(max_length=255, db_index=True, verbose_name=_("user id"))
    task_id = models.CharField(max_length=255, verbose_name=_("task id"))
    action = models.CharField(max_length=20, choices=ACTION_CHOICES, verbose_name=_("action"))
    context = models.JSONField(default=dict, blank=True, verbose_name=_("context"))
    timestamp = models.DateTimeField(verbose_name=_("timestamp"))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))

    class Meta:
        verbose_name = _("Feedback Event")
        verbose_name_plural = _("Feedback Events")
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.user_id} {self.action} {self.task_id}"
