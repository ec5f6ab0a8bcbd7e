# tasks/serializers.py

import logging

from django.utils import timezone
from rest_framework import serializers

from .ai_engine.schema import TaskSnapshot
from .models import FeedbackEvent

logger = logging.getLogger(__name__)


class TaskPayloadSerializer(serializers.Serializer):
    """
    One task as sent by the client. Unknown fields are kept untouched and
    echoed back in the response; known fields are checked for parseability.
    """
    id = serializers.CharField()
    title = serializers.CharField(allow_blank=True)

    def to_internal_value(self, data):
        if not isinstance(data, dict):
            raise serializers.ValidationError("Each task must be an object.")
        super().to_internal_value(data)
        try:
            TaskSnapshot.from_payload(data)
        except (TypeError, ValueError) as e:
            raise serializers.ValidationError({"task": f"Task {data.get('id')!r}: {e}"})
        # keep the original payload (all fields, original keys)
        return dict(data)


class UserContextSerializer(serializers.Serializer):
    history = TaskPayloadSerializer(many=True, required=False, default=list)
    completedTasks = TaskPayloadSerializer(many=True, required=False, default=list)


class PrioritizeRequestSerializer(serializers.Serializer):
    tasks = TaskPayloadSerializer(many=True, allow_empty=True)
    userId = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    userContext = UserContextSerializer(required=False)


class FeedbackSerializer(serializers.Serializer):
    userId = serializers.CharField()
    taskId = serializers.CharField()
    action = serializers.ChoiceField(choices=FeedbackEvent.ACTION_CHOICES)
    context = serializers.DictField(required=False, default=dict)
    timestamp = serializers.DateTimeField(required=False, allow_null=True)

    def validate_context(self, value):
        task = value.get("task")
        if task is not None:
            if not isinstance(task, dict):
                raise serializers.ValidationError("context.task must be an object.")
            try:
                TaskSnapshot.from_payload({"id": "", "title": "", **task})
            except (TypeError, ValueError) as e:
                raise serializers.ValidationError(f"context.task: {e}")
        return value

    def create(self, validated_data):
        event = FeedbackEvent.objects.create(
            user_id=validated_data["userId"],
            task_id=validated_data["taskId"],
            action=validated_data["action"],
            context=validated_data.get("context") or {},
            timestamp=validated_data.get("timestamp") or timezone.now(),
        )
        logger.info(f"Feedback recorded: user={event.user_id} task={event.task_id} action={event.action}")
        return event
