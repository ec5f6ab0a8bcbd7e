import logging

from django.apps import apps
from django.db import transaction
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .ai_engine.adaptive import AdaptiveWeightModel
from .ai_engine.celery_tasks import run_learning_step
from .ai_engine.orchestrator import PrioritizationEngine
from .serializers import FeedbackSerializer, PrioritizeRequestSerializer

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


def pattern_store():
    return apps.get_app_config("tasks").pattern_store


def get_engine():
    return PrioritizationEngine(store=pattern_store())


def enqueue_learning_step(user_id, completed):
    """
    Hand completed tasks to the learning worker. A broker outage is logged
    and dropped; it never fails the request that carried the tasks.
    """
    try:
        run_learning_step.apply_async(args=(user_id, completed), retry=False)
    except Exception as e:
        logger.exception(f"Could not enqueue learning step for user {user_id}: {e}")
        return False
    return True


class PrioritizeView(APIView):
    """
    POST: Rank a batch of tasks for a user and return insights.
    Recently completed tasks in the user context are learned from in the
    background, after the response has been computed.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = PrioritizeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user_id = data.get("userId") or request.headers.get(USER_ID_HEADER) or None
        user_context = data.get("userContext") or {}
        history = user_context.get("history") or []
        completed = user_context.get("completedTasks") or []

        result = get_engine().prioritize(
            tasks=data["tasks"],
            user_id=user_id,
            history=history,
            completed_tasks=completed,
        )

        if user_id and completed:
            # Learning never feeds back into the response it came with.
            def trigger_learning():
                enqueue_learning_step(user_id, completed)

            transaction.on_commit(trigger_learning)

        return Response(result.to_response(), status=status.HTTP_200_OK)

prioritize_view = PrioritizeView.as_view()


class FeedbackView(APIView):
    """
    POST: Record a feedback event and run one learning step for the user.
    Returns the updated weight vector.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = FeedbackSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = serializer.save()

        weights = AdaptiveWeightModel(pattern_store()).record_feedback(
            user_id=event.user_id,
            task_id=event.task_id,
            action=event.action,
            context=event.context,
            timestamp=event.timestamp,
        )
        return Response(
            {"userId": event.user_id, "weights": weights.as_dict()},
            status=status.HTTP_200_OK,
        )

feedback_view = FeedbackView.as_view()


class UserWeightsView(APIView):
    """
    GET: Current adaptive weights and pattern summary for a user.
    Unknown users get the default weights.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id):
        model = AdaptiveWeightModel(pattern_store())
        pattern = model.pattern_for(user_id)
        return Response({
            "userId": user_id,
            "weights": pattern.weights.as_dict(),
            "timeEfficiency": round(model.time_efficiency(pattern), 4),
            "categoryEfficiency": round(model.category_efficiency(pattern), 4),
            "lastUpdated": pattern.last_updated.isoformat() if pattern.last_updated else None,
        })

user_weights_view = UserWeightsView.as_view()


class HealthView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response({"status": "ok", "engine": get_engine().health_check()})

health_view = HealthView.as_view()
