from django.urls import path
from .views import prioritize_view
from .views import feedback_view
from .views import user_weights_view
from .views import health_view

urlpatterns=[
    # POST (Rank a task batch)
    path('prioritize/',prioritize_view,name="prioritize"),

    # POST (Feedback event -> learning step)
    path('feedback/',feedback_view,name="feedback"),

    # GET (Adaptive weights for a user)
    path('weights/<str:user_id>/',user_weights_view,name="user-weights"),

    path('health/',health_view,name="health")

]
