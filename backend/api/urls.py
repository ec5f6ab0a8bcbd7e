from django.urls import path,include

urlpatterns=[
    path('v1/ai/',include('tasks.urls')),
]
