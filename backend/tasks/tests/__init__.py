# tasks/tests/__init__.py
"""
TaskTuner Test Suite
====================

Modules:
--------
- test_urgency, test_signals, test_risk: scoring building blocks
- test_adaptive, test_store: learning and per-user pattern storage
- test_engine: the full prioritization pipeline
- test_external_ranker, test_fallback: ranking paths (OpenAI client mocked)
- test_insights, test_explain: batch summary lines and per-task aiInsights
- test_schema: payload and deadline parsing
- test_api, test_celery_tasks: HTTP endpoints and background jobs

Running Tests:
--------------
    # From the repository root
    pytest

    # Or through Django
    cd backend && python manage.py test tasks -v 2
"""
