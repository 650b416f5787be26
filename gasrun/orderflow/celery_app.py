"""Celery configuration for orderflow.

Provides the Celery application used to run cancellation compensation plans
outside the request that cancelled the order.
"""
from __future__ import annotations

import os
from celery import Celery

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

celery_app = Celery(
    "orderflow",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["orderflow.worker"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # a plan is only acknowledged once it ran; a lost worker means a re-run
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
)
