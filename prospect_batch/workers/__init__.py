"""
Celery workers module.

Durable batch research runs and completion notifications.

Dependencies: celery, prospect_batch.configs
System role: Background task processing
"""

from celery import Celery
from celery.signals import setup_logging

from prospect_batch.configs import get_settings
from prospect_batch.observability.logger import configure_logging

settings = get_settings()
celery_config = settings.celery

celery_app = Celery(
    "prospect_batch",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend_url,
    include=[
        "prospect_batch.workers.tasks.batch_research",
        "prospect_batch.workers.tasks.notifications",
    ],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    task_max_retries=celery_config.task_max_retries,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=celery_config.result_expires_seconds,
    task_routes={
        "prospect_batch.run_batch_research": {"queue": celery_config.research_queue},
        "prospect_batch.send_batch_completion_email": {"queue": celery_config.notification_queue},
    },
)


@setup_logging.connect
def configure_worker_logging(**kwargs) -> None:
    """Use the application log format in worker processes."""
    configure_logging(settings.log_level)
