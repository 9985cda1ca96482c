"""
Adapters between application services and Celery.

Exports:
  - CeleryWorkflowRunner: durable workflow runner
  - CeleryCompletionNotifier, JobCompletionSummary: completion notifications
"""

from prospect_batch.application.adapters.completion_notifier import (
    CeleryCompletionNotifier,
    CompletionNotifier,
    JobCompletionSummary,
)
from prospect_batch.application.adapters.workflow_runner import CeleryWorkflowRunner

__all__ = [
    "CeleryCompletionNotifier",
    "CeleryWorkflowRunner",
    "CompletionNotifier",
    "JobCompletionSummary",
]
