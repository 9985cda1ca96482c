"""
Celery task modules.

Tasks:
  - run_batch_research: durable execution of one claimed batch item
  - send_batch_completion_email: completion notification delivery
"""
