"""
Completion notification Celery task.

Async task: send_batch_completion_email(summary)
Flow: render message -> deliver over SMTP (or log when SMTP is unset)

Dependencies: celery, smtplib/email (stdlib), prospect_batch.configs
System role: Batch completion notification delivery
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Any

from prospect_batch.configs import get_settings
from prospect_batch.workers import celery_app

logger = logging.getLogger(__name__)

SEND_COMPLETION_EMAIL_TASK = "prospect_batch.send_batch_completion_email"


def render_completion_email(summary: dict[str, Any], app_url: str) -> tuple[str, str]:
    """
    Build subject and plain-text body for a completed job.

    Args:
        summary: Job completion summary
        app_url: Public base URL for the job link

    Returns:
        tuple: (subject, body)
    """
    job_name = summary.get("job_name") or "Batch research"
    completed = summary.get("completed_count", 0)
    failed = summary.get("failed_count", 0)
    total = summary.get("total_prospects", 0)

    subject = f"Batch research complete: {job_name}"
    body = "\n".join([
        f"Your batch research job \"{job_name}\" has finished.",
        "",
        f"Prospects: {total}",
        f"Completed: {completed}",
        f"Failed: {failed}",
        "",
        f"View results: {app_url.rstrip('/')}/batch-jobs/{summary.get('job_id')}",
    ])
    return subject, body


@celery_app.task(
    bind=True,
    name=SEND_COMPLETION_EMAIL_TASK,
    max_retries=3,
    autoretry_for=(smtplib.SMTPException, ConnectionError),
    retry_backoff=30,
)
def send_batch_completion_email(self, summary: dict[str, Any]) -> dict[str, Any]:
    """
    Deliver a batch completion notification.

    Args:
        summary: Job completion summary (job_id, job_name, recipient, counts)

    Returns:
        dict: delivered flag and reason
    """
    settings = get_settings()
    smtp = settings.notifications
    subject, body = render_completion_email(summary, settings.app_url)
    recipient = summary.get("recipient")

    if not smtp.host or not recipient:
        logger.info(
            "Batch completion notification not delivered",
            extra={
                "job_id": summary.get("job_id"),
                "reason": "smtp_disabled" if not smtp.host else "no_recipient",
                "subject": subject,
            },
        )
        return {"delivered": False, "reason": "smtp_disabled" if not smtp.host else "no_recipient"}

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = smtp.sender
    msg["To"] = recipient
    msg.set_content(body)

    with smtplib.SMTP(smtp.host, smtp.port) as server:
        if smtp.use_tls:
            server.starttls()
        if smtp.username and smtp.password:
            server.login(smtp.username, smtp.password)
        server.send_message(msg)

    logger.info(
        "Batch completion notification sent",
        extra={"job_id": summary.get("job_id"), "task_id": self.request.id},
    )
    return {"delivered": True, "reason": None}
