"""
Unit tests for completion notifications.

Tests email rendering, the SMTP delivery task, and the fire-and-forget
Celery notifier.

Dependencies: pytest, unittest.mock, kombu
System role: Completion notification verification
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
from kombu.exceptions import OperationalError as BrokerOperationalError

from prospect_batch.application.adapters.completion_notifier import (
    CeleryCompletionNotifier,
    JobCompletionSummary,
)
from prospect_batch.configs.notifications import NotificationSettings
from prospect_batch.workers.tasks.notifications import (
    render_completion_email,
    send_batch_completion_email,
)

NOTIFICATIONS_MODULE = "prospect_batch.workers.tasks.notifications"


@pytest.fixture
def summary():
    return JobCompletionSummary(
        job_id=uuid.uuid4(),
        user_id="user-1",
        job_name="Spring donor list",
        total_prospects=10,
        completed_count=8,
        failed_count=2,
        recipient="dev-office@example.org",
    )


class TestRenderCompletionEmail:
    """Test suite for render_completion_email."""

    def test_subject_and_counts(self, summary):
        subject, body = render_completion_email(summary.model_dump(mode="json"), "https://app.example.org/")

        assert subject == "Batch research complete: Spring donor list"
        assert "Completed: 8" in body
        assert "Failed: 2" in body
        assert f"https://app.example.org/batch-jobs/{summary.job_id}" in body

    def test_missing_name(self):
        subject, _ = render_completion_email({"job_id": "abc"}, "http://localhost:3000")

        assert subject == "Batch research complete: Batch research"


class TestSendBatchCompletionEmail:
    """Test suite for the SMTP delivery task."""

    def test_logs_only_without_smtp_host(self, summary, test_settings):
        settings = test_settings.model_copy(update={"notifications": NotificationSettings(host=None)})

        with patch(f"{NOTIFICATIONS_MODULE}.get_settings", return_value=settings), \
             patch(f"{NOTIFICATIONS_MODULE}.smtplib.SMTP") as smtp_cls:
            result = send_batch_completion_email(summary.model_dump(mode="json"))

        assert result == {"delivered": False, "reason": "smtp_disabled"}
        smtp_cls.assert_not_called()

    def test_skips_without_recipient(self, summary, test_settings):
        settings = test_settings.model_copy(
            update={"notifications": NotificationSettings(host="smtp.example.org")}
        )
        payload = summary.model_copy(update={"recipient": None}).model_dump(mode="json")

        with patch(f"{NOTIFICATIONS_MODULE}.get_settings", return_value=settings):
            result = send_batch_completion_email(payload)

        assert result == {"delivered": False, "reason": "no_recipient"}

    def test_sends_over_smtp(self, summary, test_settings):
        settings = test_settings.model_copy(update={
            "notifications": NotificationSettings(
                host="smtp.example.org",
                port=2525,
                username="mailer",
                password="secret",
                sender="research@example.org",
                use_tls=True,
            )
        })
        server = MagicMock()

        with patch(f"{NOTIFICATIONS_MODULE}.get_settings", return_value=settings), \
             patch(f"{NOTIFICATIONS_MODULE}.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = server
            result = send_batch_completion_email(summary.model_dump(mode="json"))

        assert result == {"delivered": True, "reason": None}
        smtp_cls.assert_called_once_with("smtp.example.org", 2525)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        message = server.send_message.call_args.args[0]
        assert message["To"] == "dev-office@example.org"
        assert message["From"] == "research@example.org"


class TestCeleryCompletionNotifier:
    """Test suite for CeleryCompletionNotifier."""

    async def test_enqueues_task(self, summary):
        with patch.object(send_batch_completion_email, "apply_async") as apply_async:
            await CeleryCompletionNotifier().notify(summary)

        apply_async.assert_called_once_with(args=[summary.model_dump(mode="json")], retry=False)

    async def test_broker_failure_is_not_raised(self, summary):
        with patch.object(
            send_batch_completion_email,
            "apply_async",
            side_effect=BrokerOperationalError("connection refused"),
        ) as apply_async:
            await CeleryCompletionNotifier().notify(summary)

        apply_async.assert_called_once()
