"""
Durable workflow feature flags.

Decides per user whether a workflow runs on the durable engine. The
rollout bucket comes from a stable hash of the user id, so a user stays
in the same bucket across requests and processes.

Dependencies: prospect_batch.configs
System role: Execution strategy gating
"""

import logging

from prospect_batch.configs.workflow import WorkflowSettings

logger = logging.getLogger(__name__)

DURABLE_BATCH_PROCESSING = "durable-batch-processing"

_INT32_MAX = 2147483647


def user_rollout_bucket(user_id: str) -> float:
    """
    Map a user id onto [0, 1] with a 32-bit string hash.

    Args:
        user_id: Caller identity

    Returns:
        float: Stable bucket value for the user
    """
    value = 0
    for char in user_id:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value) / _INT32_MAX


def is_workflow_enabled(
    flag: str,
    user_id: str | None,
    settings: WorkflowSettings,
) -> bool:
    """
    Check whether a durable workflow is enabled for a user.

    Args:
        flag: Workflow flag name
        user_id: Caller identity (None skips the rollout check)
        settings: Workflow settings

    Returns:
        bool: True if the workflow should run durably for this user
    """
    if not settings.enabled:
        return False

    flags = {DURABLE_BATCH_PROCESSING: settings.flag_batch_processing}
    if not flags.get(flag, False):
        return False

    if settings.rollout_percentage >= 100 or user_id is None:
        return True
    if settings.rollout_percentage <= 0:
        return False

    enabled = user_rollout_bucket(user_id) < settings.rollout_percentage / 100
    logger.debug(
        "Workflow rollout decision",
        extra={"flag": flag, "user_id": user_id, "enabled": enabled},
    )
    return enabled
