"""
Report pipeline run and step status.
"""

import logging
from typing import Optional

import redis

from runner.src.models.run import RunStatus
from runner.src.models.step import StepResult

logger = logging.getLogger(__name__)

RUN_STATUS = "deployx:status"
STEP_STATUS_PREFIX = "deployx:steps:"

class StatusReporter:
    """Default reporter: status is only logged by the runner."""

    def update_run_status(self, run_id: str, status: RunStatus):
        pass

    def update_step_status(self, run_id: str, result: StepResult):
        pass

class RedisStatusReporter(StatusReporter):
    """Publishes status to Redis so dashboards can follow a run."""

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.client = client or redis.from_url(redis_url, decode_responses=True)

    def update_run_status(self, run_id: str, status: RunStatus):
        try:
            self.client.hset(RUN_STATUS, run_id, status.value)
            logger.debug(f"Updated run {run_id} status to {status.value}")
        except redis.RedisError as e:
            logger.warning(f"Failed to publish status of run {run_id}: {e}")

    def update_step_status(self, run_id: str, result: StepResult):
        try:
            self.client.rpush(f"{STEP_STATUS_PREFIX}{run_id}", result.model_dump_json())
        except redis.RedisError as e:
            logger.warning(f"Failed to publish step '{result.name}' of run {run_id}: {e}")

    def get_run_status(self, run_id: str) -> Optional[str]:
        return self.client.hget(RUN_STATUS, run_id)

def get_status_reporter(redis_url: Optional[str]) -> StatusReporter:
    if redis_url:
        return RedisStatusReporter(redis_url)
    return StatusReporter()
