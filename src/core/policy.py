"""
IQ Server policy evaluation workflow.

Runs ResolvingApplication -> Submitting -> Polling and ends in exactly one of
Succeeded, Failed or Aborted. Waits between polls go through a
threading.Event so another thread (or a deadline) can cut them short.
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Iterable, Optional

from constants import DEFAULT_IQ_TOKEN, DEFAULT_IQ_USERNAME, DEFAULT_MAX_RETRIES, POLL_INTERVAL_SECONDS
from core.exceptions import PollCancelled, PollTimeout, SleuthException
from core.models import PolicyAction, PolicyJobHandle, PolicyResult, VulnerabilityRecord
from core.sbom import build_sbom
from integrations.iq_server import IQServerClient
from utils.logging_helpers import log_warning_section

logger = logging.getLogger(__name__)


class PolicyState(str, Enum):
    """States of a policy evaluation."""

    PENDING = "Pending"
    RESOLVING_APPLICATION = "ResolvingApplication"
    SUBMITTING = "Submitting"
    POLLING = "Polling"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    ABORTED = "Aborted"


def policy_verdict_message(result: PolicyResult) -> str:
    """Human readable summary of a terminal policy result."""
    if result.is_error:
        return f"There was an error with your request to Nexus IQ Server: {result.error_message}"
    if result.policy_action == PolicyAction.FAILURE:
        return "Policy violations found, they need to be cleaned up!"
    if result.policy_action == PolicyAction.WARNING:
        return "No policy failures, but policy warnings were reported for this audit."
    return "No policy violations reported for this audit!"


class PolicyEvaluator:
    """
    Drives one or more policy evaluations against a single IQ Server.

    Polling stops at the first terminal status. A status that is still
    pending after max_retries + 1 attempts raises PollTimeout.
    """

    def __init__(
        self,
        client: IQServerClient,
        max_retries: int = DEFAULT_MAX_RETRIES,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize policy evaluator.

        Args:
            client: IQ Server client
            max_retries: Extra status polls allowed after the first one
            poll_interval: Seconds to wait between status polls
            cancel_event: Setting this event cancels a running poll loop
            timeout: Overall polling deadline in seconds (optional)
            clock: Monotonic clock used for the deadline
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {max_retries}")

        self.client = client
        self.max_retries = max_retries
        self.poll_interval = poll_interval
        self.cancel_event = cancel_event or threading.Event()
        self.timeout = timeout
        self.clock = clock

        self.state = PolicyState.PENDING
        self.attempts = 0

    def cancel(self) -> None:
        """
        Ask a running poll loop to stop at its next wait.

        Cancellation is one-shot: the event stays set, so this evaluator (and
        any other sharing the event) aborts every later evaluation at its
        first wait. Build a new evaluator to evaluate again.
        """
        self.cancel_event.set()

    def evaluate(
        self,
        application: str,
        records: Iterable[VulnerabilityRecord],
        stage: str,
    ) -> PolicyResult:
        """
        Submit audit results for policy evaluation and wait for the verdict.

        Args:
            application: Public application id
            records: Audit results to describe in the bill of materials
            stage: Evaluation stage

        Returns:
            Terminal PolicyResult. A Failure verdict is a result, not an exception.

        Raises:
            ApplicationNotFound, PolicyServiceError, SubmissionRejected,
            TransportError, PollTimeout, PollCancelled: the evaluation was aborted
        """
        self.attempts = 0
        self._warn_on_default_credentials()

        try:
            self.state = PolicyState.RESOLVING_APPLICATION
            internal_id = self.client.resolve_application(application)

            self.state = PolicyState.SUBMITTING
            handle = self.client.submit_bom(internal_id, stage, build_sbom(records))

            self.state = PolicyState.POLLING
            result = self._poll(handle)
        except SleuthException as e:
            logger.debug(f"Policy evaluation aborted in state {self.state.value}: {e}")
            self.state = PolicyState.ABORTED
            raise

        if result.is_error or result.is_policy_failure:
            self.state = PolicyState.FAILED
        else:
            self.state = PolicyState.SUCCEEDED

        logger.info(f"Policy evaluation finished after {self.attempts} polls: {self.state.value}")
        return result

    def _poll(self, handle: PolicyJobHandle) -> PolicyResult:
        deadline = self.clock() + self.timeout if self.timeout is not None else None

        for attempt in range(self.max_retries + 1):
            self.attempts += 1
            result = self.client.poll_status(handle)
            if result is not None and result.is_terminal:
                return result

            if attempt < self.max_retries:
                self._wait(deadline)

        logger.error(f"Policy evaluation still pending after {self.attempts} attempts")
        raise PollTimeout(self.attempts)

    def _wait(self, deadline: Optional[float]) -> None:
        interval = self.poll_interval
        if deadline is not None:
            remaining = deadline - self.clock()
            if remaining <= 0:
                raise PollCancelled(f"Polling deadline passed after {self.attempts} attempts")
            interval = min(interval, remaining)

        if self.cancel_event.wait(interval):
            raise PollCancelled(f"Polling cancelled after {self.attempts} attempts")

    def _warn_on_default_credentials(self) -> None:
        if self.client.username == DEFAULT_IQ_USERNAME and self.client.token == DEFAULT_IQ_TOKEN:
            log_warning_section(
                "Default Nexus IQ Server credentials in use",
                [
                    f"Authenticating as '{DEFAULT_IQ_USERNAME}' with the default token.",
                    "Set a dedicated user with -l/--user and -k/--token for anything but a local trial.",
                ],
                logger=logger,
            )
