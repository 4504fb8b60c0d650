"""Rate limiting for forced certificate refreshes.

When ``refresh_on_unknown_kid`` is enabled, a token naming an unknown ``kid``
may trigger an out-of-band refresh to pick up a freshly rotated key. Without a
limit, attackers could force one outbound request per forged token. RefreshGate
allows at most one forced refresh per configured interval and counts denials
for alerting.
"""

from __future__ import annotations

import logging
import time
from typing import Final

logger = logging.getLogger(__name__)

_DEFAULT_INTERVAL: Final[float] = 60.0
"""Default minimum interval between forced refreshes in seconds."""

_DEFAULT_ALERT_THRESHOLD: Final[int] = 40
"""Default number of denials before a warning is logged (per interval)."""


class RefreshGate:
    """Rate limiter for forced certificate refreshes.

    Concurrency:
        Not synchronized. The verifier calls ``allow()`` only from its event
        loop while holding ``CertCache.lock``, so calls never interleave.

    Attributes:
        _min_interval: Minimum seconds between allowed refreshes.
        _alert_threshold: Number of denials before alerting.
        _next_allowed_at: Monotonic timestamp when the next refresh is allowed.
        _retry_attempts: Count of denied attempts since the last allow.
    """

    def __init__(
        self,
        min_interval: float = _DEFAULT_INTERVAL,
        alert_threshold: int = _DEFAULT_ALERT_THRESHOLD,
    ) -> None:
        """Initialize the refresh gate.

        Args:
            min_interval: Minimum seconds between allowed refreshes. Google
                rotates keys on a schedule of days, so 60-300 seconds is safe.
            alert_threshold: Number of denied attempts before logging a warning.

        Raises:
            ValueError: If min_interval or alert_threshold are invalid.
        """
        if min_interval <= 0:
            raise ValueError(f"min_interval must be positive, got {min_interval}")
        if alert_threshold < 1:
            raise ValueError(f"alert_threshold must be at least 1, got {alert_threshold}")

        self._min_interval = min_interval
        self._alert_threshold = alert_threshold

        self._next_allowed_at: float | None = None
        self._retry_attempts: int = 0

    @property
    def retry_attempts(self) -> int:
        return self._retry_attempts

    def allow(self) -> bool:
        """Check if a forced refresh is allowed now.

        Returns:
            True if allowed (the interval restarts now), False if denied.

        Side Effects:
            - On True: resets the denial counter
            - On False: increments the denial counter, logging a warning each
              time it reaches a multiple of the alert threshold
        """
        now = time.monotonic()

        if self._next_allowed_at is not None and now < self._next_allowed_at:
            self._retry_attempts += 1
            if self._retry_attempts % self._alert_threshold == 0:
                logger.warning(
                    "Forced certificate refresh throttled: %d denials",
                    self._retry_attempts,
                )
            return False

        self._next_allowed_at = now + self._min_interval
        self._retry_attempts = 0
        return True
