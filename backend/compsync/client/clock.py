"""Clock offset calibration against the server's /api/time endpoint.

offset = serverTime - localNow, so "what the server thinks it is now" is
localNow + offset.

A single probe is used and the network latency is assumed symmetric: the
one-way delay is taken as half the round trip. That is a best-effort
correction, good to within the asymmetry of the link, and is the accepted
trade-off here rather than something to tune with a different estimator.
"""

import logging
from typing import Callable, Optional

import requests

from compsync.errors import CalibrationError
from compsync.timeutil import now_ms

logger = logging.getLogger(__name__)

# Seconds to wait for the time probe before falling back to local time
DEFAULT_TIMEOUT = 5.0


class ClockCalibrator:
    def __init__(
        self,
        time_url: str,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = now_ms,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        self.time_url = time_url
        self.session = session or requests.Session()
        self.clock = clock
        self.timeout = timeout
        self.offset: float = 0

    def calibrate(self) -> float:
        """Probe the server once and store the offset. Raises CalibrationError."""
        before = self.clock()
        try:
            res = self.session.get(self.time_url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CalibrationError(f"Time probe to {self.time_url} failed: {exc}") from exc
        after = self.clock()
        try:
            res.raise_for_status()
            payload = res.json()
        except (requests.RequestException, ValueError) as exc:
            raise CalibrationError(f"Time probe to {self.time_url} failed: {exc}") from exc

        server_time = payload.get('serverTime') if isinstance(payload, dict) else None
        if isinstance(server_time, bool) or not isinstance(server_time, (int, float)):
            raise CalibrationError(f"Time probe returned no usable serverTime: {payload!r}")

        latency = (after - before) / 2
        self.offset = server_time + latency - after
        logger.info(f"[clock-calibrated] offset={self.offset:.1f}ms rtt={after - before:.1f}ms")
        return self.offset

    def calibrate_or_zero(self) -> float:
        """Calibrate, degrading to local unsynced time when the probe fails."""
        try:
            return self.calibrate()
        except CalibrationError as exc:
            logger.warning(f"[clock-unsynced] {exc}; using offset=0")
            self.offset = 0
            return 0

    def adjusted_now(self) -> float:
        return self.clock() + self.offset
