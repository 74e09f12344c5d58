import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Set

from .backoff import backoff_delay
from ..mount.mount_actuator import MountActuator
from ..mount.mount_prober import MountProber
from ...core.exceptions import InvalidTransitionError, MountError, MountTableError
from ...models import HealthSignal, ShareDescriptor, ShareHealth, ShareState

Clock = Callable[[], datetime]

# All legal health transitions
_TRANSITIONS: Dict[ShareHealth, Set[ShareHealth]] = {
    ShareHealth.UNKNOWN: {
        ShareHealth.HEALTHY,
        ShareHealth.UNHEALTHY,
        ShareHealth.REMOUNTING,
    },
    ShareHealth.HEALTHY: {
        ShareHealth.UNHEALTHY,
        ShareHealth.REMOUNTING,  # Manual remount only
    },
    ShareHealth.UNHEALTHY: {
        ShareHealth.HEALTHY,
        ShareHealth.REMOUNTING,
    },
    ShareHealth.REMOUNTING: {
        ShareHealth.HEALTHY,
        ShareHealth.UNHEALTHY,
    },
}


class ShareController:
    """
    Health state machine for ONE share.

    The controller is the only owner of its ShareState. Each evaluation
    probes the share and, when the mount is missing or stale and the
    backoff gate is open, runs a remount through the actuator.

    The REMOUNTING state doubles as the per-share mutex: while a share is
    REMOUNTING no evaluation or manual trigger starts another attempt.
    Entering REMOUNTING never crosses an await after the check, so two
    tasks can never both pass the gate.

    consecutive_failures only resets on a successful remount. A healthy
    probe moves the share to HEALTHY but keeps the failure count and the
    backoff gate, since a dying SMB session can look healthy briefly.
    """

    def __init__(
        self,
        descriptor: ShareDescriptor,
        prober: MountProber,
        actuator: MountActuator,
        base_delay_seconds: float,
        max_delay_seconds: float,
        clock: Clock = datetime.now,
    ):
        self._descriptor = descriptor
        self._prober = prober
        self._actuator = actuator
        self._base_delay_seconds = base_delay_seconds
        self._max_delay_seconds = max_delay_seconds
        self._clock = clock
        self._state = ShareState()
        self._probing = False

    @property
    def descriptor(self) -> ShareDescriptor:
        return self._descriptor

    @property
    def health(self) -> ShareHealth:
        return self._state.health

    @property
    def is_busy(self) -> bool:
        """True while a probe or a remount for this share is in flight."""
        return self._probing or self._state.health == ShareHealth.REMOUNTING

    def snapshot(self) -> ShareState:
        return self._state.model_copy()

    async def evaluate(self) -> ShareHealth:
        """
        Run one evaluation tick for the share.

        Returns:
            The share's health after the tick.
        """
        if self.is_busy:
            logging.debug(f"{self._descriptor.share_name}: previous evaluation still running, skipping")
            return self._state.health

        self._probing = True
        try:
            signal = await self._prober.probe(self._descriptor)
        except MountTableError as e:
            logging.warning(f"{self._descriptor.share_name}: cannot read mount table, skipping tick: {e}")
            return self._state.health
        finally:
            self._probing = False

        # A manual remount may have started while we were probing
        if self._state.health == ShareHealth.REMOUNTING:
            return self._state.health

        self._state.last_signal = signal
        self._state.last_checked_at = self._clock()

        if signal == HealthSignal.MOUNTED_HEALTHY:
            self._transition(ShareHealth.HEALTHY, reason="mount is responsive")
            return self._state.health

        gate = self._state.next_eligible_attempt
        if gate is not None and self._clock() < gate:
            self._transition(ShareHealth.UNHEALTHY, reason=signal.value)
            logging.debug(
                f"{self._descriptor.share_name}: {signal.value}, "
                f"next remount attempt not before {gate.isoformat(timespec='seconds')}"
            )
            return self._state.health

        if self._state.health == ShareHealth.HEALTHY:
            self._transition(ShareHealth.UNHEALTHY, reason=signal.value)

        await self._remount(reason=signal.value)
        return self._state.health

    async def force_remount(self) -> bool:
        """
        Remount now, ignoring the backoff gate.

        Returns:
            False if a remount for this share is already in flight.
        """
        if self._state.health == ShareHealth.REMOUNTING:
            logging.info(f"{self._descriptor.share_name}: remount already in progress")
            return False

        await self._remount(reason="manual remount requested")
        return True

    async def _remount(self, reason: str) -> None:
        self._transition(ShareHealth.REMOUNTING, reason=reason)

        try:
            await self._actuator.remount(self._descriptor)
        except MountError as e:
            self._record_failure(str(e))
        except asyncio.CancelledError:
            # Not a completed attempt; leave the failure count alone
            self._transition(ShareHealth.UNHEALTHY, reason="remount cancelled")
            raise
        except Exception as e:
            logging.exception(f"Unexpected error remounting {self._descriptor.share_name}")
            self._record_failure(f"unexpected error: {e}")
        else:
            self._record_success()

    def _record_success(self) -> None:
        self._state.consecutive_failures = 0
        self._state.next_eligible_attempt = None
        self._state.last_error = None
        self._state.last_mount_succeeded_at = self._clock()
        self._state.remount_count += 1
        self._transition(ShareHealth.HEALTHY, reason="remount succeeded")

    def _record_failure(self, error: str) -> None:
        failures = self._state.consecutive_failures + 1
        delay = backoff_delay(failures, self._base_delay_seconds, self._max_delay_seconds)
        next_attempt = self._clock() + timedelta(seconds=delay)

        self._state.consecutive_failures = failures
        self._state.next_eligible_attempt = next_attempt
        self._state.last_error = error

        logging.error(
            f"Remount of {self._descriptor.share_name} failed ({failures} in a row), "
            f"retrying in {delay:g}s: {error}",
            extra={
                "operation": "remount_failed",
                "share": self._descriptor.share_name,
                "mount_point": self._descriptor.mount_point,
                "error": error,
                "consecutive_failures": failures,
                "next_eligible_attempt": next_attempt.isoformat(),
            },
        )
        self._transition(ShareHealth.UNHEALTHY, reason="remount failed")

    def _transition(self, new_health: ShareHealth, reason: str) -> None:
        old_health = self._state.health
        if new_health == old_health:
            return

        if new_health not in _TRANSITIONS.get(old_health, set()):
            raise InvalidTransitionError(
                self._descriptor.share_name, old_health.value, new_health.value
            )

        self._state.health = new_health
        log = logging.warning if new_health == ShareHealth.UNHEALTHY else logging.info
        log(
            f"Share {self._descriptor.share_name}: {old_health.value} -> {new_health.value} ({reason})",
            extra={
                "operation": "share_health_change",
                "share": self._descriptor.share_name,
                "mount_point": self._descriptor.mount_point,
                "old_health": old_health.value,
                "new_health": new_health.value,
            },
        )
