import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set

from .share_controller import Clock, ShareController
from ..mount.mount_actuator import MountActuator
from ..mount.mount_prober import MountProber
from ...config import Settings
from ...models import ShareDescriptor, ShareHealth, ShareStatus


class UnknownShareError(KeyError):
    """Raised when a share name is not among the monitored shares."""


class MonitorLoop:
    def __init__(
        self,
        settings: Settings,
        descriptors: Sequence[ShareDescriptor],
        prober: MountProber,
        actuator: MountActuator,
        clock: Clock = datetime.now,
    ):
        self._settings = settings
        self._actuator = actuator
        self._controllers: Dict[str, ShareController] = {
            descriptor.share_name: ShareController(
                descriptor=descriptor,
                prober=prober,
                actuator=actuator,
                base_delay_seconds=settings.remount_base_delay_seconds,
                max_delay_seconds=settings.remount_max_delay_seconds,
                clock=clock,
            )
            for descriptor in descriptors
        }

        self._is_running = False
        self._monitor_task: Optional[asyncio.Task] = None
        self._evaluations: Set[asyncio.Task] = set()
        self._manual_remounts: Dict[str, asyncio.Task] = {}

        logging.info(f"MonitorLoop initialized with {len(self._controllers)} share(s)")

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def controllers(self) -> List[ShareController]:
        return list(self._controllers.values())

    async def start_monitoring(self) -> None:
        if self._is_running:
            logging.warning("Share monitoring already running")
            return

        self._is_running = True
        self._monitor_task = asyncio.create_task(self._monitoring_loop())
        logging.info("Share monitoring started")

    async def stop_monitoring(self) -> None:
        """Stop scheduling ticks and let in-flight remounts and hooks finish."""
        if not self._is_running:
            return

        self._is_running = False

        if self._monitor_task:
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass

        if self._evaluations:
            logging.info(f"Waiting for {len(self._evaluations)} in-flight share evaluation(s)")
            await asyncio.gather(*self._evaluations, return_exceptions=True)

        if self._actuator.post_mount_hook:
            await self._actuator.post_mount_hook.wait_for_pending()

        logging.info("Share monitoring stopped")

    async def _monitoring_loop(self) -> None:
        logging.info(
            f"Share monitoring loop starting - checking every {self._settings.poll_interval_seconds:g}s"
        )
        try:
            while self._is_running:
                self._schedule_tick()
                await asyncio.sleep(self._settings.poll_interval_seconds)
        except asyncio.CancelledError:
            logging.debug("Share monitoring loop cancelled")

    def _schedule_tick(self) -> None:
        for controller in self._controllers.values():
            if controller.is_busy:
                continue
            task = asyncio.create_task(self._evaluate_share(controller))
            self._evaluations.add(task)
            task.add_done_callback(self._evaluations.discard)

    async def _evaluate_share(self, controller: ShareController) -> None:
        # Per-share errors stay with the share
        try:
            await controller.evaluate()
        except Exception as e:
            logging.error(
                f"Error evaluating share {controller.descriptor.share_name}: {e}",
                exc_info=True,
            )

    async def run_once(self) -> None:
        """Evaluate every share once, concurrently, and wait for all of them."""
        await asyncio.gather(
            *(self._evaluate_share(controller) for controller in self._controllers.values())
        )

    async def trigger_remount(self, share_name: str) -> bool:
        """
        Remount a share immediately, bypassing its backoff gate.

        Returns:
            False if a remount for the share is already in flight.

        Raises:
            UnknownShareError: if the share is not monitored.
        """
        controller = self._get_controller(share_name)
        logging.info(f"Manual remount requested for {share_name}")
        return await controller.force_remount()

    def request_remount(self, share_name: str) -> bool:
        """
        Schedule a manual remount in the background.

        Returns:
            False if the share is already remounting or a manual remount
            for it is queued.

        Raises:
            UnknownShareError: if the share is not monitored.
        """
        controller = self._get_controller(share_name)
        queued = self._manual_remounts.get(share_name)
        if controller.health == ShareHealth.REMOUNTING or (queued and not queued.done()):
            return False

        logging.info(f"Manual remount requested for {share_name}")
        task = asyncio.create_task(controller.force_remount())
        self._manual_remounts[share_name] = task
        self._evaluations.add(task)
        task.add_done_callback(self._evaluations.discard)
        return True

    def get_share_status(self, share_name: str) -> ShareStatus:
        controller = self._get_controller(share_name)
        return ShareStatus(share=controller.descriptor, state=controller.snapshot())

    def get_share_statuses(self) -> List[ShareStatus]:
        return [
            ShareStatus(share=controller.descriptor, state=controller.snapshot())
            for controller in self._controllers.values()
        ]

    def get_monitoring_status(self) -> dict:
        health_counts = {health.value: 0 for health in ShareHealth}
        for controller in self._controllers.values():
            health_counts[controller.health.value] += 1

        return {
            "is_running": self._is_running,
            "poll_interval_seconds": self._settings.poll_interval_seconds,
            "share_count": len(self._controllers),
            "health": health_counts,
        }

    def _get_controller(self, share_name: str) -> ShareController:
        try:
            return self._controllers[share_name]
        except KeyError:
            raise UnknownShareError(share_name) from None
