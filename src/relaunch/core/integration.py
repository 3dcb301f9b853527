"""Crash integration: wires reconciliation and scope sync into a hub.

``install`` does, in order:

1. start the crash handler and learn whether the previous run crashed
2. reconcile the previous session (only on the first install in a process)
3. record this run's app state for the next launch
4. install async hooks when ``stitch_async_code`` is set
5. start mirroring the scope into the crash handler
"""
from __future__ import annotations

import logging
from typing import Optional

from relaunch.core.app_state import AppStateTracker
from relaunch.core.crash.adapter import CrashAdapter
from relaunch.core.crash.faulthandler_adapter import FaulthandlerCrashAdapter
from relaunch.core.device import DeviceFacts, collect_device_facts
from relaunch.core.dispatch import DispatchQueue, SerialDispatchQueue
from relaunch.core.exceptions import RelaunchError
from relaunch.core.hub import Client, Hub
from relaunch.core.options import Options
from relaunch.core.scope.synchronizer import ScopeSynchronizer
from relaunch.core.session.reconciler import ReconcileResult, SessionReconciler
from relaunch.core.store.records import RecordStore
from relaunch.core.utils.time import DEFAULT_CLOCK, Clock

logger = logging.getLogger(__name__)


class CrashIntegration:
    def __init__(
        self,
        adapter: Optional[CrashAdapter] = None,
        *,
        queue: Optional[DispatchQueue] = None,
        device_facts: Optional[DeviceFacts] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.adapter = adapter
        self.queue = queue
        self.device_facts = device_facts
        self.clock = clock or DEFAULT_CLOCK
        self.hub: Optional[Hub] = None
        self.synchronizer: Optional[ScopeSynchronizer] = None
        self.app_state: Optional[AppStateTracker] = None
        self.last_result: Optional[ReconcileResult] = None
        self._owns_queue = False
        self._installed = False
        # Survives uninstall: the previous run is reconciled once per process.
        self._reconciled = False

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self, options: Options, hub: Optional[Hub] = None) -> Optional[ReconcileResult]:
        """Install into ``hub`` (a fresh hub with a client when omitted).

        Never raises; a failed step is logged and the remaining steps still run
        where they can.
        """
        if self._installed:
            logger.warning("Crash integration already installed; skipping reconciliation")
            return self.last_result
        self._installed = True
        try:
            return self._install(options, hub)
        except Exception as exc:
            logger.error("Crash integration install failed: %s", exc)
            return self.last_result

    def _install(self, options: Options, hub: Optional[Hub]) -> Optional[ReconcileResult]:
        self.hub = hub or Hub(Client(options), clock=self.clock)
        device = self.device_facts or collect_device_facts()
        if self.adapter is None:
            self.adapter = FaulthandlerCrashAdapter(
                options.crash_dir,
                async_origin_depth=options.async_origin_depth,
                clock=self.clock,
            )
        try:
            self.adapter.install()
        except Exception as exc:
            logger.error("Crash handler failed to install: %s", exc)

        client = self.hub.client
        store = client.store if client is not None else RecordStore(options.store_dir)
        if client is not None and options.enable_out_of_memory_tracking:
            self.app_state = AppStateTracker(store, device, options.release_name)

        if self._reconciled:
            logger.info("Previous session already reconciled in this process")
        else:
            self._reconciled = True
            reconciler = SessionReconciler(
                store,
                self.adapter,
                app_state=self.app_state,
                has_client=client is not None,
                enable_out_of_memory_tracking=options.enable_out_of_memory_tracking,
                crash_end_delta_seconds=options.crash_end_delta_seconds,
                clock=self.clock,
            )
            self.last_result = reconciler.reconcile()

        if self.app_state is not None:
            try:
                self.app_state.store_current(is_active=True)
            except (RelaunchError, OSError) as exc:
                logger.error("Could not record app state: %s", exc)

        if options.stitch_async_code:
            try:
                self.adapter.install_async_hooks()
            except Exception as exc:
                logger.error("Async hooks failed to install: %s", exc)

        if self.queue is None:
            self.queue = SerialDispatchQueue(name="relaunch-scope-sync")
            self._owns_queue = True
        self.synchronizer = ScopeSynchronizer(
            self.hub.scope,
            self.adapter,
            self.queue,
            device,
            release=options.release,
            dist=options.dist,
        )
        self.synchronizer.start()
        logger.debug("Crash integration installed")
        return self.last_result

    def uninstall(self) -> None:
        """Stop scope sync, remove async hooks and record a clean termination."""
        try:
            if self.synchronizer is not None:
                self.synchronizer.stop()
                self.synchronizer.flush()
                self.synchronizer = None
            if self.adapter is not None:
                self.adapter.uninstall_async_hooks()
                self.adapter.uninstall()
            if self.app_state is not None:
                self.app_state.mark_terminated()
            if self._owns_queue and self.queue is not None:
                self.queue.shutdown(wait=True)
                self.queue = None
                self._owns_queue = False
        except Exception as exc:
            logger.error("Crash integration uninstall failed: %s", exc)
        finally:
            self._installed = False


__all__ = ["CrashIntegration"]
