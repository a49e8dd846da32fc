"""Background scheduler for periodic alert checks."""
import logging
import threading
import time

import schedule

logger = logging.getLogger("signalpulse.scheduler")

MAX_CONSECUTIVE_FAILURES = 5


class AlertScheduler:
    """Runs ``monitor.run_alert_check`` every ``interval_seconds`` on a daemon thread.

    A failed cycle is logged and left for the next tick; nothing is retried
    inside a cycle.
    """

    def __init__(self, monitor, interval_seconds=900):
        self.monitor = monitor
        self.interval = interval_seconds
        self._scheduler = schedule.Scheduler()
        self._thread = None
        self._stop = threading.Event()
        self._callbacks = []
        self.consecutive_failures = 0

    def on_check(self, callback):
        """Register callback called with each ``AlertCheckResult``."""
        self._callbacks.append(callback)

    def start(self):
        if self._thread is not None:
            return
        self._stop.clear()
        self._scheduler.every(self.interval).seconds.do(self.run_once)
        self._thread = threading.Thread(target=self._run_loop, name="alert-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Scheduler started (every {self.interval}s)")

    def stop(self):
        self._stop.set()
        self._scheduler.clear()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("Scheduler stopped")

    def _run_loop(self):
        self.run_once()
        while not self._stop.is_set():
            self._scheduler.run_pending()
            self._stop.wait(1)

    def run_once(self):
        try:
            result = self.monitor.run_alert_check()
        except Exception as e:
            self.consecutive_failures += 1
            logger.error(f"Alert check failed ({self.consecutive_failures} consecutive): {e}")
            if self.consecutive_failures >= MAX_CONSECUTIVE_FAILURES:
                logger.critical(f"{MAX_CONSECUTIVE_FAILURES}+ consecutive alert check failures!")
            return None

        self.consecutive_failures = 0
        for cb in self._callbacks:
            try:
                cb(result)
            except Exception as e:
                logger.warning(f"Callback error: {e}")
        return result


def run_forever(scheduler):
    """Block the calling thread until interrupted."""
    scheduler.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        scheduler.stop()
