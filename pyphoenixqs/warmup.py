import logging
import threading

from pyphoenixqs.globals import WARM_UP_GRACE_PERIOD
from pyphoenixqs.logger import logger


class WarmupInitializer(threading.Thread):
    """Open the connection once in the background at process start

    Waits a grace period for HBase / Phoenix to boot, then calls
    manager.open() a single time. Failures are logged and dropped: the
    first real request opens the connection anyway.
    """

    def __init__(self, manager, grace_period=WARM_UP_GRACE_PERIOD):
        super(WarmupInitializer, self).__init__(name='phoenixqs-warmup', daemon=True)
        self.manager = manager
        self.grace_period = grace_period
        self._halted = threading.Event()
        self.error = None

    def run(self):
        if logger.isEnabledFor(logging.INFO):
            logger.info(f'Waiting {self.grace_period} seconds for HBase / Phoenix to fully initialize')
        if self._halted.wait(self.grace_period):
            return

        try:
            self.manager.open()
        except Exception as e:
            # Startup is never gated on the query server
            self.error = e
            if logger.isEnabledFor(logging.WARNING):
                logger.warning(f'Warm-up could not open the connection, it will be opened on first request: {e}',
                               exc_info=True)
        else:
            if logger.isEnabledFor(logging.INFO):
                logger.info(f'Warm-up opened the connection over the '
                            f'{self.manager.active_transport_kind.value} transport')

    def halt(self):
        self._halted.set()

    @property
    def halted(self):
        return self._halted.is_set()


def _start_warmup(manager, grace_period=WARM_UP_GRACE_PERIOD):
    warmup = WarmupInitializer(manager, grace_period)
    warmup.start()
    return warmup


def _end_warmup(warmup):
    if warmup is not None:
        warmup.halt()
        if warmup is not threading.current_thread():
            warmup.join()
