# ============================================
#     PairLink - Expiry Sweeper
# ============================================

from pairlink.config import CLEANUP_INTERVAL_SECONDS
from pairlink.logger import log_info, log_exception

# Set this to True if you want logs *only when something expires*
SILENT_SWEEP = True


def sweep_once(controller):
    """
    Run one expiry cycle.

    Goes through controller.expire_idle() so expiry and explicit
    leave share the same teardown path (no double notification).
    """
    expired = controller.expire_idle()

    if expired:
        log_info("sweeper", f"Expired {len(expired)} idle session(s).")
    elif not SILENT_SWEEP:
        log_info("sweeper", "Sweep cycle executed, nothing expired.")

    return expired


def start_expiry_sweeper(socketio, controller, interval: float = CLEANUP_INTERVAL_SECONDS):
    """Start the recurring expiry background task."""
    log_info("sweeper", f"Starting expiry sweeper (every {interval}s).")

    def _task():
        while True:
            try:
                socketio.sleep(interval)
                sweep_once(controller)
            except Exception as e:
                log_exception("sweeper", f"Error during sweep cycle: {e}")

    return socketio.start_background_task(_task)
