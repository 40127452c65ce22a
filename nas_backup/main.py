"""Entry point: one backup run per invocation, scheduled externally (cron / systemd timer)."""

import asyncio
import logging
import signal
import sys

from .core.exceptions import BackupError
from .dependencies import get_backup_pipeline, get_settings
from .logging_config import setup_console_logging, setup_logging
from .models import RunReport
from .services.network_mount import UnsupportedPlatformError

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_SHARE_FAILURES = 2


async def _run_pipeline() -> RunReport:
    """Run the pipeline with SIGINT/SIGTERM turned into task cancellation."""
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    interrupted = False

    def handle_signal(signum: int) -> None:
        nonlocal interrupted
        if interrupted:
            logging.warning("Cleanup in progress - please wait")
            return
        interrupted = True
        logging.warning(f"Received {signal.Signals(signum).name}, stopping and cleaning up...")
        task.cancel()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, handle_signal, signum)
    try:
        return await get_backup_pipeline().run()
    finally:
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)


def run() -> int:
    setup_console_logging()

    try:
        settings = get_settings()
    except BackupError as e:
        logging.error(str(e))
        return EXIT_FAILURE

    setup_logging(settings)
    logging.info("NAS backup starting up...")

    try:
        report = asyncio.run(_run_pipeline())
    except BackupError as e:
        logging.error(f"Backup failed: {e}")
        return EXIT_FAILURE
    except UnsupportedPlatformError as e:
        logging.error(str(e))
        return EXIT_FAILURE
    except (asyncio.CancelledError, KeyboardInterrupt):
        logging.error("Backup interrupted, exiting")
        return EXIT_FAILURE
    except Exception:
        logging.exception("Unexpected error during backup run")
        return EXIT_FAILURE

    if report.left_mounted:
        logging.error(
            f"Shares still mounted after cleanup: {', '.join(str(p) for p in report.left_mounted)}"
        )
        return EXIT_FAILURE

    if report.has_share_failures:
        logging.warning("Backup finished with share failures")
        return EXIT_SHARE_FAILURES

    logging.info("Backup completed successfully")
    logging.info("Backup script finished")
    return EXIT_OK


def main() -> None:
    sys.exit(run())
