# -*- codeing = utf-8 -*-
# @Create: 2023-02-16 3:37 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""Process entry point for the uptime worker."""

import argparse
import logging
import signal
import sys
import threading
from concurrent.futures import wait

import configuration
from uptime.service import build_worker

LOGGER = logging.getLogger(__name__)


def _parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Probe registered checks and rotate their outcome logs.")
    parser.add_argument(
        "--once",
        action="store_true",
        help="run one check cycle and one log rotation, then exit",
    )
    return parser.parse_args(argv)


def run(argv=None) -> int:
    args = _parse_args(argv)
    configuration.configure_logging()
    worker = build_worker()

    if args.once:
        futures = worker.run_check_cycle()
        wait(futures)
        report = worker.rotate_logs()
        worker.stop()
        return 0 if report.error is None else 1

    stop_requested = threading.Event()

    def _request_stop(signum, _frame):
        LOGGER.info("monitor.worker.signal signum=%s", signum)
        stop_requested.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    worker.start()
    LOGGER.info("Background workers are running")
    try:
        while not stop_requested.wait(1.0):
            pass
    finally:
        worker.stop()
    return 0


if __name__ == "__main__":
    sys.exit(run())
