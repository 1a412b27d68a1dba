#!/usr/bin/env python3
"""
TranscodeFlow CLI - start the API server or the worker

The mode comes from the first argument or, when omitted, from APP_MODE.
"""
import argparse
import sys

from api.config import settings
from api.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

SERVER_MODES = ("server", "api")
WORKER_MODES = ("worker",)


def main(argv=None):
    """Main entry point for the TranscodeFlow CLI."""
    parser = argparse.ArgumentParser(prog="transcodeflow", description=__doc__)
    parser.add_argument(
        "mode",
        nargs="?",
        default=settings.APP_MODE,
        help="server (alias: api) or worker; defaults to APP_MODE",
    )
    args = parser.parse_args(argv)
    mode = args.mode.strip().lower()
    setup_logging(mode)

    if mode in SERVER_MODES:
        from api.main import main as run_server
        run_server()
    elif mode in WORKER_MODES:
        from worker.main import main as run_worker
        run_worker()
    else:
        logger.error("Unknown application mode", mode=mode)
        sys.exit(1)


if __name__ == "__main__":
    main()
