#!/usr/bin/env python3
"""
Worker process hosting the background check workflow and its activities
Run alongside the gateway: python scripts/run_worker.py
"""

import asyncio
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import init_db
from app.utils.logger import get_logger
from app.workflows.worker import run_worker
from config.config import Config

logger = get_logger('worker')


def main():
    """Main worker function"""
    logger.info(f"Starting worker on task queue {Config.TASK_QUEUE} ({Config.TEMPORAL_ADDRESS})")

    try:
        # Reports are stored by the persist_report activity
        init_db()

        asyncio.run(run_worker())

    except KeyboardInterrupt:
        logger.info("Worker stopped")
    except Exception as e:
        logger.error(f"Worker failed: {str(e)}")
        raise


if __name__ == "__main__":
    main()
