"""
Deadline Scheduler Runner
Run this as a separate process: python run_deadline_scheduler.py
(set SCHEDULER_ENABLED=false on the API processes when you do)
"""

import asyncio
import logging
import sys

from meetpoll import models  # noqa: F401 - register models with Base
from meetpoll.database import Base, engine
from meetpoll.workers.deadline_scheduler import DeadlineScheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info("🚀 Starting Deadline Scheduler...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        asyncio.run(DeadlineScheduler().run_forever())
    except KeyboardInterrupt:
        logger.info("👋 Deadline scheduler stopped by user")
    except Exception as e:
        logger.error(f"❌ Deadline scheduler crashed: {e}")
        sys.exit(1)
