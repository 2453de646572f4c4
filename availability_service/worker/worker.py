"""
Availability Service Worker - Expiry Sweeper
Cancels expired soft holds on a fixed interval
"""
import os
import signal
import asyncio
import logging
import uuid

from dotenv import load_dotenv

from availability_service import create_app
from availability_service.api.middlewares.correlation_id import correlation_id_context
from availability_service.services import ReservationService

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO'),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


class ExpirySweepWorker:
    """Worker process that runs the expiry sweep periodically"""

    def __init__(self, app, interval_seconds: float = None):
        self.app = app
        self.interval_seconds = interval_seconds or app.config['EXPIRY_SWEEP_INTERVAL_SECONDS']
        self.is_running = False
        self._stop_event = asyncio.Event()

    def run_once(self) -> dict:
        """One sweep inside an application context"""
        correlation_id_context.set(f"sweep-{uuid.uuid4()}")
        with self.app.app_context():
            return ReservationService().sweep_expired_holds()

    async def start(self):
        """Sweep until stopped"""
        logger.info(f"Expiry sweep worker starting, interval {self.interval_seconds}s")
        self.is_running = True

        while self.is_running:
            try:
                await asyncio.to_thread(self.run_once)
            except Exception as e:
                # A failed cycle is retried on the next tick
                logger.error(f"Expiry sweep cycle failed: {str(e)}", exc_info=True)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

    async def stop(self):
        """Gracefully stop the worker"""
        logger.info("Stopping expiry sweep worker...")
        self.is_running = False
        self._stop_event.set()


# Global worker instance
worker = None


def signal_handler(signum, frame):
    """Handle shutdown signals"""
    logger.info(f"Received signal {signum}, initiating graceful shutdown...")
    if worker:
        asyncio.get_running_loop().create_task(worker.stop())


async def main():
    """Main entry point for the worker"""
    global worker

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    app = create_app(os.getenv('FLASK_ENV', 'default'))
    worker = ExpirySweepWorker(app)

    try:
        await worker.start()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        await worker.stop()
        logger.info("Expiry sweep worker stopped")


if __name__ == "__main__":
    asyncio.run(main())
