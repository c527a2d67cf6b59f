"""Main entry point for the IdealTwin core"""
import logging
import asyncio
from idealtwin.config import validate_config, LOG_LEVEL
from idealtwin.exceptions import ConfigurationError
from idealtwin.services.container import init_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


async def main() -> None:
    """Restore the last session and print its dashboard"""
    logger.info("Validating configuration...")
    try:
        validate_config()
    except ValueError as e:
        raise ConfigurationError(str(e), cause=e)

    container = init_container()
    session = container.session

    logger.info("Restoring session...")
    if not await session.restore():
        logger.info("No active session. Log in or register to start.")
        return

    summary = session.dashboard()
    logger.info(
        f"{session.username}: level {summary['level']} ({summary['title']}), "
        f"{summary['xp']} XP, energy {summary['energy']}, "
        f"plan {summary['plan_progress']:.0f}% done, {summary['unread_messages']} unread"
    )
    await session.saver.flush()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
