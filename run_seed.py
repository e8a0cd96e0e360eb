import asyncio

from app.core.config import get_settings
from app.core.db import close_engine, get_session_factory, init_engine
from app.core.logging import configure_logging, get_logger
from app.infra.db.seed import seed_admin_user

logger = get_logger("run_seed")


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    engine = init_engine()
    try:
        session_factory = get_session_factory()
        async with session_factory() as session:
            created = await seed_admin_user(session, settings)
            await session.commit()
        logger.info("seed_completed", admin_created=created)
    finally:
        await close_engine(engine)


if __name__ == "__main__":
    asyncio.run(main())
