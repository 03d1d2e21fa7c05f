import asyncio
import logging

from indexing import ContentHooks, build_dispatcher, load_settings, start_content_event_server
from notification_log import PostgresLogStore, RotationEngine, RotationWorker
from services.db import create_db_pool, make_subject_resolver

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    settings = load_settings()
    if not settings.db_dsn:
        raise SystemExit("DB_DSN is not set")
    pool = await create_db_pool(settings.db_dsn)
    store = PostgresLogStore(pool, table=settings.log_table)
    await store.ensure_schema()

    resolver_kwargs = {}
    if settings.content_table:
        resolver_kwargs["subject_resolver"] = make_subject_resolver(
            pool,
            table=settings.content_table,
            url_column=settings.content_url_column,
        )
    dispatcher = build_dispatcher(store, **resolver_kwargs)

    rotation_worker = RotationWorker(
        RotationEngine(store),
        settings.retention_policy,
        hour_utc=settings.rotation_hour_utc,
    )
    rotation_worker.start()

    event_server = None
    if settings.events_port > 0:
        try:
            event_server = await start_content_event_server(
                ContentHooks(dispatcher, settings.target_subject_types),
                host=settings.events_host,
                port=settings.events_port,
                token=settings.events_token,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to start content event server: %s", exc)
    else:
        logger.info("Content event server disabled (CONTENT_EVENTS_PORT not set)")

    try:
        await asyncio.Event().wait()
    finally:
        await rotation_worker.stop()
        if event_server is not None:
            await event_server.stop()
        await dispatcher.client.close()
        await dispatcher.token_cache.auth_client.close()
        await pool.close()

if __name__ == "__main__":
    asyncio.run(main())
