from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hostelcare.api.routes import analytics, ping, ticket_updates, tickets, users, vendors
from hostelcare.core.config import Settings, get_settings
from hostelcare.core.logging import configure_logging, init_tracer, shutdown_tracer
from hostelcare.db.session import create_engine, create_session_factory, ensure_schema
from hostelcare.reporting.service import ReportingService
from hostelcare.tickets.repository import TicketRepository
from hostelcare.tickets.service import TicketService
from hostelcare.updates.repository import TicketUpdateRepository
from hostelcare.updates.service import UpdateLog
from hostelcare.uploads import LocalUploadStore, UploadStore
from hostelcare.users.repository import UserRepository
from hostelcare.users.service import UserDirectory
from hostelcare.vendors.repository import VendorRepository
from hostelcare.vendors.service import VendorDirectory


async def install_services(
    app: FastAPI,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    *,
    uploads: UploadStore | None = None,
) -> None:
    """Build the service graph on ``app.state`` and create the system account."""

    upload_store = uploads or LocalUploadStore(settings.upload_dir)
    user_directory = UserDirectory(UserRepository(session_factory))
    vendor_directory = VendorDirectory(VendorRepository(session_factory))
    ticket_service = TicketService(
        TicketRepository(session_factory),
        users=user_directory,
        vendors=vendor_directory,
        uploads=upload_store,
    )
    update_log = UpdateLog(TicketUpdateRepository(session_factory), tickets=ticket_service, uploads=upload_store)

    app.state.user_directory = user_directory
    app.state.vendor_directory = vendor_directory
    app.state.ticket_service = ticket_service
    app.state.update_log = update_log
    app.state.reporting_service = ReportingService(tickets=ticket_service, updates=update_log)
    app.state.system_user = await user_directory.ensure_system_user(settings.anonymous_username)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)
    app.state.logger = logger
    app.state.tracer_provider = tracer_provider

    engine = create_engine(settings.database_url)
    try:
        await ensure_schema(engine)
        await install_services(app, create_session_factory(engine), settings)
        logger.info("%s started (%s)", settings.app_name, settings.environment)
        yield
    finally:
        await engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.include_router(ping.router)
    app.include_router(tickets.router)
    app.include_router(ticket_updates.router)
    app.include_router(vendors.router)
    app.include_router(users.router)
    app.include_router(analytics.router)
    return app


app = create_app()
