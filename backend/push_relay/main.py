"""Main FastAPI application for the push notification relay."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings as default_settings
from .database import init_db, close_db
from .errors import PushRelayError
from .exception_handlers import relay_error_handler, request_validation_handler, unexpected_error_handler
from .routers import relay_router
from .services.broker import Broker, SnsBroker
from .services.dispatcher import DispatchService
from .services.endpoints import EndpointProvisioner, PlatformApplications
from .services.rate_limiter import WindowRateLimiter
from .services.registration import RegistrationService
from .services.signature import AcceptAllVerifier, SignatureVerifier
from .services.statistics import StatisticsService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("botocore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting push relay")

    await init_db()
    logger.info("Database initialized")

    yield

    await close_db()
    logger.info("Shutdown complete")


def create_app(
    config: Optional[Settings] = None,
    broker: Optional[Broker] = None,
    verifier: Optional[SignatureVerifier] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The rate limiter, broker and endpoint provisioner live for the lifetime
    of the app and are shared by all requests through `app.state`.
    """
    config = config or default_settings

    app = FastAPI(
        title="Push Relay",
        description="Relay push notifications to FCM, APNs and WNS devices through Amazon SNS",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Origins call the relay from their own pages
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PushRelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    broker = broker or SnsBroker(region=config.aws_region, endpoint_url=config.sns_endpoint_url)
    provisioner = EndpointProvisioner(broker, PlatformApplications.from_settings(config))
    app.state.rate_limiter = WindowRateLimiter(ceiling=config.rate_limit)
    app.state.registration_service = RegistrationService()
    app.state.dispatch_service = DispatchService(
        broker=broker,
        provisioner=provisioner,
        rate_limiter=app.state.rate_limiter,
        verifier=verifier or AcceptAllVerifier(),
        statistics=StatisticsService(),
    )

    app.include_router(relay_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.web_port)
