"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Builds the OTP store, WhatsApp connection manager and OTP service
- Registers API routes
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import random
import time

from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.api import otp, whatsapp
from app.services.otp_service import OtpService
from app.services.otp_store import OtpStore
from app.whatsapp.manager import ConnectionManager
from app.whatsapp.transport import BridgeTransport, WhatsAppTransport
from utils.time_utils import Clock, utcnow

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

APP_VERSION = "1.0.0"


def create_app(
    transport: Optional[WhatsAppTransport] = None,
    clock: Clock = utcnow,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """
    Builds the application.

    transport defaults to the WhatsApp Web bridge; tests pass a fake one.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.
        Handles startup and shutdown events.
        """
        logger.info("🚀 Starting WhatsApp OTP service...")

        try:
            logger.info("Validating configuration...")
            validate_settings()
            logger.info("✅ Configuration validated")

            session_transport = transport or BridgeTransport()
            store = OtpStore(clock=clock)
            manager = ConnectionManager(session_transport)

            app.state.transport = session_transport
            app.state.otp_store = store
            app.state.connection_manager = manager
            app.state.otp_service = OtpService(store, manager, clock=clock, rng=rng)

            store.start_sweeper(settings.OTP_SWEEP_INTERVAL_SECONDS)

            logger.info("🎉 WhatsApp OTP service started successfully!")
            logger.info(f"Environment: {settings.ENVIRONMENT}")
            logger.info(f"WhatsApp bridge: {settings.WHATSAPP_BRIDGE_URL}")
            logger.info(f"Call POST {settings.API_PREFIX}/whatsapp/connect to pair WhatsApp")

        except Exception as e:
            logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
            raise

        yield  # Application runs here

        logger.info("🛑 Shutting down WhatsApp OTP service...")

        try:
            await app.state.otp_store.stop()
            logger.info("✅ OTP sweeper stopped")

            await app.state.connection_manager.disconnect()

            close = getattr(app.state.transport, "close", None)
            if close is not None:
                await close()

            logger.info("👋 WhatsApp OTP service shut down successfully")

        except Exception as e:
            logger.error(f"Error during shutdown: {str(e)}", exc_info=True)

    app = FastAPI(
        title="WhatsApp OTP Service",
        description="One-time passcodes delivered over WhatsApp",
        version=APP_VERSION,
        lifespan=lifespan,
        debug=settings.DEBUG,
        docs_url="/docs" if settings.is_development else None,  # Disable docs in production
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to all responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        # connect can legitimately wait for the QR code
        if process_time > settings.CONNECT_TIMEOUT_SECONDS:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path}",
                extra={"process_time": process_time}
            )

        return response

    add_exception_handlers(app)

    app.include_router(whatsapp.router, prefix=settings.API_PREFIX, tags=["WhatsApp"])
    app.include_router(otp.router, prefix=settings.API_PREFIX, tags=["OTP"])

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - basic info."""
        return {
            "name": settings.SERVICE_NAME,
            "version": APP_VERSION,
            "description": "One-time passcodes delivered over WhatsApp",
            "status": "running",
            "environment": settings.ENVIRONMENT
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check endpoint.
        The service is healthy without WhatsApp, but degraded.
        """
        session = request.app.state.connection_manager.status()

        health_status = {
            "status": "healthy" if session.connected else "degraded",
            "timestamp": time.time(),
            "environment": settings.ENVIRONMENT,
            "version": APP_VERSION,
            "checks": {
                "whatsapp": session.state.value
            }
        }

        return JSONResponse(content=health_status, status_code=200)

    # Readiness probe (for Kubernetes/orchestration)
    @app.get("/ready", tags=["Health"])
    async def readiness_check(request: Request):
        """
        Readiness probe - ready only when OTPs can actually be sent.
        """
        session = request.app.state.connection_manager.status()
        if session.connected:
            return {"status": "ready"}

        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": f"whatsapp_{session.state.value.lower()}"}
        )

    # Liveness probe (for Kubernetes/orchestration)
    @app.get("/live", tags=["Health"])
    async def liveness_check():
        return {"status": "alive"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=5000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
