import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signaling.config import APP_NAME, CORS_ALLOW_ORIGINS, HOST, LOG_FILE, LOG_LEVEL, PORT, RELOAD, VERSION, WS_PATH
from signaling.logging_config import get_logger, setup_logging
from signaling.routes.rtc.coordinator import SignalingCoordinator
from signaling.routes.rtc.web_socket import websocket_router

setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=APP_NAME,
        description="WebSocket relay for WebRTC offer/answer/ICE negotiation between peers in named rooms",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Add CORS middleware for browser clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # All room state lives on the app; one coordinator per process
    app.state.coordinator = SignalingCoordinator()

    app.include_router(websocket_router, tags=["signaling"])

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": APP_NAME,
            "version": VERSION,
            "status": "running",
            "websocket": WS_PATH,
        }

    return app


app = create_app()


def run():
    logger.info(f"Starting signaling server on {HOST}:{PORT}")
    uvicorn.run(
        "signaling.main:app",
        host=HOST,
        port=PORT,
        reload=RELOAD,
        log_level=LOG_LEVEL.lower(),
        access_log=True
    )


if __name__ == "__main__":
    run()
