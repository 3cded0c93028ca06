#!/usr/bin/env python3
"""
Startup script for the WebRTC signaling relay
"""

import sys

from signaling.config import HOST, PORT, WS_PATH, CLIENT_ID_PARAM
from signaling.logging_config import get_logger
from signaling.main import run

logger = get_logger("run_server")

if __name__ == "__main__":
    logger.info(f"Server will be available at: http://{HOST}:{PORT}")
    logger.info(f"WebSocket endpoint: ws://{HOST}:{PORT}{WS_PATH}?{CLIENT_ID_PARAM}={{client_id}}")
    logger.info(f"API Documentation: http://{HOST}:{PORT}/docs")

    try:
        run()
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Error starting server: {e}", exc_info=True)
        sys.exit(1)
