"""
GatewayServer class for CLI control of the FastAPI application.
"""
import logging
import os
from typing import Optional

import uvicorn

from settings import PORT, LOG_LEVEL, BIND_ADDRESS
import settings
from .app import app

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(debug: bool = False, log_file: str = 'gateway_debug.log') -> None:
    """Configure root logging

    Console output always; in debug mode also append everything to a file.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else getattr(logging, str(LOG_LEVEL).upper(), logging.INFO))

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if debug:
        log_path = os.path.abspath(log_file)
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.info(f"Debug logging enabled - appending to {log_path}")


class GatewayServer:
    """Gateway server wrapper for CLI control"""

    def __init__(self, debug: bool = False, bind_address: Optional[str] = None, port: Optional[int] = None):
        self.server = None
        self.config = None
        self.debug = debug
        self.bind_address = bind_address or BIND_ADDRESS
        self.port = port or PORT

        setup_logging(debug)

    def run(self):
        """Run the gateway server (blocking)"""
        logger.info(f"Starting Codex Gateway on http://{self.bind_address}:{self.port}")
        logger.info("Available endpoints: /api/openai/{authorize,logout,status}, /v1/complete, /health")
        if settings.STREAM_TRACE_ENABLED:
            logger.warning(
                "Stream tracing is ENABLED - raw SSE chunks will be written inside '%s'",
                settings.STREAM_TRACE_DIR,
            )
        self.config = uvicorn.Config(
            app,
            host=self.bind_address,
            port=self.port,
            log_level="debug" if self.debug else LOG_LEVEL,
            access_log=False  # Request logging is done by middleware
        )
        self.server = uvicorn.Server(self.config)
        self.server.run()

    def stop(self):
        """Stop the gateway server"""
        if self.server:
            self.server.should_exit = True
