"""
Local OAuth callback listener
"""
import asyncio
import html
import logging
from typing import Awaitable, Callable, Dict, Optional

from aiohttp import web

from settings import OAUTH_CALLBACK_PORT
from .constants import OAUTH_CALLBACK_HOST, OAUTH_CALLBACK_PATH, OAUTH_CANCEL_PATH
from .models import CallbackOutcome

logger = logging.getLogger(__name__)

CallbackHandler = Callable[[Dict[str, str]], Awaitable[CallbackOutcome]]
CancelHandler = Callable[[], Awaitable[None]]

_PAGE_STYLE = """
      body {
        font-family: system-ui, -apple-system, sans-serif;
        display: flex;
        justify-content: center;
        align-items: center;
        height: 100vh;
        margin: 0;
        background: #131010;
        color: #f1ecec;
      }
      .container { text-align: center; padding: 2rem; }
      p { color: #b7b1b1; }
      .error {
        color: #ff917b;
        font-family: monospace;
        margin-top: 1rem;
        padding: 1rem;
        background: #3c140d;
        border-radius: 0.5rem;
      }
"""

HTML_SUCCESS = f"""<!doctype html>
<html>
  <head>
    <title>Codex Authorization Successful</title>
    <style>{_PAGE_STYLE}</style>
  </head>
  <body>
    <div class="container">
      <h1>Authorization Successful</h1>
      <p>You can close this window and return to the application.</p>
    </div>
    <script>
      setTimeout(() => window.close(), 2000)
    </script>
  </body>
</html>"""


def render_error_page(message: str) -> str:
    """Render the authorization failure page"""
    return f"""<!doctype html>
<html>
  <head>
    <title>Codex Authorization Failed</title>
    <style>{_PAGE_STYLE}</style>
  </head>
  <body>
    <div class="container">
      <h1>Authorization Failed</h1>
      <p>An error occurred during authorization.</p>
      <div class="error">{html.escape(message)}</div>
    </div>
  </body>
</html>"""


class CallbackListener:
    """Shared local HTTP endpoint for the provider redirect and cancellation

    The listener is started lazily and reused across authorization attempts.
    Routing decisions are delegated to the handlers supplied by the owner.
    """

    def __init__(
        self,
        callback_handler: CallbackHandler,
        cancel_handler: CancelHandler,
        host: str = OAUTH_CALLBACK_HOST,
        port: int = OAUTH_CALLBACK_PORT,
    ):
        self._callback_handler = callback_handler
        self._cancel_handler = cancel_handler
        self.host = host
        self.port = port
        self._runner: Optional[web.AppRunner] = None
        self._stop_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually listened on (differs from `port` when that is 0)"""
        if self._runner is None or not self._runner.addresses:
            return None
        return self._runner.addresses[0][1]

    def build_app(self) -> web.Application:
        """Create the aiohttp application serving the two routes"""
        app = web.Application()
        app.router.add_get(OAUTH_CALLBACK_PATH, self._handle_callback)
        app.router.add_get(OAUTH_CANCEL_PATH, self._handle_cancel)
        return app

    async def _handle_callback(self, request: web.Request) -> web.Response:
        """Handle the provider redirect"""
        try:
            outcome = await self._callback_handler(dict(request.query))
        except Exception as e:
            logger.exception(f"Error in callback handler: {e}")
            return web.Response(
                text=render_error_page("Internal error"),
                content_type="text/html",
                status=500,
            )

        if outcome.ok:
            return web.Response(text=HTML_SUCCESS, content_type="text/html", status=outcome.http_status)

        return web.Response(
            text=render_error_page(outcome.message or "Authorization failed"),
            content_type="text/html",
            status=outcome.http_status,
        )

    async def _handle_cancel(self, request: web.Request) -> web.Response:
        """Handle the cancellation trigger"""
        await self._cancel_handler()
        return web.Response(text="Login cancelled", content_type="text/plain")

    async def start(self) -> None:
        """Start listening; a no-op when already running"""
        pending_stop = self._stop_task
        if pending_stop is not None:
            await pending_stop

        if self._runner is not None:
            return

        runner = web.AppRunner(self.build_app(), shutdown_timeout=5.0)
        await runner.setup()

        site = web.TCPSite(runner, host=self.host, port=self.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise

        self._runner = runner
        logger.info(f"OAuth callback listener on http://{self.host}:{self.bound_port}")

    def request_stop(self) -> None:
        """Stop listening without waiting

        Safe to call from inside a request handler: shutdown proceeds once the
        in-flight response has been written. Safe to call when stopped.
        """
        runner, self._runner = self._runner, None
        if runner is None:
            return
        self._stop_task = asyncio.get_running_loop().create_task(self._cleanup(runner))

    async def stop(self) -> None:
        """Stop listening and wait until the port is released"""
        self.request_stop()
        if self._stop_task is not None:
            await self._stop_task

    async def _cleanup(self, runner: web.AppRunner) -> None:
        try:
            await runner.cleanup()
            logger.info("OAuth callback listener stopped")
        finally:
            self._stop_task = None
