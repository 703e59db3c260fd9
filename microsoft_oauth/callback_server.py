"""
Single-use local HTTP listener that captures the OAuth redirect
"""
import asyncio
import enum
import html
import logging
from dataclasses import dataclass
from typing import Optional

from aiohttp import web

from .authorization import AuthorizationURLBuilder
from .app_config import AuthConfig
from .constants import (
    OAUTH_CALLBACK_HOST,
    OAUTH_CALLBACK_PATH,
    OAUTH_CALLBACK_PORT,
    OAUTH_CALLBACK_TIMEOUT,
    REDIRECT_AFTER_AUTH,
)
from .errors import ListenerStartupError
from .models import (
    Aborted,
    CallbackOutcome,
    ClosedByClient,
    CodeReceived,
    ProviderErrorReceived,
    TimedOut,
)
from .pkce import PKCEPair

logger = logging.getLogger(__name__)

NO_KEEPALIVE = {"Connection": "close"}


class ListenerState(enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"
    CODE_RECEIVED = "code_received"
    PROVIDER_ERROR_RECEIVED = "provider_error_received"
    TIMED_OUT = "timed_out"
    ABORTED = "aborted"
    CLOSED_BY_CLIENT = "closed_by_client"
    CLOSED = "closed"


_OUTCOME_STATES = {
    CodeReceived: ListenerState.CODE_RECEIVED,
    ProviderErrorReceived: ListenerState.PROVIDER_ERROR_RECEIVED,
    TimedOut: ListenerState.TIMED_OUT,
    Aborted: ListenerState.ABORTED,
    ClosedByClient: ListenerState.CLOSED_BY_CLIENT,
}


@dataclass
class ListenerConfig:
    """Settings for one listener lifecycle

    Attributes:
        host: Interface to bind
        port: Port to bind; 0 picks a free port
        timeout: Seconds to wait for the redirect before giving up
        abort: Event that cancels the wait when set
        redirect_after_auth: Where to send the browser after the code is captured
        pkce_pair: PKCE pair embedded in the authorization URL served on /url and /auth
    """
    host: str = OAUTH_CALLBACK_HOST
    port: int = OAUTH_CALLBACK_PORT
    timeout: float = OAUTH_CALLBACK_TIMEOUT
    abort: Optional[asyncio.Event] = None
    redirect_after_auth: Optional[str] = REDIRECT_AFTER_AUTH
    pkce_pair: Optional[PKCEPair] = None

    @classmethod
    def from_settings(cls, **overrides) -> "ListenerConfig":
        import settings

        values = {
            "host": settings.CALLBACK_HOST,
            "port": settings.CALLBACK_PORT,
            "timeout": settings.CALLBACK_TIMEOUT,
            "redirect_after_auth": settings.REDIRECT_AFTER_AUTH or None,
        }
        values.update(overrides)
        return cls(**values)


def _bound_port(addresses) -> int:
    """Port of the IPv4 socket when there is one

    With port 0 and a host name such as ``localhost`` each address family gets
    its own ephemeral port, so the URL built from this port is only reachable
    over IPv4. Use a numeric host when binding port 0.
    """
    for address in addresses:
        if len(address) == 2:
            return address[1]
    return addresses[0][1]


class CallbackListener:
    """Local HTTP server that waits for exactly one OAuth redirect

    Routes:
        /token  capture ``code`` or ``error`` and resolve
        /url    the authorization URL as plain text
        /auth   302 redirect to the authorization URL (also any unknown path)
        /close  client gave up waiting; resolve as closed by client

    The socket is released before the outcome is handed back, whichever way
    the wait ends.
    """

    def __init__(self, listener_config: ListenerConfig, url_builder: AuthorizationURLBuilder):
        self.config = listener_config
        self.url_builder = url_builder
        self.state = ListenerState.IDLE
        self.runner: Optional[web.AppRunner] = None
        self.port: Optional[int] = None
        self._outcome: Optional[asyncio.Future] = None
        self._deadline: Optional[float] = None

        self.app = web.Application()
        self.app.router.add_route("*", OAUTH_CALLBACK_PATH, self._handle_callback)
        self.app.router.add_route("*", "/url", self._handle_url)
        self.app.router.add_route("*", "/auth", self._handle_auth)
        self.app.router.add_route("*", "/close", self._handle_close)
        self.app.router.add_route("*", "/{tail:.*}", self._handle_auth)

    @property
    def authorization_url(self) -> str:
        return self.url_builder.get_authorize_url(self.config.pkce_pair)

    @property
    def resolved(self) -> bool:
        return self._outcome is not None and self._outcome.done() and not self._outcome.cancelled()

    def _resolve(self, outcome: CallbackOutcome) -> None:
        if self._outcome.done():
            return
        self._outcome.set_result(outcome)
        self.state = _OUTCOME_STATES[type(outcome)]
        logger.info(f"Callback listener resolved: {self.state.value}")

    def _already_closed(self) -> web.Response:
        return web.Response(text="Listener already closed", status=410, headers=NO_KEEPALIVE)

    async def _handle_callback(self, request: web.Request) -> web.Response:
        """Capture the authorization code or provider error"""
        if self.resolved:
            return self._already_closed()

        code = request.query.get("code")
        error = request.query.get("error")

        if code:
            self._resolve(CodeReceived(code))
        elif error:
            description = request.query.get("error_description", "")
            logger.warning(f"Provider returned an error to the callback: {error}")
            self._resolve(ProviderErrorReceived(error, description))
        else:
            self._resolve(ProviderErrorReceived("invalid_request", "Callback did not include an authorization code"))

        if self.config.redirect_after_auth:
            return web.Response(status=301, headers={"Location": self.config.redirect_after_auth, **NO_KEEPALIVE})

        if code:
            page = "<h1>Authentication Successful!</h1><p>You can now close this window.</p>"
        else:
            page = (
                "<h1>Authentication Failed</h1>"
                f"<p>Error: {html.escape(error or 'invalid_request')}</p>"
                "<p>You can close this window.</p>"
            )
        return web.Response(
            text=f"<html><body>{page}</body></html>",
            content_type="text/html",
            headers=NO_KEEPALIVE,
        )

    async def _handle_url(self, request: web.Request) -> web.Response:
        return web.Response(text=self.authorization_url, headers=NO_KEEPALIVE)

    async def _handle_auth(self, request: web.Request) -> web.Response:
        return web.Response(status=302, headers={"Location": self.authorization_url, **NO_KEEPALIVE})

    async def _handle_close(self, request: web.Request) -> web.Response:
        if self.resolved:
            return self._already_closed()
        self._resolve(ClosedByClient())
        return web.Response(status=200, headers=NO_KEEPALIVE)

    async def start(self) -> None:
        """Bind the listener

        Raises:
            ListenerStartupError: The port could not be bound
        """
        if self.state is not ListenerState.IDLE:
            raise RuntimeError("A callback listener can only be started once")

        self._outcome = asyncio.get_running_loop().create_future()
        self.runner = web.AppRunner(self.app, access_log=None)
        await self.runner.setup()

        site = web.TCPSite(self.runner, host=self.config.host, port=self.config.port)
        try:
            await site.start()
        except OSError as e:
            runner, self.runner = self.runner, None
            await runner.cleanup()
            self.state = ListenerState.CLOSED
            raise ListenerStartupError(
                f"Could not listen on {self.config.host}:{self.config.port}: {e.strerror or e}",
                code="LISTENER-BIND",
                detail=str(e),
            ) from e

        self.port = _bound_port(self.runner.addresses)
        self._deadline = asyncio.get_running_loop().time() + self.config.timeout
        self.state = ListenerState.LISTENING
        logger.info(f"Callback listener running on http://{self.config.host}:{self.port}")

    async def wait(self) -> CallbackOutcome:
        """Wait for the outcome, then close the listener

        The timeout runs from the moment :meth:`start` bound the socket.

        Returns:
            The single outcome of this listener
        """
        abort = self.config.abort
        try:
            if abort is not None and abort.is_set():
                self._resolve(Aborted())
            elif not self.resolved:
                waiters = {self._outcome}
                abort_task = None
                if abort is not None:
                    abort_task = asyncio.ensure_future(abort.wait())
                    waiters.add(abort_task)
                remaining = max(0.0, self._deadline - asyncio.get_running_loop().time())
                try:
                    if remaining > 0:
                        await asyncio.wait(waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
                finally:
                    if abort_task is not None:
                        abort_task.cancel()

                if abort is not None and abort.is_set():
                    self._resolve(Aborted())
                else:
                    self._resolve(TimedOut())
        finally:
            await self.close()

        return self._outcome.result()

    async def listen(self) -> CallbackOutcome:
        """Bind, wait for one outcome and release the socket"""
        await self.start()
        return await self.wait()

    async def close(self) -> None:
        """Release the socket; safe to call more than once"""
        if self.runner is not None:
            runner, self.runner = self.runner, None
            await runner.cleanup()
            logger.debug("Callback listener closed")
        if self._outcome is not None and not self._outcome.done():
            # Closed without an outcome (e.g. the waiting task was cancelled)
            self._outcome.cancel()
        if self.state is not ListenerState.IDLE:
            self.state = ListenerState.CLOSED

    async def __aenter__(self) -> "CallbackListener":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def listen_for_code(listener_config: ListenerConfig, auth_config: AuthConfig) -> CallbackOutcome:
    """
    Run one listener lifecycle.

    Args:
        listener_config: Host, port, timeout, abort event, redirect and PKCE pair
        auth_config: Application configuration for the authorization URL

    Returns:
        CallbackOutcome
    """
    listener = CallbackListener(listener_config, AuthorizationURLBuilder(auth_config))
    return await listener.listen()
