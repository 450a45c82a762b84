#
# A request that runs past the deployment's timeout is answered with 504 and
# its task cancelled. Synchronous handlers cannot be interrupted in their worker
# thread, so the timeout and the request's commit race through a Deadline:
# whichever claims it first wins. A timed-out request can no longer commit,
# and a request that has committed is allowed to finish and answer normally.
#
import asyncio
import logging
from threading import Lock

from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .exceptions import RequestTimeout

log = logging.getLogger(__name__)


class Deadline:
    """Decides between a request's commit and its timeout."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.committed = False
        self.expired = False

    def claim_commit(self) -> bool:
        with self._lock:
            if self.expired:
                return False
            self.committed = True
            return True

    def claim_timeout(self) -> bool:
        with self._lock:
            if self.committed:
                return False
            self.expired = True
            return True

    def before_commit(self, session) -> None:
        """Session ``before_commit`` hook refusing commits after a timeout."""
        if not self.claim_commit():
            log.warning('Refusing to commit a timed out request')
            raise RequestTimeout('Request timed out')


class RequestTimeoutMiddleware:
    def __init__(self, app: ASGIApp, timeout: float = 30.0):
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] != 'http':
            await self.app(scope, receive, send)
            return

        deadline = Deadline()
        scope.setdefault('state', {})['deadline'] = deadline
        started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal started
            if deadline.expired:
                return
            if message['type'] == 'http.response.start':
                started = True
            await send(message)

        task = asyncio.ensure_future(self.app(scope, receive, send_wrapper))
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self.timeout)
            return
        except asyncio.TimeoutError:
            if not deadline.claim_timeout():
                log.warning('Request %s %s overran %ss after committing',
                            scope.get('method'), scope.get('path'),
                            self.timeout)
                await task
                return
        except asyncio.CancelledError:
            task.cancel()
            raise

        task.cancel()
        log.error('Request %s %s timed out after %ss',
                  scope.get('method'), scope.get('path'), self.timeout)
        if started:
            raise asyncio.TimeoutError()
        response = JSONResponse({'error': 'Request timed out'},
                                status_code=504)
        await response(scope, receive, send)


class SecurityHeadersMiddleware:
    """Prevent UI redress attacks."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] != 'http':
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message['type'] == 'http.response.start':
                headers = list(message.get('headers', []))
                headers.append((b'content-security-policy',
                                b"frame-ancestors 'none'"))
                headers.append((b'x-frame-options', b'DENY'))
                message['headers'] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)
