"""ASGI middleware keeping the raw request body for signed webhook routes"""

from starlette.types import ASGIApp, Message, Receive, Scope, Send


class RawBodyMiddleware:
    """Capture the unparsed body of requests whose path starts with a prefix

    Signature checks must run over the exact bytes the sender signed, so the
    body is buffered before any handler parses it, stored at
    ``request.state.raw_body`` and replayed downstream. Other paths are
    passed through untouched.
    """

    def __init__(self, app: ASGIApp, path_prefix: str = '/webhook'):
        self.app = app
        self.path_prefix = path_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] != 'http' or not scope['path'].startswith(self.path_prefix):
            await self.app(scope, receive, send)
            return

        chunks = []
        while True:
            message = await receive()
            if message['type'] != 'http.request':
                # Client went away; let the app see the disconnect
                await self.app(scope, _replay([message], receive), send)
                return
            chunks.append(message.get('body', b''))
            if not message.get('more_body', False):
                break

        body = b''.join(chunks)
        scope.setdefault('state', {})['raw_body'] = body

        replayed = {'type': 'http.request', 'body': body, 'more_body': False}
        await self.app(scope, _replay([replayed], receive), send)


def _replay(messages: list, receive: Receive) -> Receive:
    pending = list(messages)

    async def replay_receive() -> Message:
        if pending:
            return pending.pop(0)
        return await receive()

    return replay_receive
