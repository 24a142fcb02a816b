# delivery/middleware/trace_middleware.py

import uuid

class TraceMiddleware:
    """
    Reuses the caller's X-Trace-Id or creates one, exposes it as
    request.state.trace_id and echoes it on the response.
    """

    header = b"x-trace-id"

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope.get("headers") or []).get(self.header)
        trace_id = incoming.decode("latin-1") if incoming else str(uuid.uuid4())
        scope.setdefault("state", {})["trace_id"] = trace_id

        async def send_with_trace(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((self.header, trace_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_trace)
