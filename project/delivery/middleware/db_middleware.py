# delivery/middleware/db_middleware.py

from delivery.utils.database import AsyncSessionLocal

class DBSessionMiddleware:
    """
    One AsyncSession per HTTP request, available as request.state.db.
    Anything left uncommitted when the request ends is rolled back on close.
    """

    def __init__(self, app, session_factory=AsyncSessionLocal):
        self.app = app
        self.session_factory = session_factory

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        session = self.session_factory()
        state["db"] = session
        try:
            await self.app(scope, receive, send)
        finally:
            await session.close()
