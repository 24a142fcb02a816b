# delivery/routes/auth.py

from fastapi import Depends, Request

from delivery.schemas.actor import Actor
from delivery.utils.errors import ForbiddenError

ROLES = ("admin", "driver", "customer")


async def get_actor(request: Request) -> Actor:
    """
    Caller identity from the X-Actor-Id / X-Actor-Role headers set by the
    gateway in front of this service. Token issuing and checking happen there.
    Unknown roles are treated as anonymous.
    """
    role = (request.headers.get("x-actor-role") or "").strip().lower() or None
    if role not in ROLES:
        role = None
    return Actor(
        id=request.headers.get("x-actor-id") or None,
        role=role,
        trace_id=getattr(request.state, "trace_id", None),
    )


async def driver_or_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not (actor.is_driver or actor.is_admin) or not actor.id:
        raise ForbiddenError("Drivers and admins only")
    return actor
