# delivery/schemas/actor.py

from typing import Optional

from pydantic import BaseModel

class Actor(BaseModel):
    """
    Who is calling. Built per request from headers and passed into services
    explicitly instead of being looked up from ambient state.
    """
    id: Optional[str] = None
    role: Optional[str] = None      # admin / driver / customer, None when anonymous
    trace_id: Optional[str] = None

    @property
    def is_driver(self) -> bool:
        return self.role == "driver"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
