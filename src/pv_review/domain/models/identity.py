from pydantic import BaseModel


class UserIdentity(BaseModel):
    id: str
    email: str | None = None
