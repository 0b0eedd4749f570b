from pydantic import BaseModel


class TokenData(BaseModel):
    owner_address: str | None = None
