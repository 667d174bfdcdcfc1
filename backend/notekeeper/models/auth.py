from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Body of both /auth/register and /auth/login."""
    user_id: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.@-]+$")
    password: str = Field(min_length=8, max_length=128)


class RegisteredOut(BaseModel):
    user_id: str
    registered_at: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
