from typing import Optional

from pydantic import BaseModel, Field


# emptiness (including whitespace-only) is checked by the store so the caller
# gets its message; the schema only bounds the size
class NotePayload(BaseModel):
    title: str = Field(max_length=200)
    content: str = Field(max_length=50_000)


class TagsIn(BaseModel):
    tags: list[str] = Field(max_length=100)


class NoteOut(BaseModel):
    id: str
    owner: str
    title: str
    content: str
    created_at: str
    updated_at: Optional[str] = None
    tags: list[str]
    archived: bool
    favorite: bool
