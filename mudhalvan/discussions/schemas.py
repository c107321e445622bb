from typing import Optional

from pydantic import BaseModel


class DiscussionMessageIn(BaseModel):
    content: Optional[str] = None
