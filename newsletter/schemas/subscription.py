from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SubscribeRequest(BaseModel):
    # strict: a number or list is a parse failure, not something to coerce
    model_config = ConfigDict(strict=True)

    name: str
    email: str
