"""
Cashtag Routes

- GET /cash?tag=<tag> - normalized $cashtag plus a link the user can open
  to confirm the account themselves
"""

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from errors import ValidationError

CONFIRM_URL_BASE = "https://cash.app/"

router = APIRouter(tags=["cashtag"])


class CashtagResponse(BaseModel):
    """Response body for GET /cash"""
    model_config = ConfigDict(populate_by_name=True)

    cashtag: str
    name: str
    avatar: Optional[str] = None
    confirm_url: str = Field(..., alias="confirmUrl")


def format_cashtag(tag: Optional[str]) -> str:
    """
    Prefix "$" unless already present.

    Raises:
        ValidationError: if the tag is empty
    """
    tag = (tag or "").strip()
    if not tag:
        raise ValidationError("Missing tag")
    if not tag.startswith("$"):
        tag = "$" + tag
    return tag


@router.get("/cash", response_model=CashtagResponse, response_model_by_alias=True)
async def confirm_cashtag(tag: Optional[str] = Query(None, description="Cashtag, with or without $")):
    try:
        cashtag = format_cashtag(tag)
    except ValidationError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    return CashtagResponse(
        cashtag=cashtag,
        name=cashtag[1:],
        avatar=None,
        confirm_url=f"{CONFIRM_URL_BASE}{quote(cashtag, safe='')}",
    )
