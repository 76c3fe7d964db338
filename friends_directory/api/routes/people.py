"""Directory endpoints: lookup, creation, friend edges and patches."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from friends_directory.api.dependencies import get_service
from friends_directory.core.exceptions import MissingParameter
from friends_directory.directory.patch import extract_patch
from friends_directory.directory.service import DirectoryService
from friends_directory.models import Person
from friends_directory.store.codec import encode_person

router = APIRouter(tags=["people"])

BANNER = "This is the backend for the website"


def _require(value: Optional[str], name: str) -> str:
    if not value:
        raise MissingParameter(f"{name} url_param cannot be empty")
    return value


def _people_json(people: List[Person]) -> JSONResponse:
    return JSONResponse([encode_person(person) for person in people])


@router.get("/", response_class=PlainTextResponse)
async def index() -> str:
    return BANNER


@router.get("/getusers")
async def get_users(user: Optional[str] = None, service: DirectoryService = Depends(get_service)) -> JSONResponse:
    """Every person named ``user``, or everyone when no name is given."""

    return _people_json(await service.list_people(user))


@router.post("/adduser", response_class=PlainTextResponse)
async def add_user(person: Person, service: DirectoryService = Depends(get_service)) -> str:
    """Create (or update, when ``uid`` is permanent) and return the identifier."""

    return await service.add_person(person)


@router.get("/getuid", response_class=PlainTextResponse)
async def get_uid(user: Optional[str] = None, service: DirectoryService = Depends(get_service)) -> str:
    return await service.get_uid(_require(user, "user"))


@router.get("/addfriend", response_class=PlainTextResponse)
async def add_friend(
    uid: Optional[str] = None,
    friend: Optional[str] = None,
    service: DirectoryService = Depends(get_service),
) -> str:
    return await service.add_friend(_require(uid, "uid"), _require(friend, "friend"))


@router.get("/updateuser")
async def update_user(
    request: Request,
    uid: Optional[str] = None,
    service: DirectoryService = Depends(get_service),
) -> JSONResponse:
    """Patch the fields named in the query string, e.g. ``discord-handle`` or ``email``."""

    person = await service.update_person(_require(uid, "uid"), extract_patch(request.query_params))
    return JSONResponse(encode_person(person))
