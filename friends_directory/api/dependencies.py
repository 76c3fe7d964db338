from __future__ import annotations

from fastapi import Request

from friends_directory.directory.service import DirectoryService


async def get_service(request: Request) -> DirectoryService:
    return request.app.state.service
