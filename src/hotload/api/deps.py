"""FastAPI dependencies."""

from fastapi import Request

from hotload.reload import Reloader


async def get_reloader(request: Request) -> Reloader:
    """Get the reloader instance from app state."""
    return request.app.state.reloader
