"""
System information API endpoints.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from .._version import __version__, __release_date__
from ..config import config

router = APIRouter()


class VersionResponse(BaseModel):
    """Response model for version information."""
    version: str
    release_date: str
    engine: str


@router.get("/version", response_model=VersionResponse)
async def get_version():
    """
    Get the current cellint version, release date and configured engine.

    Returns:
        VersionResponse: Current version information
    """
    return VersionResponse(version=__version__, release_date=__release_date__, engine=config.get_engine())
