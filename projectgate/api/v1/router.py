"""
API router assembly.

Every route under ``/api/v1`` requires a verified bearer token.
"""

from fastapi import APIRouter, Depends

from projectgate.api.v1.helpers.authentication import get_current_identity
from projectgate.api.v1.endpoints import permissions

api_router = APIRouter(dependencies=[Depends(get_current_identity)])
api_router.include_router(permissions.router)
