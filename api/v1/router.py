# api/v1/router.py
from fastapi import APIRouter

from . import prefs, suggest

api_router = APIRouter()

api_router.include_router(suggest.router, prefix="/random", tags=["Random"])

# preferences live *under* the user resource
api_router.include_router(
    prefs.router,
    prefix="/users",          # results in /users/me/preferences
    tags=["Preferences"],
)
