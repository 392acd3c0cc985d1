from fastapi import APIRouter

from request_manager.modules.digest import router as digest_router

api_router = APIRouter()

api_router.include_router(digest_router, prefix="/settings/digest", tags=["Digest Settings"])
