
from fastapi import APIRouter, Depends
from ..deps import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings=Depends(get_settings)):
    return {"status": "ok", "app": settings.app_name, "env": settings.app_env}
