from fastapi import APIRouter, Request

from imagehost.models.upload import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    return HealthResponse(status="ok", app_name=request.app.state.settings.app_name)
