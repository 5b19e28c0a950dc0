"""Health endpoint."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Health check endpoint."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    return {
        "status": "ok",
        "validation_workers": bool(dispatcher and dispatcher.running),
    }
