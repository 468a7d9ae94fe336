from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request):
    service = getattr(request.app.state, "onboarding_service", None)
    return {
        "status": "ok",
        "onboarding_configured": bool(service and service.is_configured),
    }
