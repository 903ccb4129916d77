from fastapi import APIRouter

from formpulse.api.endpoints import ai, auth, forms, public, responses

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(forms.router, prefix="/forms", tags=["forms"])
api_router.include_router(responses.router, prefix="/responses", tags=["responses"])
api_router.include_router(public.router, prefix="/public", tags=["public"])
api_router.include_router(ai.router, prefix="/ai", tags=["ai"])
