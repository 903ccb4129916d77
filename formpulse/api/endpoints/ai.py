"""Analysis gateway endpoint — POST /ai/analyze."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from formpulse.core.config import settings
from formpulse.core.decoding import decode_analyze_request
from formpulse.schemas.analysis import AnalysisResult
from formpulse.services.analysis import AnalysisConfigError, AnalysisUpstreamError, analyze

router = APIRouter()


@router.post("/analyze", response_model=AnalysisResult)
async def analyze_responses(request: Request):
    # The body is read by hand: a malformed body is a 400 here, not a 422.
    if not settings.GEMINI_API_KEY:
        return JSONResponse(status_code=500, content={"error": "GEMINI_API_KEY is not configured"})

    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Invalid JSON"})
    # Empty objects and arrays are valid bodies; only null-like scalars are not
    if payload in (None, False, 0, ""):
        return JSONResponse(status_code=400, content={"error": "Invalid JSON"})

    try:
        return await analyze(decode_analyze_request(payload))
    except AnalysisConfigError as exc:
        return JSONResponse(status_code=500, content={"error": str(exc)})
    except AnalysisUpstreamError as exc:
        return JSONResponse(
            status_code=502,
            content={"error": "Gemini API error", "detail": exc.detail},
        )
