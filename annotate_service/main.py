import json, logging, random
from fastapi import FastAPI, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .settings import settings
from .schemas import AnnotateRequest, AnnotateError
from .batch import process_batch
from .security import bearer_token_matches

logging.basicConfig(level=settings.log_level)
LOGGER = logging.getLogger(__name__)

ANNOTATE_PATH = "/functions/v1/ai-annotate"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": settings.cors_allow_origin,
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey",
}

app = FastAPI(title="AI Annotate Service", version="1.0.0")

class AsciiJSONResponse(JSONResponse):
    """JSON with non-ASCII escaped, so unpaired surrogates from the body still encode."""

    def render(self, content) -> bytes:
        return json.dumps(content, ensure_ascii=True, allow_nan=False, separators=(",", ":")).encode("ascii")

def get_rng() -> random.Random:
    # a fixed seed makes confidence/score values reproducible across requests
    return random.Random(settings.random_seed)

def _error(message: str, status_code: int) -> JSONResponse:
    return AsciiJSONResponse(AnnotateError(error=message).model_dump(), status_code=status_code, headers=CORS_HEADERS)

@app.get("/healthz")
def healthz():
    return {"status": "ok"}

@app.options(ANNOTATE_PATH)
def annotate_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)

@app.post(ANNOTATE_PATH)
async def annotate(request: Request, rng: random.Random = Depends(get_rng)):
    if settings.annotate_api_key and not bearer_token_matches(
        settings.annotate_api_key, request.headers.get("Authorization")
    ):
        return _error("Unauthorized", 401)

    # body parsing happens here rather than in a pydantic parameter so that
    # every malformed request gets the same {success, error} shape
    try:
        payload = await request.json()
        body = AnnotateRequest.model_validate(payload)
    except (ValueError, RecursionError) as e:
        # json.JSONDecodeError, UnicodeDecodeError, pydantic's ValidationError,
        # and RecursionError from deeply nested arrays or objects
        LOGGER.info("event=annotate status=rejected error=%s", e)
        if isinstance(e, ValidationError):
            message = _validation_message(e)
        elif isinstance(e, RecursionError):
            message = "Request body is nested too deeply"
        else:
            message = str(e)
        return _error(message, 400)

    result = process_batch(body, rng=rng, max_rows=settings.max_rows)
    return AsciiJSONResponse(result.model_dump(), headers=CORS_HEADERS)

def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)
