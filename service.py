import logging
from typing import Any, Dict

from fastapi import FastAPI, Body, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.collage import build_collage_from_payload, error_response
from config import LOG_FORMAT, LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI()


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError):
    """Malformed JSON or a body that is not an object gets the 400 error envelope."""
    errors = exc.errors()
    reason = errors[0].get("msg", "invalid body") if errors else "invalid body"
    return JSONResponse(status_code=400, content={"error": f"Invalid JSON: {reason}"})


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/collage")
def create_collage(payload: Dict[str, Any] = Body(default={})):
    """
    FastAPI endpoint that:
    - Receives JSON payload with id_event and id_category
    - Uses build_collage_from_payload to generate and publish the banners
    - Returns the banner URLs and totals as JSON

    Domain errors keep their status (400 for bad input, 500 for upstream
    failures); anything unexpected becomes a 500 with the error message.
    """
    try:
        body = build_collage_from_payload(payload or {})
    except Exception as e:
        logger.exception("Banner generation failed")
        status, error_body = error_response(e)
        return JSONResponse(status_code=status, content=error_body)
    return body
