"""
Detection router - single-log analysis endpoint.

Wired to:
- AntiCheatEngine for the full detection pipeline
- StorageBackend (via get_storage) for every collaborator store

Failures never return a partial summary: the body is either a
DetectionResponse or an ErrorResponse.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from anticheat.engine import AntiCheatEngine
from anticheat.errors import AntiCheatError, LogNotFound
from anticheat.models.invocation import DetectionRequest, DetectionResponse, ErrorResponse
from anticheat.storage import get_storage
from anticheat.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_engine() -> AntiCheatEngine:
    """Engine dependency; overridden in tests."""
    return AntiCheatEngine.from_storage(get_storage())


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@router.post(
    "/analyze",
    response_model=DetectionResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def analyze(
    request: DetectionRequest,
    engine: AntiCheatEngine = Depends(get_engine),
):
    """
    Run every enabled detector against one log entry.

    Persists alerts, applies the risk-score increment and executes automated
    responses before returning the summary.

    Returns:
        DetectionResponse with the triggered detections and new risk score,
        404 {error} when the log entry does not exist,
        500 {error} for any other failure
    """
    try:
        result = engine.run(request)
    except LogNotFound:
        return _error(404, "Log entry not found")
    except AntiCheatError as e:
        logger.error("detection_failed", log_id=request.log_id, error=str(e))
        return _error(500, str(e))
    except Exception as e:
        logger.error("detection_failed", log_id=request.log_id, error=str(e), exc_info=True)
        return _error(500, "Internal server error")

    return result.to_response()
