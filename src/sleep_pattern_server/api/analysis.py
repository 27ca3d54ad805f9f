"""Sleep analysis API endpoints.

Stateless: every request carries its own input and nothing is stored.
Persisting runs is left to the external run store, which receives the
shape returned by ``/sleep-analysis/runs``.
"""

from typing import Any

import structlog
from litestar import Router, post
from litestar.exceptions import ValidationException
from litestar.response import Response
from litestar.status_codes import HTTP_200_OK

from sleep_pattern_server.core.config import settings
from sleep_pattern_server.core.exceptions import ValidationError
from sleep_pattern_server.schemas.sleep import AnalysisRequest
from sleep_pattern_server.schemas.sleep_run import SleepEstimatorRun
from sleep_pattern_server.services.sleep_analysis import AnalysisRun, SleepAnalysisService
from sleep_pattern_server.transformers.ml_export import MLExportTransformer

logger = structlog.get_logger()


def run_analysis(service: SleepAnalysisService, data: AnalysisRequest) -> AnalysisRun:
    """Run the pipeline for a request body.

    Raises:
        ValidationException: If the input fails validation; ``extra`` holds
            every message
    """
    try:
        return service.run(
            data.raw_text,
            data.time_zone or settings.default_time_zone,
            wake_target=data.wake_target,
            reference_date=data.reference_date,
        )
    except ValidationError as e:
        logger.info("Analysis request rejected", error_count=len(e.errors))
        raise ValidationException(detail="Invalid sleep input", extra=e.errors) from e


@post("/sleep-analysis/analyze", status_code=HTTP_200_OK)
async def analyze_sleep(data: AnalysisRequest) -> dict[str, Any]:
    """Analyze 7-30 days of phone-usage data.

    Accepts the structured text format or a JSON array of daily records in
    ``rawText``. Responds with the full report including suggestions.

    Example request:
    ```json
    {
      "rawText": "Day 1:\\nLast activity: 00:42\\nFirst activity: 07:18\\n...",
      "timeZone": "Europe/London",
      "wakeTarget": "07:00"
    }
    ```

    Invalid input yields HTTP 400 with every problem listed in ``extra``.
    """
    service = SleepAnalysisService.from_settings()
    run = run_analysis(service, data)
    return run.report.model_dump(mode="json", by_alias=True)


@post("/sleep-analysis/export", status_code=HTTP_200_OK)
async def export_sleep_analysis(data: AnalysisRequest) -> Response[bytes]:
    """Analyze the input and return the ML export document as a download."""
    service = SleepAnalysisService.from_settings()
    run = run_analysis(service, data)
    export = service.export(run)

    return Response(
        content=export.model_dump_json(by_alias=True, indent=2).encode("utf-8"),
        media_type="application/json",
        headers={
            "Content-Disposition": (
                f"attachment; filename={MLExportTransformer.filename(export)}"
            )
        },
    )


@post("/sleep-analysis/runs", status_code=HTTP_200_OK)
async def build_stored_run(data: AnalysisRequest) -> dict[str, Any]:
    """Analyze the input and return it in the run store's record shape.

    The record has no ``runTimestamp``; the store assigns one on save.
    """
    service = SleepAnalysisService.from_settings()
    run = run_analysis(service, data)
    return service.to_stored_run(run).model_dump(mode="json", by_alias=True)


@post("/sleep-analysis/runs/report", status_code=HTTP_200_OK)
async def report_from_stored_run(data: SleepEstimatorRun) -> dict[str, Any]:
    """Rebuild a display report from a stored run record."""
    service = SleepAnalysisService.from_settings()
    return service.from_stored_run(data).model_dump(mode="json", by_alias=True)


# Router for sleep analysis endpoints
analysis_router = Router(
    path="/",
    route_handlers=[
        analyze_sleep,
        export_sleep_analysis,
        build_stored_run,
        report_from_stored_run,
    ],
    tags=["Sleep Analysis"],
)
