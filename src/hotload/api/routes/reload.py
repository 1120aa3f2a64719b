"""Reload API routes: inspect reload state and trigger passes on demand."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from hotload.api.deps import get_reloader
from hotload.reload import FileLoadRecord, Reloader, ReloadReport

logger = logging.getLogger(__name__)
router = APIRouter()


class FileChangeResponse(BaseModel):
    """A file picked up by a reload pass."""

    path: str
    mtime: float
    change_type: str


class ReloadReportResponse(BaseModel):
    """Outcome of one reload pass."""

    changes: list[FileChangeResponse]
    loaded: list[str]
    reloaded_apps: list[str]
    timestamp: str


class LoadRecordResponse(BaseModel):
    """What loading one file introduced."""

    file: str
    symbols: list[str]
    features: list[str]


class MountedAppResponse(BaseModel):
    """A mounted application and the files it depends on."""

    name: str
    app_file: str
    dependencies: list[str]


class ReloadStatusResponse(BaseModel):
    """Current reload state of the process."""

    tracked_files: int
    records: list[LoadRecordResponse]
    apps: list[MountedAppResponse]
    last_reload: ReloadReportResponse | None


class ChangedResponse(BaseModel):
    """Whether a reload pass would find anything to do."""

    changed: bool


def _report_to_response(report: ReloadReport) -> ReloadReportResponse:
    return ReloadReportResponse(
        changes=[
            FileChangeResponse(path=str(c.path), mtime=c.mtime, change_type=c.change_type)
            for c in report.changes
        ],
        loaded=[str(p) for p in report.loaded],
        reloaded_apps=report.reloaded_apps,
        timestamp=report.timestamp.isoformat(),
    )


def _record_to_response(record: FileLoadRecord) -> LoadRecordResponse:
    return LoadRecordResponse(
        file=str(record.owner),
        symbols=sorted(record.symbols),
        features=sorted(str(f) for f in record.features),
    )


@router.get("/status")
async def get_status(
    reloader: Annotated[Reloader, Depends(get_reloader)],
) -> ReloadStatusResponse:
    """Get tracked files, load records and mounted applications."""
    records = reloader.records()
    history = reloader.get_reload_history(limit=1)

    return ReloadStatusResponse(
        tracked_files=len(reloader.tracked_files()),
        records=[_record_to_response(records[path]) for path in sorted(records)],
        apps=[
            MountedAppResponse(
                name=app.name,
                app_file=str(app.app_file),
                dependencies=sorted(str(d) for d in app.dependencies()),
            )
            for app in reloader.apps
        ],
        last_reload=_report_to_response(history[-1]) if history else None,
    )


@router.get("/changed")
async def get_changed(
    reloader: Annotated[Reloader, Depends(get_reloader)],
) -> ChangedResponse:
    """Check for new or modified files without loading them."""
    return ChangedResponse(changed=reloader.changed())


@router.post("")
async def run_reload(
    reloader: Annotated[Reloader, Depends(get_reloader)],
) -> ReloadReportResponse:
    """Run a reload pass now."""
    try:
        report = reloader.reload()
    except Exception as e:
        logger.error(f"Reload pass failed: {e}")
        raise HTTPException(status_code=500, detail=f"{type(e).__name__}: {e}") from e

    return _report_to_response(report)


@router.post("/clear")
async def clear_reloader(
    reloader: Annotated[Reloader, Depends(get_reloader)],
) -> dict:
    """Unload everything and forget all modification times."""
    reloader.clear()
    return {"status": "cleared"}
