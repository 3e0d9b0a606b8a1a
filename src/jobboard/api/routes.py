from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect

from jobboard.api.deps import get_store
from jobboard.api.schemas import JobCreateRequest, JobCreateResponse, JobResponse, JobUpdateRequest
from jobboard.core.store import SqlRecordStore
from jobboard.errors import RecordNotFound, RecordValidationError, RemoteFailure
from jobboard.types import JobFields, JobPatch

router = APIRouter(prefix="/api", tags=["api"])


@router.get("/users/{user_id}/jobs", response_model=list[JobResponse])
async def list_jobs(user_id: str, store: SqlRecordStore = Depends(get_store)) -> list[JobResponse]:
    try:
        records = await store.list_records(user_id)
    except RemoteFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return [JobResponse.from_record(record) for record in records]


@router.post("/users/{user_id}/jobs", response_model=JobCreateResponse, status_code=201)
async def create_job(
    user_id: str,
    payload: JobCreateRequest,
    store: SqlRecordStore = Depends(get_store),
) -> JobCreateResponse:
    try:
        fields = JobFields.parse(payload.model_dump())
        record_id = await store.create_record(user_id, fields)
    except RecordValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RemoteFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return JobCreateResponse(id=record_id)


@router.patch("/jobs/{record_id}", status_code=204)
async def update_job(
    record_id: str,
    payload: JobUpdateRequest,
    store: SqlRecordStore = Depends(get_store),
) -> Response:
    try:
        patch = JobPatch.parse(payload.model_dump(exclude_unset=True))
        await store.update_record(record_id, patch)
    except RecordValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except RemoteFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return Response(status_code=204)


@router.delete("/jobs/{record_id}", status_code=204)
async def delete_job(record_id: str, store: SqlRecordStore = Depends(get_store)) -> Response:
    try:
        await store.delete_record(record_id)
    except RemoteFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return Response(status_code=204)


@router.websocket("/users/{user_id}/changes")
async def stream_job_changes(websocket: WebSocket, user_id: str) -> None:
    store = get_store()
    queue = store.event_bus.open(user_id)
    await websocket.accept()
    try:
        while True:
            event = await queue.get()
            await websocket.send_json(event)
    except WebSocketDisconnect:
        return
    finally:
        store.event_bus.close(user_id, queue)
