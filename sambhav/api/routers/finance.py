from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from sambhav.api.deps import get_service, require_user
from sambhav.api.schemas import BulkDeleteRequest, ok
from sambhav.orchestrator import BillFile, RecordService
from sambhav.services.image import BlobStoreInterface


router = APIRouter()


async def _read_bill(
    upload: Optional[UploadFile],
    blob_store: BlobStoreInterface,
) -> Optional[BillFile]:
    """Read the bill, never pulling more than the size limit plus one byte."""
    if upload is None or not upload.filename:
        return None
    limit = blob_store.max_size_bytes
    if upload.size is not None:
        blob_store.check_size(upload.size)
    content = await upload.read(limit + 1)
    blob_store.check_size(len(content))
    return BillFile(content=content, filename=upload.filename, content_type=upload.content_type)


def _form_fields(
    user_name: Optional[str],
    mobile_number: Optional[str],
    amount: Optional[str],
    location: Optional[str],
) -> dict:
    # Blank form values are dropped so they fail as "missing"
    raw = {
        "user_name": user_name,
        "mobile_number": mobile_number,
        "amount": amount,
        "location": location,
    }
    return {k: v for k, v in raw.items() if v not in (None, "")}


@router.get("", response_model=dict)
async def list_records(
    user: str = Depends(require_user),
    service: RecordService = Depends(get_service),
) -> dict:
    """All finance records, newest first."""
    records = await service.list_records()
    return ok(
        data=[r.model_dump(mode="json") for r in records],
        count=len(records),
    )


@router.get("/ledger", response_model=dict)
async def ledger(
    q: str = Query(default="", description="Search by name, mobile, amount or location"),
    user: str = Depends(require_user),
    service: RecordService = Depends(get_service),
) -> dict:
    """Per-client ledger rows with totals, filtered by ``q``."""
    view = await service.ledger_view(q)
    return ok(data=view.model_dump(mode="json"))


@router.post("", response_model=dict, status_code=201)
async def create_record(
    user_name: Optional[str] = Form(default=None),
    mobile_number: Optional[str] = Form(default=None),
    amount: Optional[str] = Form(default=None),
    location: Optional[str] = Form(default=None),
    bill_image: Optional[UploadFile] = File(default=None),
    user: str = Depends(require_user),
    service: RecordService = Depends(get_service),
) -> dict:
    """Upload a bill and create its record."""
    record = await service.create_record(
        _form_fields(user_name, mobile_number, amount, location),
        await _read_bill(bill_image, service.blob_store),
    )
    return ok(data=record.model_dump(mode="json"), message="Record created successfully")


@router.post("/bulk-delete", response_model=dict)
async def bulk_delete(
    payload: BulkDeleteRequest,
    user: str = Depends(require_user),
    service: RecordService = Depends(get_service),
) -> dict:
    """
    Delete several records (e.g. every entry of one client).

    Deletes are independent; a partial failure is reported per id.
    """
    result = await service.delete_records(payload.ids)
    body = ok(data=result.model_dump(mode="json"))
    body["success"] = result.ok
    body["message"] = (
        f"Deleted {len(result.deleted)} record(s)"
        if result.ok
        else f"Failed to delete {len(result.failed)} record(s)"
    )
    return body


@router.get("/{record_id}", response_model=dict)
async def get_record(
    record_id: str,
    user: str = Depends(require_user),
    service: RecordService = Depends(get_service),
) -> dict:
    record = await service.get_record(record_id)
    return ok(data=record.model_dump(mode="json"))


@router.put("/{record_id}", response_model=dict)
async def update_record(
    record_id: str,
    user_name: Optional[str] = Form(default=None),
    mobile_number: Optional[str] = Form(default=None),
    amount: Optional[str] = Form(default=None),
    location: Optional[str] = Form(default=None),
    bill_image: Optional[UploadFile] = File(default=None),
    user: str = Depends(require_user),
    service: RecordService = Depends(get_service),
) -> dict:
    """Update a record; a new ``bill_image`` replaces the old one."""
    record = await service.update_record(
        record_id,
        _form_fields(user_name, mobile_number, amount, location),
        await _read_bill(bill_image, service.blob_store),
    )
    return ok(data=record.model_dump(mode="json"), message="Record updated successfully")


@router.delete("/{record_id}", response_model=dict)
async def delete_record(
    record_id: str,
    user: str = Depends(require_user),
    service: RecordService = Depends(get_service),
) -> dict:
    await service.delete_record(record_id)
    return ok(message="Record deleted successfully")
