"""Seat and storage quota endpoints."""
from fastapi import APIRouter
from pydantic import BaseModel, Field

from backoffice.features.seats.service import get_seat_usage_summary_async, validate_seat_limit_async
from backoffice.features.storage.service import (
    format_bytes,
    get_storage_usage_summary_async,
    validate_storage_limit_async,
)

router = APIRouter(prefix="/v1/tenants", tags=["usage"])


class StorageValidateRequest(BaseModel):
    file_size_bytes: int = Field(ge=0)


@router.get("/{tenant_id}/seats")
async def seat_usage(tenant_id: str):
    usage = await get_seat_usage_summary_async(tenant_id)
    return usage.to_payload()


@router.post("/{tenant_id}/seats/validate")
async def seat_validate(tenant_id: str):
    result = await validate_seat_limit_async(tenant_id)
    return result.to_payload()


@router.get("/{tenant_id}/storage")
async def storage_usage(tenant_id: str):
    usage = await get_storage_usage_summary_async(tenant_id)
    return usage.to_payload()


@router.post("/{tenant_id}/storage/validate")
async def storage_validate(tenant_id: str, body: StorageValidateRequest):
    result = await validate_storage_limit_async(tenant_id, body.file_size_bytes)
    payload = result.to_payload()
    payload["fileSize"] = format_bytes(body.file_size_bytes)
    return payload
