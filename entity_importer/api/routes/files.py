"""Uploaded file registration endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_services
from ..models import FileRegister, FileResponse
from ...container import ImporterServices

router = APIRouter()


@router.post("", response_model=FileResponse)
async def register_file(data: FileRegister, services: ImporterServices = Depends(get_services)):
    """Register a local path or http(s) URL as an import file."""
    file_id = services.file_store.register(data.uri, data.filename)
    return services.file_store.load(file_id).to_dict()


@router.get("/{file_id}", response_model=FileResponse)
async def get_file(file_id: str, services: ImporterServices = Depends(get_services)):
    """Get a registered file."""
    stored = services.file_store.load(file_id)
    if not stored:
        raise HTTPException(status_code=404, detail="File not found")
    return stored.to_dict()


@router.delete("/{file_id}")
async def delete_file(file_id: str, services: ImporterServices = Depends(get_services)):
    """Delete a registered file."""
    if not services.file_store.delete(file_id):
        raise HTTPException(status_code=404, detail="File not found")
    return {"status": "deleted"}
