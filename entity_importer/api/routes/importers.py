"""Importer configuration and execution endpoints."""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_services
from ..models import (
    ActionRequest,
    BatchActionEnum,
    BatchResponse,
    FieldMappingOptionsSave,
    FieldMappingResponse,
    FieldMappingSave,
    ImporterListResponse,
    ImporterResponse,
    ImporterSave,
    ImportRequest,
    PipelinePlanResponse,
    PipelineResponse,
)
from ...container import ImporterServices
from ...models.profile import FieldMapping, FieldMappingOptions, ImportProfile, ProcessStep
from ...models.run import BatchAction
from ...services.field_mappings import mappings_for_profile

router = APIRouter()


def _importer_response(profile: ImportProfile) -> ImporterResponse:
    return ImporterResponse(
        id=profile.id,
        label=profile.label,
        description=profile.description,
        display_page=profile.display_page,
        source=profile.source,
        entity=profile.entity,
        bundles=profile.bundles,
        page_display_changed=profile.page_display_changed,
    )


def _field_mapping_response(mapping: FieldMapping) -> FieldMappingResponse:
    return FieldMappingResponse(
        id=mapping.id,
        name=mapping.name,
        label=mapping.label,
        destination=mapping.destination,
        importer_type=mapping.importer_type,
        importer_bundle=mapping.importer_bundle,
        processing=[step.to_dict() for step in mapping.processing],
        unique_identifier=mapping.unique_identifier,
    )


@router.get("", response_model=ImporterListResponse)
async def list_importers(services: ImporterServices = Depends(get_services)):
    """List all importers."""
    importers = [_importer_response(p) for p in services.profiles.list()]
    return ImporterListResponse(importers=importers, total=len(importers))


@router.get("/{importer_id}", response_model=ImporterResponse)
async def get_importer(importer_id: str, services: ImporterServices = Depends(get_services)):
    """Get a specific importer."""
    return _importer_response(services.profiles.load(importer_id))


@router.put("/{importer_id}", response_model=ImporterResponse)
async def save_importer(
    importer_id: str,
    data: ImporterSave,
    services: ImporterServices = Depends(get_services)
):
    """Create or update an importer."""
    profile = ImportProfile(id=importer_id, **data.model_dump())
    return _importer_response(services.profiles.save(profile))


@router.delete("/{importer_id}")
async def delete_importer(importer_id: str, services: ImporterServices = Depends(get_services)):
    """Delete an importer with its field mappings."""
    services.profiles.delete(importer_id)
    return {"status": "deleted"}


@router.get("/{importer_id}/field-mappings", response_model=List[FieldMappingResponse])
async def list_field_mappings(importer_id: str, services: ImporterServices = Depends(get_services)):
    """List the importer's field mappings in load order."""
    profile = services.profiles.load(importer_id)
    return [_field_mapping_response(m) for m in mappings_for_profile(services.store, profile)]


@router.put("/{importer_id}/field-mappings", response_model=FieldMappingResponse)
async def save_field_mapping(
    importer_id: str,
    data: FieldMappingSave,
    services: ImporterServices = Depends(get_services)
):
    """Create or update a field mapping."""
    mapping = FieldMapping(
        name=data.name,
        destination=data.destination,
        importer_type=importer_id,
        importer_bundle=data.importer_bundle,
        label=data.label or data.name,
        processing=[ProcessStep(plugin_id=s.plugin_id, settings=s.settings) for s in data.processing],
        unique_identifier=data.unique_identifier,
        identifier_type=data.identifier_type,
        identifier_settings=data.identifier_settings,
    )
    services.profiles.save_field_mapping(mapping)
    return _field_mapping_response(mapping)


@router.put("/{importer_id}/field-mapping-options")
async def save_field_mapping_options(
    importer_id: str,
    data: FieldMappingOptionsSave,
    services: ImporterServices = Depends(get_services)
):
    """Replace the importer's unique identifiers."""
    options = FieldMappingOptions(
        importer_id=importer_id,
        unique_identifiers=[item.model_dump() for item in data.unique_identifiers],
    )
    services.profiles.save_mapping_options(options)
    return options.to_dict()


@router.get("/{importer_id}/pipelines/{bundle}", response_model=PipelineResponse)
async def get_pipeline(importer_id: str, bundle: str, services: ImporterServices = Depends(get_services)):
    """Get the compiled pipeline for one bundle."""
    profile = services.profiles.load(importer_id)
    return services.manager.compiler.compile(profile, bundle).to_dict()


@router.get("/{importer_id}/plan", response_model=PipelinePlanResponse)
async def get_plan(
    importer_id: str,
    bundle: Optional[str] = None,
    services: ImporterServices = Depends(get_services)
):
    """Get the pipeline execution order with statuses."""
    profile = services.profiles.load(importer_id)
    bundle = bundle or profile.first_bundle()
    return PipelinePlanResponse(
        importer_id=importer_id,
        bundle=bundle,
        pipelines=services.orchestrator.status(importer_id, bundle),
    )


@router.post("/{importer_id}/import", response_model=BatchResponse)
def import_importer(
    importer_id: str,
    data: ImportRequest,
    services: ImporterServices = Depends(get_services)
):
    """Run the page import for an importer."""
    profile = services.profiles.load(importer_id)
    if not profile.display_page:
        raise HTTPException(status_code=404, detail="Importer has no import page")

    migrations = {pid: values.model_dump() for pid, values in data.migrations.items()}
    result = services.orchestrator.import_profile(importer_id, data.bundle, migrations)
    return result.to_dict()


@router.post("/{importer_id}/actions", response_model=BatchResponse)
def run_importer_action(
    importer_id: str,
    data: ActionRequest,
    services: ImporterServices = Depends(get_services)
):
    """Run an action over selected pipelines."""
    services.profiles.load(importer_id)

    if data.action != BatchActionEnum.ROLLBACK:
        raise HTTPException(status_code=400, detail=f"Unsupported action: {data.action.value}")

    result = services.orchestrator.run_action(
        importer_id, data.bundle, BatchAction(data.action.value), data.migrations or None
    )
    return result.to_dict()
