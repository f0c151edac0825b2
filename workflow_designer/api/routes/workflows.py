from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from workflow_designer.api.dependencies import get_store
from workflow_designer.schemas.workflow import StageIn, StageOut, WorkflowMeta, WorkflowOut
from workflow_designer.services.sandbox_store import SandboxStore

router = APIRouter()

WORKFLOW_NOT_FOUND = "Workflow not found"
STAGE_NOT_FOUND = "Stage not found"


@router.get("", response_model=list[WorkflowOut])
async def list_workflows(store: SandboxStore = Depends(get_store)):
    return store.list_workflows()


@router.post("", response_model=WorkflowOut, status_code=status.HTTP_201_CREATED)
async def create_workflow(payload: WorkflowMeta, store: SandboxStore = Depends(get_store)):
    return store.create_workflow(payload)


@router.get("/{workflow_id}", response_model=WorkflowOut)
async def workflow_detail(workflow_id: int, store: SandboxStore = Depends(get_store)):
    workflow = store.get_workflow(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail=WORKFLOW_NOT_FOUND)
    return workflow


@router.put("/{workflow_id}", response_model=WorkflowOut)
async def update_workflow(
    workflow_id: int,
    payload: WorkflowMeta,
    store: SandboxStore = Depends(get_store),
):
    workflow = store.update_workflow(workflow_id, payload)
    if workflow is None:
        raise HTTPException(status_code=404, detail=WORKFLOW_NOT_FOUND)
    return workflow


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workflow(workflow_id: int, store: SandboxStore = Depends(get_store)):
    if not store.delete_workflow(workflow_id):
        raise HTTPException(status_code=404, detail=WORKFLOW_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{workflow_id}/stages", response_model=StageOut, status_code=status.HTTP_201_CREATED)
async def create_stage(
    workflow_id: int,
    payload: StageIn,
    store: SandboxStore = Depends(get_store),
):
    stage = store.create_stage(workflow_id, payload)
    if stage is None:
        raise HTTPException(status_code=404, detail=WORKFLOW_NOT_FOUND)
    return stage


@router.get("/{workflow_id}/stages/{stage_id}", response_model=StageOut)
async def stage_detail(workflow_id: int, stage_id: int, store: SandboxStore = Depends(get_store)):
    stage = store.get_stage(workflow_id, stage_id)
    if stage is None:
        raise HTTPException(status_code=404, detail=STAGE_NOT_FOUND)
    return stage


@router.put("/{workflow_id}/stages/{stage_id}", response_model=StageOut)
async def update_stage(
    workflow_id: int,
    stage_id: int,
    payload: StageIn,
    store: SandboxStore = Depends(get_store),
):
    stage = store.update_stage(workflow_id, stage_id, payload)
    if stage is None:
        raise HTTPException(status_code=404, detail=STAGE_NOT_FOUND)
    return stage


@router.delete("/{workflow_id}/stages/{stage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_stage(workflow_id: int, stage_id: int, store: SandboxStore = Depends(get_store)):
    if not store.delete_stage(workflow_id, stage_id):
        raise HTTPException(status_code=404, detail=STAGE_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
