"""Task planning endpoints."""

from fastapi import APIRouter, HTTPException

from ..models import JobPlanResponse, PlanRequest
from ...job import MigrationJob
from ...services.describe_client import StaticDescribeClient

router = APIRouter()


def _static_client(payloads, side: str):
    if not payloads:
        return None
    client = StaticDescribeClient(side=side)
    for payload in payloads:
        client.register_payload(payload)
    return client


@router.post("", response_model=JobPlanResponse)
async def create_plan(request: PlanRequest):
    """Resolve the objects of a job configuration against their schemas."""
    if not request.objects:
        raise HTTPException(status_code=400, detail="No objects to plan")

    config = {
        "objects": [o.to_config() for o in request.objects],
        "source": request.source.to_config(),
        "target": request.target.to_config(),
        "isPersonAccountEnabled": request.is_person_account_enabled,
        "multiselectDenyList": request.multiselect_deny_list,
    }
    job = MigrationJob.from_dict(
        config,
        source_client=_static_client(request.source_schemas, "source"),
        target_client=_static_client(request.target_schemas, "target"),
    )
    report = await job.plan(parallel=request.parallel)
    return report
