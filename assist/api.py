"""
Pipeline management and debug-log calls.

Plain request/response wrappers over Transport.call. The debug helpers
fetch the recorded events of a past run and can fold them into a snapshot.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .core.events import Event
from .replay import ReplayResult, replay
from .transport.base import Transport


class AssistPipelineMutableParams(BaseModel):
    conversation_engine: str
    language: str
    name: str
    stt_engine: Optional[str] = None
    tts_engine: Optional[str] = None


class AssistPipeline(AssistPipelineMutableParams):
    id: str


class PipelineList(BaseModel):
    pipelines: List[AssistPipeline] = Field(default_factory=list)
    preferred_pipeline: Optional[str] = None


class PipelineRunListing(BaseModel):
    pipeline_run_id: str
    timestamp: str


async def fetch_pipelines(transport: Transport) -> PipelineList:
    result = await transport.call({"type": "assist_pipeline/pipeline/list"})
    return PipelineList.model_validate(result)


async def create_pipeline(
    transport: Transport, params: AssistPipelineMutableParams
) -> AssistPipeline:
    result = await transport.call(
        {"type": "assist_pipeline/pipeline/create", **params.model_dump()}
    )
    return AssistPipeline.model_validate(result)


async def update_pipeline(transport: Transport, pipeline_id: str, **changes: Any) -> AssistPipeline:
    """Update only the given fields (name, language, conversation_engine, stt_engine, tts_engine)."""
    unknown = set(changes) - set(AssistPipelineMutableParams.model_fields)
    if unknown:
        raise ValueError(f"Unknown pipeline fields: {sorted(unknown)}")
    result = await transport.call(
        {"type": "assist_pipeline/pipeline/update", "pipeline_id": pipeline_id, **changes}
    )
    return AssistPipeline.model_validate(result)


async def set_preferred_pipeline(transport: Transport, pipeline_id: str) -> None:
    await transport.call(
        {"type": "assist_pipeline/pipeline/set_preferred", "pipeline_id": pipeline_id}
    )


async def delete_pipeline(transport: Transport, pipeline_id: str) -> None:
    await transport.call({"type": "assist_pipeline/pipeline/delete", "pipeline_id": pipeline_id})


async def list_pipeline_runs(transport: Transport, pipeline_id: str) -> List[PipelineRunListing]:
    result = await transport.call(
        {"type": "assist_pipeline/pipeline_debug/list", "pipeline_id": pipeline_id}
    )
    return [PipelineRunListing.model_validate(r) for r in result.get("pipeline_runs", [])]


async def get_pipeline_run_events(
    transport: Transport, pipeline_id: str, pipeline_run_id: str
) -> List[Event]:
    """
    Fetch the recorded events of one run.

    Raises:
        MalformedEventError: If a recorded event is not a {type, timestamp, data} object
    """
    result = await transport.call(
        {
            "type": "assist_pipeline/pipeline_debug/get",
            "pipeline_id": pipeline_id,
            "pipeline_run_id": pipeline_run_id,
        }
    )
    return [Event.from_dict(e) for e in result.get("events", [])]


async def get_pipeline_run(
    transport: Transport,
    pipeline_id: str,
    pipeline_run_id: str,
) -> ReplayResult:
    """Fetch a recorded run and replay it into its final snapshot."""
    events = await get_pipeline_run_events(transport, pipeline_id, pipeline_run_id)
    return replay(events)
