"""
Tests for pipeline management and debug-log calls.
"""

import asyncio

import pytest

from assist.api import (
    AssistPipelineMutableParams,
    create_pipeline,
    delete_pipeline,
    fetch_pipelines,
    get_pipeline_run,
    get_pipeline_run_events,
    list_pipeline_runs,
    set_preferred_pipeline,
    update_pipeline,
)
from assist.core.errors import MalformedEventError
from assist.core.run import Stage
from assist.tests.fakes import FakeTransport, early_error_events, full_run_events, wire

PIPELINE = {
    "id": "01HPIPELINE",
    "conversation_engine": "conversation.default",
    "language": "en",
    "name": "Home Assistant",
    "stt_engine": "stt.cloud",
    "tts_engine": "tts.cloud",
}


def test_fetch_pipelines():
    transport = FakeTransport(
        responses={"assist_pipeline/pipeline/list": {"pipelines": [PIPELINE], "preferred_pipeline": "01HPIPELINE"}}
    )

    listing = asyncio.run(fetch_pipelines(transport))

    assert transport.calls == [{"type": "assist_pipeline/pipeline/list"}]
    assert listing.preferred_pipeline == "01HPIPELINE"
    assert listing.pipelines[0].name == "Home Assistant"


def test_create_pipeline_sends_params():
    transport = FakeTransport(responses={"assist_pipeline/pipeline/create": PIPELINE})
    params = AssistPipelineMutableParams(
        conversation_engine="conversation.default",
        language="en",
        name="Home Assistant",
        stt_engine="stt.cloud",
        tts_engine="tts.cloud",
    )

    created = asyncio.run(create_pipeline(transport, params))

    assert transport.calls[0] == {"type": "assist_pipeline/pipeline/create", **{k: v for k, v in PIPELINE.items() if k != "id"}}
    assert created.id == "01HPIPELINE"


def test_update_pipeline_sends_only_changes():
    transport = FakeTransport(responses={"assist_pipeline/pipeline/update": {**PIPELINE, "name": "Kitchen"}})

    updated = asyncio.run(update_pipeline(transport, "01HPIPELINE", name="Kitchen"))

    assert transport.calls[0] == {"type": "assist_pipeline/pipeline/update", "pipeline_id": "01HPIPELINE", "name": "Kitchen"}
    assert updated.name == "Kitchen"


def test_update_pipeline_rejects_unknown_fields():
    with pytest.raises(ValueError):
        asyncio.run(update_pipeline(FakeTransport(), "01HPIPELINE", colour="blue"))


def test_set_preferred_and_delete():
    transport = FakeTransport()

    asyncio.run(set_preferred_pipeline(transport, "01HPIPELINE"))
    asyncio.run(delete_pipeline(transport, "01HPIPELINE"))

    assert transport.calls == [
        {"type": "assist_pipeline/pipeline/set_preferred", "pipeline_id": "01HPIPELINE"},
        {"type": "assist_pipeline/pipeline/delete", "pipeline_id": "01HPIPELINE"},
    ]


def test_list_pipeline_runs():
    transport = FakeTransport(
        responses={
            "assist_pipeline/pipeline_debug/list": {
                "pipeline_runs": [{"pipeline_run_id": "run-1", "timestamp": "2024-05-01T12:00:00"}]
            }
        }
    )

    runs = asyncio.run(list_pipeline_runs(transport, "01HPIPELINE"))

    assert transport.calls[0]["pipeline_id"] == "01HPIPELINE"
    assert runs[0].pipeline_run_id == "run-1"


def test_get_pipeline_run_folds_recorded_events():
    transport = FakeTransport(responses={"assist_pipeline/pipeline_debug/get": {"events": full_run_events()}})

    result = asyncio.run(get_pipeline_run(transport, "01HPIPELINE", "run-1"))
    snapshot = result.snapshot

    assert transport.calls[0] == {
        "type": "assist_pipeline/pipeline_debug/get",
        "pipeline_id": "01HPIPELINE",
        "pipeline_run_id": "run-1",
    }
    assert snapshot.stage is Stage.DONE
    assert snapshot.init_options is None
    assert len(snapshot.events) == 8
    assert result.applied == 8
    assert result.anomalies == ()


def test_get_pipeline_run_events_of_failed_run():
    transport = FakeTransport(responses={"assist_pipeline/pipeline_debug/get": {"events": early_error_events()}})

    events = asyncio.run(get_pipeline_run_events(transport, "01HPIPELINE", "run-2"))

    assert [e.type for e in events] == ["run-start", "stt-start", "error"]


def test_get_pipeline_run_events_rejects_malformed():
    transport = FakeTransport(responses={"assist_pipeline/pipeline_debug/get": {"events": [{"data": {}}]}})

    with pytest.raises(MalformedEventError):
        asyncio.run(get_pipeline_run_events(transport, "01HPIPELINE", "run-3"))


def test_get_pipeline_run_collects_anomalies_of_unstarted_log():
    events = [wire("stt-start", {"engine": "stt.cloud"}), wire("error", {"code": "x", "message": "y"})]
    transport = FakeTransport(responses={"assist_pipeline/pipeline_debug/get": {"events": events}})

    result = asyncio.run(get_pipeline_run(transport, "01HPIPELINE", "run-4"))

    assert result.snapshot is None
    assert result.applied == 2
    assert len(result.anomalies) == 2
