"""
Tests for the assist-run CLI.

Server-backed commands get a FakeTransport in place of the WebSocket connection.
"""

import json

from typer.testing import CliRunner

from assist.cli.commands import debug as debug_cmd
from assist.cli.commands import pipelines as pipelines_cmd
from assist.cli.commands import run as run_cmd
from assist.cli.main import app
from assist.core.errors import TransportError
from assist.replay import compute_snapshot_hash, load_events, replay
from assist.tests.fakes import EagerTransport, FakeTransport, early_error_events, full_run_events, wire

runner = CliRunner()

# Keeps log records out of the captured output
QUIET = ["--log-level", "CRITICAL"]


def _write(tmp_path, events, name="run.json"):
    path = tmp_path / name
    path.write_text(json.dumps(events))
    return str(path)


def test_replay_json_output(tmp_path):
    path = _write(tmp_path, full_run_events())

    result = runner.invoke(app, ["replay", path, "--json"])

    assert result.exit_code == 0
    out = json.loads(result.stdout)
    assert out["events_replayed"] == 8
    assert out["snapshot"]["stage"] == "done"
    assert out["snapshot_hash"] == compute_snapshot_hash(replay(load_events(path)).snapshot)
    assert out["anomalies"] == []


def test_replay_until(tmp_path):
    path = _write(tmp_path, full_run_events())

    result = runner.invoke(app, ["replay", path, "--until", "1", "--json"])

    out = json.loads(result.stdout)
    assert out["events_replayed"] == 2
    assert out["snapshot"]["stage"] == "stt"


def test_replay_rich_output_shows_error(tmp_path):
    path = _write(tmp_path, early_error_events())

    result = runner.invoke(app, ["replay", path])

    assert result.exit_code == 0
    assert "Replayed 3 events" in result.stdout
    assert "stt-no-text-recognized" in result.stdout


def test_replay_missing_file(tmp_path):
    result = runner.invoke(app, ["replay", str(tmp_path / "missing.json"), "--json"])

    assert result.exit_code == 2
    assert json.loads(result.stdout)["error"] == "Event file not found"


def test_replay_malformed_file(tmp_path):
    path = _write(tmp_path, [{"data": {}}])

    result = runner.invoke(app, ["replay", path])

    assert result.exit_code == 2
    assert "Error" in result.stdout


def test_events_inspect_filters_by_type(tmp_path):
    path = _write(tmp_path, full_run_events())

    result = runner.invoke(app, ["events", "inspect", path, "--event-type", "stt-end", "--json", "--data"])

    assert result.exit_code == 0
    out = json.loads(result.stdout)
    assert out["count"] == 1
    assert out["events"][0]["seq"] == 2
    assert out["events"][0]["data"] == {"stt_output": {"text": "turn on the lights"}}


def test_events_inspect_hides_data_by_default(tmp_path):
    path = _write(tmp_path, full_run_events())

    result = runner.invoke(app, ["events", "inspect", path, "--json"])

    out = json.loads(result.stdout)
    assert out["count"] == 8
    assert all(e["data"] == "<hidden>" for e in out["events"])


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "assist-run" in result.stdout


def _serve(monkeypatch, module, transport):
    monkeypatch.delenv("ASSIST_METRICS_ENABLED", raising=False)
    opened = []

    def build_transport(url=None, token=None):
        opened.append((url, token))
        return transport

    monkeypatch.setattr(module, "build_transport", build_transport)
    return opened


def test_run_json_output_of_finished_run(monkeypatch):
    transport = EagerTransport(full_run_events())
    opened = _serve(monkeypatch, run_cmd, transport)

    result = runner.invoke(
        app, QUIET + ["run", "turn on the lights", "--json", "--url", "ws://hass/api/websocket", "--token", "t"]
    )

    assert result.exit_code == 0
    out = json.loads(result.stdout)
    assert out["stage"] == "done"
    assert out["init_options"]["input"] == {"text": "turn on the lights"}
    assert opened == [("ws://hass/api/websocket", "t")]
    assert transport.subscriptions[0]["type"] == "assist_pipeline/run"
    assert transport.subscriptions[0]["start_stage"] == "intent"


def test_run_prints_progress_per_event(monkeypatch):
    _serve(monkeypatch, run_cmd, EagerTransport(full_run_events()))

    result = runner.invoke(app, QUIET + ["run", "turn on the lights"])

    assert result.exit_code == 0
    assert "run-start" in result.stdout
    assert "run-end" in result.stdout


def test_run_exits_1_when_run_ends_in_error(monkeypatch):
    _serve(monkeypatch, run_cmd, EagerTransport(early_error_events()))

    result = runner.invoke(app, QUIET + ["run", "turn on the lights", "--json"])

    assert result.exit_code == 1
    out = json.loads(result.stdout)
    assert out["stage"] == "error"
    assert out["error"]["code"] == "stt-no-text-recognized"


def test_run_exits_2_when_subscription_rejected(monkeypatch):
    _serve(monkeypatch, run_cmd, FakeTransport(subscribe_error=TransportError("pipeline-not-found", "no pipeline")))

    result = runner.invoke(app, QUIET + ["run", "hello", "--json"])

    assert result.exit_code == 2
    assert json.loads(result.stdout)["error"] == "pipeline-not-found: no pipeline"


def test_run_exits_2_when_run_never_started(monkeypatch):
    _serve(monkeypatch, run_cmd, EagerTransport([wire("error", {"code": "pipeline-not-found", "message": "missing"})]))

    result = runner.invoke(app, QUIET + ["run", "hello", "--json"])

    assert result.exit_code == 2
    assert "no active run" in json.loads(result.stdout)["error"]


def test_run_rejects_invalid_end_stage(monkeypatch):
    transport = FakeTransport()
    _serve(monkeypatch, run_cmd, transport)

    result = runner.invoke(app, QUIET + ["run", "hello", "--end-stage", "bogus", "--json"])

    assert result.exit_code == 2
    assert "error" in json.loads(result.stdout)
    assert transport.subscriptions == []


PIPELINES = {
    "pipelines": [
        {
            "id": "01HPIPELINE",
            "conversation_engine": "conversation.default",
            "language": "en",
            "name": "Home Assistant",
            "stt_engine": "stt.cloud",
            "tts_engine": None,
        }
    ],
    "preferred_pipeline": "01HPIPELINE",
}


def test_pipelines_list_json(monkeypatch):
    transport = FakeTransport(responses={"assist_pipeline/pipeline/list": PIPELINES})
    _serve(monkeypatch, pipelines_cmd, transport)

    result = runner.invoke(app, QUIET + ["pipelines", "list", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == PIPELINES
    assert transport.calls == [{"type": "assist_pipeline/pipeline/list"}]


def test_pipelines_list_table_marks_preferred(monkeypatch):
    _serve(monkeypatch, pipelines_cmd, FakeTransport(responses={"assist_pipeline/pipeline/list": PIPELINES}))

    result = runner.invoke(app, QUIET + ["pipelines", "list"])

    assert result.exit_code == 0
    assert "Home Assistant" in result.stdout
    assert "(preferred)" in result.stdout


def test_debug_list_json(monkeypatch):
    runs = {"pipeline_runs": [{"pipeline_run_id": "run-1", "timestamp": "2024-05-01T12:00:00"}]}
    transport = FakeTransport(responses={"assist_pipeline/pipeline_debug/list": runs})
    _serve(monkeypatch, debug_cmd, transport)

    result = runner.invoke(app, QUIET + ["debug", "list", "01HPIPELINE", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == runs
    assert transport.calls[0]["pipeline_id"] == "01HPIPELINE"


def test_debug_get_json_folds_recorded_run(monkeypatch):
    transport = FakeTransport(responses={"assist_pipeline/pipeline_debug/get": {"events": early_error_events()}})
    _serve(monkeypatch, debug_cmd, transport)

    result = runner.invoke(app, QUIET + ["debug", "get", "01HPIPELINE", "run-2", "--json"])

    assert result.exit_code == 0
    out = json.loads(result.stdout)
    assert out["snapshot"]["stage"] == "error"
    assert len(out["snapshot"]["events"]) == 3
    assert out["anomalies"] == []
    assert transport.calls[0]["pipeline_run_id"] == "run-2"


def test_debug_get_reports_anomalies(monkeypatch):
    events = [wire("stt-start", {"engine": "stt.cloud"})] + full_run_events()
    _serve(monkeypatch, debug_cmd, FakeTransport(responses={"assist_pipeline/pipeline_debug/get": {"events": events}}))

    result = runner.invoke(app, QUIET + ["debug", "get", "01HPIPELINE", "run-3"])

    assert result.exit_code == 0
    assert "Anomaly:" in result.stdout
    assert "no active run" in result.stdout


def test_debug_get_exits_2_on_malformed_log(monkeypatch):
    _serve(monkeypatch, debug_cmd, FakeTransport(responses={"assist_pipeline/pipeline_debug/get": {"events": [{"data": {}}]}}))

    result = runner.invoke(app, QUIET + ["debug", "get", "01HPIPELINE", "run-4", "--json"])

    assert result.exit_code == 2
    assert "error" in json.loads(result.stdout)
