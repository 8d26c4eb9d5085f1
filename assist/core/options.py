"""
Launch options for a pipeline run.

The options are sent as the subscribe payload and kept on the snapshot
as init_options.
"""

from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from .errors import InvalidOptionsError

StageName = Literal["stt", "intent", "tts"]


class PipelineRunOptions(BaseModel):
    """
    Options a run is launched with.

    start_stage "stt" expects audio, so input carries the sample rate.
    start_stage "intent" or "tts" expects text input.
    """
    model_config = ConfigDict(frozen=True)

    start_stage: StageName
    end_stage: StageName
    input: Dict[str, Any]
    pipeline: Optional[str] = None
    conversation_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_input(self) -> "PipelineRunOptions":
        if self.start_stage == "stt":
            rate = self.input.get("sample_rate")
            if isinstance(rate, bool) or not isinstance(rate, (int, float)):
                raise ValueError("start_stage 'stt' requires input.sample_rate (number)")
        elif not isinstance(self.input.get("text"), str):
            raise ValueError(f"start_stage '{self.start_stage}' requires input.text (string)")
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Subscribe payload without unset optional fields."""
        return self.model_dump(exclude_none=True)


def coerce_options(
    options: Union[PipelineRunOptions, Mapping[str, Any]]
) -> PipelineRunOptions:
    """
    Accept either a PipelineRunOptions or its dict form.

    Raises:
        InvalidOptionsError: If the dict form does not validate
    """
    if isinstance(options, PipelineRunOptions):
        return options
    try:
        return PipelineRunOptions.model_validate(dict(options))
    except ValidationError as e:
        raise InvalidOptionsError(str(e)) from e


def text_run(
    text: str,
    end_stage: StageName = "intent",
    start_stage: StageName = "intent",
    pipeline: Optional[str] = None,
    conversation_id: Optional[str] = None,
) -> PipelineRunOptions:
    """Options for a run that starts from text (intent or tts stage)."""
    return coerce_options(
        {
            "start_stage": start_stage,
            "end_stage": end_stage,
            "input": {"text": text},
            "pipeline": pipeline,
            "conversation_id": conversation_id,
        }
    )
