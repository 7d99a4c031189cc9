"""Typed response models used by the endpoint helpers.

Only the fields the helpers rely on are declared; everything else the API
returns is kept as extra attributes.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class LLMWireModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class ErrorObject(LLMWireModel):
    message: str
    type: str | None = None
    param: str | None = None
    code: str | None = None


class CompletionUsage(LLMWireModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionMessage(LLMWireModel):
    role: str
    content: str | None = None


class ChatCompletionChoice(LLMWireModel):
    index: int
    message: ChatCompletionMessage
    finish_reason: str | None = None


class ChatCompletion(LLMWireModel):
    id: str
    object: Literal["chat.completion"] = "chat.completion"
    created: int | None = None
    model: str | None = None
    choices: list[ChatCompletionChoice] = Field(default_factory=list)
    usage: CompletionUsage | None = None


class ChoiceDelta(LLMWireModel):
    role: str | None = None
    content: str | None = None


class ChatCompletionChunkChoice(LLMWireModel):
    index: int
    delta: ChoiceDelta
    finish_reason: str | None = None


class ChatCompletionChunk(LLMWireModel):
    id: str
    object: Literal["chat.completion.chunk"] = "chat.completion.chunk"
    created: int | None = None
    model: str | None = None
    choices: list[ChatCompletionChunkChoice] = Field(default_factory=list)


class Thread(LLMWireModel):
    id: str
    object: Literal["thread"] = "thread"
    created_at: int | None = None
    metadata: dict[str, Any] | None = None


class ThreadDeleted(LLMWireModel):
    id: str
    deleted: bool


class Message(LLMWireModel):
    id: str
    object: Literal["thread.message"] = "thread.message"
    thread_id: str | None = None
    role: str | None = None
    status: str | None = None
    content: list[dict[str, Any]] = Field(default_factory=list)


class MessageDeltaBody(LLMWireModel):
    role: str | None = None
    content: list[dict[str, Any]] = Field(default_factory=list)


class MessageDelta(LLMWireModel):
    id: str
    object: Literal["thread.message.delta"] = "thread.message.delta"
    delta: MessageDeltaBody


RunStatus = Literal[
    "queued",
    "in_progress",
    "requires_action",
    "cancelling",
    "cancelled",
    "failed",
    "completed",
    "incomplete",
    "expired",
]

RUN_PENDING_STATUSES = frozenset({"queued", "in_progress", "cancelling"})


class Run(LLMWireModel):
    id: str
    object: Literal["thread.run"] = "thread.run"
    thread_id: str | None = None
    assistant_id: str | None = None
    status: RunStatus
    required_action: dict[str, Any] | None = None
    last_error: dict[str, Any] | None = None


class RunStep(LLMWireModel):
    id: str
    object: Literal["thread.run.step"] = "thread.run.step"
    run_id: str | None = None
    status: str | None = None
    step_details: dict[str, Any] | None = None


class RunStepDelta(LLMWireModel):
    id: str
    object: Literal["thread.run.step.delta"] = "thread.run.step.delta"
    delta: dict[str, Any] = Field(default_factory=dict)


# Assistant stream events: one variant per SSE event name, tagged by the
# wrapper key the demultiplexer places the payload under.


class ThreadCreatedEvent(LLMWireModel):
    thread_created: Thread


class RunCreatedEvent(LLMWireModel):
    run_created: Run


class RunQueuedEvent(LLMWireModel):
    run_queued: Run


class RunInProgressEvent(LLMWireModel):
    run_in_progress: Run


class RunRequiresActionEvent(LLMWireModel):
    run_requires_action: Run


class RunCompletedEvent(LLMWireModel):
    run_completed: Run


class RunIncompleteEvent(LLMWireModel):
    run_incomplete: Run


class RunFailedEvent(LLMWireModel):
    run_failed: Run


class RunCancellingEvent(LLMWireModel):
    run_cancelling: Run


class RunCancelledEvent(LLMWireModel):
    run_cancelled: Run


class RunExpiredEvent(LLMWireModel):
    run_expired: Run


class RunStepCreatedEvent(LLMWireModel):
    run_step_created: RunStep


class RunStepInProgressEvent(LLMWireModel):
    run_step_in_progress: RunStep


class RunStepDeltaEvent(LLMWireModel):
    run_step_delta: RunStepDelta


class RunStepCompletedEvent(LLMWireModel):
    run_step_completed: RunStep


class RunStepFailedEvent(LLMWireModel):
    run_step_failed: RunStep


class RunStepCancelledEvent(LLMWireModel):
    run_step_cancelled: RunStep


class RunStepExpiredEvent(LLMWireModel):
    run_step_expired: RunStep


class MessageCreatedEvent(LLMWireModel):
    message_created: Message


class MessageInProgressEvent(LLMWireModel):
    message_in_progress: Message


class MessageDeltaEvent(LLMWireModel):
    message_delta: MessageDelta


class MessageCompletedEvent(LLMWireModel):
    message_completed: Message


class MessageIncompleteEvent(LLMWireModel):
    message_incomplete: Message


class ErrorEvent(LLMWireModel):
    error: ErrorObject


AssistantStreamEvent = Union[
    ThreadCreatedEvent,
    RunCreatedEvent,
    RunQueuedEvent,
    RunInProgressEvent,
    RunRequiresActionEvent,
    RunCompletedEvent,
    RunIncompleteEvent,
    RunFailedEvent,
    RunCancellingEvent,
    RunCancelledEvent,
    RunExpiredEvent,
    RunStepCreatedEvent,
    RunStepInProgressEvent,
    RunStepDeltaEvent,
    RunStepCompletedEvent,
    RunStepFailedEvent,
    RunStepCancelledEvent,
    RunStepExpiredEvent,
    MessageCreatedEvent,
    MessageInProgressEvent,
    MessageDeltaEvent,
    MessageCompletedEvent,
    MessageIncompleteEvent,
    ErrorEvent,
]
