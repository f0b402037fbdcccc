"""
OpenAI call tracing.

Wraps an OpenAI SDK client so that chat, completion, embedding and
moderation calls are recorded as generations. The tracing client is passed
in explicitly; nothing is looked up from global state.

Usage:
    from openai import OpenAI
    from tracefuse import Core
    from tracefuse.integrations.openai import observe

    client = Core(public_key="pk-...", secret_key="sk-...")
    openai_client = observe(OpenAI(), client, trace_name="support-bot")
    openai_client.chat(model="gpt-4o", messages=[{"role": "user", "content": "Hi"}])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from ..telemetry.bodies import ObservationLevel
from ..utils import utc_now

if TYPE_CHECKING:
    from ..client import Core
    from ..records import Trace


logger = logging.getLogger(__name__)

# Traced operation -> attribute path on the OpenAI client
TRACED_OPERATIONS = {
    "chat": "chat.completions.create",
    "completions": "completions.create",
    "embeddings": "embeddings.create",
    "moderations": "moderations.create",
}

MODEL_PARAMETER_KEYS = (
    "frequency_penalty",
    "logit_bias",
    "max_tokens",
    "n",
    "presence_penalty",
    "seed",
    "stop",
    "stream",
    "temperature",
    "top_p",
    "user",
    "response_format",
)

MESSAGE_INPUT_KEYS = ("messages", "functions", "function_call", "tools", "tool_choice")


@dataclass(frozen=True)
class ParsedInput:
    """Model, input and model parameters extracted from call arguments."""
    model: str | None
    input: Any
    model_parameters: dict[str, Any] = field(default_factory=dict)


def _as_dict(response: Any) -> dict[str, Any] | None:
    """SDK responses are pydantic models; tests and older clients use dicts."""
    if hasattr(response, "model_dump"):
        return response.model_dump()
    if isinstance(response, Mapping):
        return dict(response)
    return None


def parse_input_args(params: Mapping[str, Any]) -> ParsedInput:
    """Split call parameters into model, input and model parameters."""
    model_parameters = {
        key: params[key] for key in MODEL_PARAMETER_KEYS if params.get(key) is not None
    }

    if "messages" in params:
        input_ = {key: params[key] for key in MESSAGE_INPUT_KEYS if params.get(key) is not None}
    elif "prompt" in params:
        input_ = params["prompt"]
    else:
        input_ = params.get("input")

    return ParsedInput(
        model=params.get("model"),
        input=input_,
        model_parameters=model_parameters,
    )


def parse_completion_output(response: Any) -> Any:
    """
    Output of a completion response.

    The first choice's message for chat completions, its text for plain
    completions, and "" when the response has no choices.
    """
    data = _as_dict(response)
    choices = data.get("choices") if data else None
    if not isinstance(choices, list) or not choices:
        return ""

    first = choices[0]
    if first.get("message") is not None:
        return first["message"]
    return first.get("text") or ""


def parse_usage(response: Any) -> dict[str, int] | None:
    """Token usage as {input, output, total}, or None if not reported."""
    data = _as_dict(response)
    usage = data.get("usage") if data else None
    if not usage:
        return None

    parsed = {
        "input": usage.get("prompt_tokens"),
        "output": usage.get("completion_tokens"),
        "total": usage.get("total_tokens"),
    }
    return {key: value for key, value in parsed.items() if value is not None}


def parse_usage_details(response: Any) -> dict[str, int] | None:
    """Token usage in the provider's own field names."""
    data = _as_dict(response)
    usage = data.get("usage") if data else None
    if not usage:
        return None

    keys = ("prompt_tokens", "completion_tokens", "total_tokens")
    return {key: usage[key] for key in keys if usage.get(key) is not None}


class TracedOpenAIClient:
    """
    OpenAI client wrapper recording each traced call as a generation.

    Traced: chat, completions, embeddings, moderations.
    Anything else goes through invoke(), untraced.

    Without a tracing client and without a parent trace, calls are passed
    straight through.
    """

    def __init__(
        self,
        client: Any,
        core: Core | None = None,
        *,
        trace_name: str | None = None,
        generation_name: str | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
        metadata: Any = None,
        version: str | None = None,
        release: str | None = None,
        public: bool | None = None,
        parent_trace: Trace | None = None,
        level: ObservationLevel | None = None,
    ):
        self._client = client
        self._core = core
        self._parent_trace = parent_trace
        self.trace_name = trace_name
        self.generation_name = generation_name
        self.user_id = user_id
        self.session_id = session_id
        self.metadata = metadata
        self.version = version
        self.release = release
        self.public = public
        self.level = level or ObservationLevel.DEFAULT

    @property
    def wrapped(self) -> Any:
        """The underlying OpenAI client."""
        return self._client

    @property
    def tracing_client(self) -> Core | None:
        if self._parent_trace is not None:
            return self._parent_trace.client
        return self._core

    def chat(self, **params: Any) -> Any:
        return self._traced_call("chat", params)

    def completions(self, **params: Any) -> Any:
        return self._traced_call("completions", params)

    def embeddings(self, **params: Any) -> Any:
        return self._traced_call("embeddings", params)

    def moderations(self, **params: Any) -> Any:
        return self._traced_call("moderations", params)

    def invoke(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        """
        Call any other operation by dotted name, untraced.

        Example:
            traced.invoke("models.list")
        """
        return self._resolve(operation)(*args, **kwargs)

    def flush_async(self) -> bool | None:
        client = self.tracing_client
        return client.flush_async() if client is not None else None

    def shutdown(self) -> bool | None:
        client = self.tracing_client
        return client.shutdown() if client is not None else None

    def _resolve(self, path: str) -> Any:
        target = self._client
        for part in path.split("."):
            target = getattr(target, part)
        return target

    def _traced_call(self, operation: str, params: dict[str, Any]) -> Any:
        call = self._resolve(TRACED_OPERATIONS[operation])

        trace = self._trace_for(operation)
        if trace is None:
            return call(**params)

        parsed = parse_input_args(params)
        generation_name = self.generation_name or f"OpenAI.{operation}"
        start_time = utc_now()

        try:
            response = call(**params)
        except Exception as e:
            self._record_failure(trace, generation_name, parsed, start_time, e)
            raise

        if params.get("stream"):
            # Streams are handed back untouched; only the request is recorded
            self._record(
                trace.generation,
                name=generation_name,
                model=parsed.model,
                input=parsed.input,
                start_time=start_time,
                model_parameters=parsed.model_parameters,
                level=self.level,
                version=self.version,
            )
            return response

        output = parse_completion_output(response)
        self._record(
            trace.generation,
            name=generation_name,
            model=parsed.model,
            input=parsed.input,
            output=output,
            start_time=start_time,
            end_time=utc_now(),
            model_parameters=parsed.model_parameters,
            usage=parse_usage(response),
            usage_details=parse_usage_details(response),
            level=self.level,
            version=self.version,
        )
        if self._parent_trace is None:
            self._record(trace.update, output=output)

        return response

    def _record_failure(
        self,
        trace: Trace,
        generation_name: str,
        parsed: ParsedInput,
        start_time,
        error: Exception,
    ) -> None:
        error_metadata = {"error": str(error), "error_type": type(error).__name__}
        self._record(
            trace.generation,
            name=generation_name,
            model=parsed.model,
            input=parsed.input,
            start_time=start_time,
            end_time=utc_now(),
            model_parameters=parsed.model_parameters,
            level=ObservationLevel.ERROR,
            status_message=str(error),
            metadata=error_metadata,
        )
        if self._parent_trace is None:
            self._record(trace.update, metadata=error_metadata)

    def _trace_for(self, operation: str) -> Trace | None:
        if self._parent_trace is not None:
            return self._parent_trace
        if self._core is None:
            return None

        try:
            return self._core.trace(
                name=self.trace_name or f"OpenAI.{operation}",
                user_id=self.user_id,
                session_id=self.session_id,
                metadata=self.metadata,
                version=self.version,
                release=self.release,
                public=self.public,
            )
        except Exception as e:
            logger.warning(f"Could not start trace for OpenAI.{operation}: {e}")
            return None

    @staticmethod
    def _record(method, **fields: Any) -> None:
        # Tracing must never break or mask the wrapped call
        try:
            method(**fields)
        except Exception as e:
            logger.warning(f"Failed to record OpenAI call: {e}")

    def __repr__(self) -> str:
        return f"TracedOpenAIClient({self._client!r})"


def observe(client: Any, core: Core | None = None, **options: Any) -> TracedOpenAIClient:
    """Wrap an OpenAI client so its calls are traced through core."""
    return TracedOpenAIClient(client, core, **options)
