"""OpenAI-compatible provider: chat completions, responses, and Ollama.

The wire family is picked from the endpoint: a URL ending in `/responses`
speaks the responses protocol, anything else speaks chat completions.
Ollama uses chat completions with a boolean `think` flag in place of a
structured reasoning field.
"""

from typing import Optional, List, Dict

from auditagent.core.errors import ProtocolError, UnexpectedResponseShape
from auditagent.core.models import ProviderDescriptor
from auditagent.providers.base import HttpProvider, PayloadVariant, Messages
from auditagent.providers.sse import StreamDelta, content, reasoning

_JSON_MODE = {"response_format": {"type": "json_object"}}
_REASONING_KEYS = ("reasoning_content", "reasoning", "thinking")


class OpenAiProvider(HttpProvider):

    name = "openai-compatible"

    def __init__(self, endpoint: str, model: str, api_key: Optional[str] = None,
                 reasoning_effort: Optional[str] = None, ollama_compat: bool = False, **kw):
        super().__init__(endpoint, model, api_key=api_key, **kw)
        self.reasoning_effort = reasoning_effort
        self.ollama_compat = ollama_compat
        if ollama_compat:
            self.name = "ollama"

    @property
    def api_style(self) -> str:
        if not self.ollama_compat and self.endpoint.rstrip("/").endswith("/responses"):
            return "responses"
        return "chat"

    def describe(self) -> ProviderDescriptor:
        notes = f"Endpoint: {self.endpoint} ({self.api_style} API"
        if self.reasoning_effort:
            notes += f", reasoning effort {self.reasoning_effort}"
        notes += ")"
        return ProviderDescriptor(name=self.name, model=self.model, notes=notes)

    # ── request side ────────────────────────────────────────────

    def payload_variants(self) -> List[PayloadVariant]:
        effort = self.reasoning_effort
        variants = []

        if self.ollama_compat:
            if effort:
                variants.append(PayloadVariant("think", {"think": True}))
        elif self.api_style == "responses":
            if effort:
                variants.append(PayloadVariant(
                    "reasoning_summary", {"reasoning": {"effort": effort, "summary": "auto"}}))
                variants.append(PayloadVariant("reasoning", {"reasoning": {"effort": effort}}))
        else:
            if effort:
                variants.append(PayloadVariant(
                    "reasoning_effort", {"reasoning_effort": effort, **_JSON_MODE}))
            variants.append(PayloadVariant("json_mode", dict(_JSON_MODE)))

        variants.append(PayloadVariant("plain"))
        return variants

    def build_payload(self, messages: Messages, variant: PayloadVariant) -> dict:
        if self.api_style == "responses":
            instructions, history = self.split_system(messages)
            payload = {"model": self.model, "instructions": instructions, "input": history}
        else:
            payload = {"model": self.model,
                       "messages": [{"role": m["role"], "content": m["content"]} for m in messages]}
        payload.update(variant.fields)
        return payload

    def headers(self) -> Dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    # ── response side ───────────────────────────────────────────

    def extract_text(self, body: dict) -> str:
        if self.api_style == "responses":
            text = _responses_text(body)
        else:
            text = _chat_text(body)
        if not text:
            raise UnexpectedResponseShape(
                f"{self.name} provider returned an unexpected response payload")
        return text

    def extract_reasoning(self, body: dict) -> str:
        if self.api_style == "responses":
            out = []
            for item in _list(body.get("output")):
                if isinstance(item, dict) and item.get("type") == "reasoning":
                    out += [s.get("text", "") for s in _list(item.get("summary"))
                            if isinstance(s, dict) and isinstance(s.get("text"), str)]
            return "\n".join(out)

        message = _first_choice(body).get("message")
        if isinstance(message, dict):
            for key in _REASONING_KEYS:
                if isinstance(message.get(key), str):
                    return message[key]
        return ""

    def classify_event(self, event: dict) -> Optional[StreamDelta]:
        if self.api_style == "responses":
            return _classify_responses_event(event)
        return _classify_chat_event(event)


# ── extraction helpers ─────────────────────────────────────────

def _list(value) -> list:
    return value if isinstance(value, list) else []


def _first_choice(body: dict) -> dict:
    choices = _list(body.get("choices"))
    return choices[0] if choices and isinstance(choices[0], dict) else {}


def _parts_text(parts) -> str:
    """Join text blocks of a mixed content array."""
    out = []
    for part in _list(parts):
        if isinstance(part, str):
            out.append(part)
        elif isinstance(part, dict) and part.get("type") in ("text", "output_text") \
                and isinstance(part.get("text"), str):
            out.append(part["text"])
    return "".join(out)


def _chat_text(body: dict) -> str:
    message = _first_choice(body).get("message")
    if not isinstance(message, dict):
        return ""
    value = message.get("content")
    if isinstance(value, str):
        return value
    return _parts_text(value)


def _responses_text(body: dict) -> str:
    if isinstance(body.get("output_text"), str) and body["output_text"]:
        return body["output_text"]
    out = []
    for item in _list(body.get("output")):
        if isinstance(item, dict) and item.get("type") == "message":
            out.append(_parts_text(item.get("content")))
    return "".join(out)


def _classify_chat_event(event: dict) -> Optional[StreamDelta]:
    if "error" in event:
        err = event["error"]
        msg = err.get("message") if isinstance(err, dict) else err
        raise ProtocolError(f"stream error: {msg}")

    delta = _first_choice(event).get("delta")
    if not isinstance(delta, dict):
        return None
    for key in _REASONING_KEYS:
        if isinstance(delta.get(key), str) and delta[key]:
            return reasoning(delta[key])
    if isinstance(delta.get("content"), str) and delta["content"]:
        return content(delta["content"])
    return None


def _classify_responses_event(event: dict) -> Optional[StreamDelta]:
    kind = event.get("type", "")
    text = event.get("delta")

    if kind in ("error", "response.failed"):
        err = event.get("error") or (event.get("response") or {}).get("error") or {}
        msg = err.get("message") if isinstance(err, dict) else err
        raise ProtocolError(f"stream error: {msg or kind}")
    if not isinstance(text, str):
        return None
    if kind == "response.output_text.delta":
        return content(text)
    if kind in ("response.reasoning_summary_text.delta", "response.reasoning_text.delta"):
        return reasoning(text)
    return None
