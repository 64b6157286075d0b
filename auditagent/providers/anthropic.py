"""Anthropic messages API provider."""

from typing import Optional, List, Dict

from auditagent.core.errors import ProtocolError, UnexpectedResponseShape
from auditagent.core.models import ProviderDescriptor
from auditagent.providers.base import HttpProvider, PayloadVariant, Messages
from auditagent.providers.sse import StreamDelta, content, reasoning

DEFAULT_ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096

# reasoning effort -> extended-thinking token budget
THINKING_BUDGETS = {"low": 1024, "medium": 4096, "high": 16384}


class AnthropicProvider(HttpProvider):

    name = "anthropic"

    def __init__(self, endpoint: str, model: str, api_key: Optional[str] = None,
                 version: str = DEFAULT_ANTHROPIC_VERSION,
                 reasoning_effort: Optional[str] = None,
                 max_tokens: int = DEFAULT_MAX_TOKENS, **kw):
        super().__init__(endpoint, model, api_key=api_key, **kw)
        self.version = version
        self.reasoning_effort = reasoning_effort
        self.max_tokens = max_tokens

    @property
    def thinking_budget(self) -> Optional[int]:
        if not self.reasoning_effort:
            return None
        return THINKING_BUDGETS.get(self.reasoning_effort.lower(), THINKING_BUDGETS["medium"])

    def describe(self) -> ProviderDescriptor:
        notes = f"Endpoint: {self.endpoint}"
        if self.thinking_budget:
            notes += f" (thinking budget {self.thinking_budget} tokens)"
        return ProviderDescriptor(name=self.name, model=self.model, notes=notes)

    def payload_variants(self) -> List[PayloadVariant]:
        variants = []
        budget = self.thinking_budget
        if budget:
            # max_tokens must exceed the thinking budget
            variants.append(PayloadVariant("thinking", {
                "thinking": {"type": "enabled", "budget_tokens": budget},
                "max_tokens": budget + self.max_tokens,
            }))
        variants.append(PayloadVariant("plain"))
        return variants

    def build_payload(self, messages: Messages, variant: PayloadVariant) -> dict:
        system, history = self.split_system(messages)
        payload = {"model": self.model, "max_tokens": self.max_tokens, "messages": history}
        if system:
            payload["system"] = system
        payload.update(variant.fields)
        return payload

    def headers(self) -> Dict[str, str]:
        return {"x-api-key": self.api_key or "", "anthropic-version": self.version}

    def extract_text(self, body: dict) -> str:
        text = "".join(
            block["text"] for block in _blocks(body)
            if block.get("type") == "text" and isinstance(block.get("text"), str)
        )
        if not text:
            raise UnexpectedResponseShape(
                "Anthropic provider returned an unexpected response payload")
        return text

    def extract_reasoning(self, body: dict) -> str:
        return "\n".join(
            block["thinking"] for block in _blocks(body)
            if block.get("type") == "thinking" and isinstance(block.get("thinking"), str)
        )

    def classify_event(self, event: dict) -> Optional[StreamDelta]:
        kind = event.get("type")
        if kind == "error":
            err = event.get("error")
            msg = err.get("message") if isinstance(err, dict) else err
            raise ProtocolError(f"stream error: {msg}")
        if kind != "content_block_delta":
            return None

        delta = event.get("delta")
        if not isinstance(delta, dict):
            return None
        if delta.get("type") == "text_delta" and isinstance(delta.get("text"), str):
            return content(delta["text"])
        if delta.get("type") == "thinking_delta" and isinstance(delta.get("thinking"), str):
            return reasoning(delta["thinking"])
        return None


def _blocks(body: dict) -> list:
    blocks = body.get("content")
    if not isinstance(blocks, list):
        return []
    return [b for b in blocks if isinstance(b, dict)]
