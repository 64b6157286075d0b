"""Abstract base for all analysis providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict

import httpx

from auditagent.core.agent import AgentLoop
from auditagent.core.errors import ProtocolError, EmptyStream, ProviderExhausted
from auditagent.core.models import (
    ProviderDescriptor, VulnerabilitySkill, MiniPrompt, SkillIterationResult,
)
from auditagent.core.sandbox import Sandbox
from auditagent.providers.sse import SSEDecoder, StreamDelta

DEFAULT_TIMEOUT = 120.0

Messages = List[Dict[str, str]]


@dataclass(frozen=True)
class PayloadVariant:
    """One request shape in a provider's fallback chain."""
    name: str
    fields: dict = field(default_factory=dict)   # merged into the base payload


class BaseProvider(ABC):
    """Every provider must implement describe() and exchange()."""

    name: str = "unnamed"
    logger = None

    # ── public API ──────────────────────────────────────────────

    @abstractmethod
    def describe(self) -> ProviderDescriptor:
        ...

    @abstractmethod
    def exchange(self, messages: Messages) -> str:
        """Send the conversation, return the model's reply text."""
        ...

    def analyze(
        self,
        skill: VulnerabilitySkill,
        prompt: MiniPrompt,
        source_references: List[str],
        sandbox: Sandbox,
    ) -> SkillIterationResult:
        """Run the agent loop for one skill with this provider as the model."""
        return AgentLoop(self, sandbox, logger=self.logger).run(skill, prompt, source_references)


class HttpProvider(BaseProvider):
    """
    Shared HTTP machinery: payload-variant fallback and SSE streaming.

    Subclasses describe their wire protocol through payload_variants(),
    build_payload(), headers(), extract_text() and classify_event().
    """

    def __init__(
        self,
        endpoint: str,
        model: str,
        api_key: Optional[str] = None,
        ai_logs: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
        logger=None,
    ):
        self.endpoint = endpoint
        self.model = model
        self.api_key = api_key
        self.ai_logs = ai_logs
        self.timeout = timeout
        self.logger = logger
        self.client = client or httpx.Client(follow_redirects=True, timeout=timeout)

    # ── wire protocol hooks ─────────────────────────────────────

    @abstractmethod
    def payload_variants(self) -> List[PayloadVariant]:
        """Ordered from most capable to plainest."""
        ...

    @abstractmethod
    def build_payload(self, messages: Messages, variant: PayloadVariant) -> dict:
        ...

    @abstractmethod
    def headers(self) -> Dict[str, str]:
        ...

    @abstractmethod
    def extract_text(self, body: dict) -> str:
        """Reply text from a complete JSON body, or UnexpectedResponseShape."""
        ...

    @abstractmethod
    def classify_event(self, event: dict) -> Optional[StreamDelta]:
        """Content delta, reasoning delta or None; ProtocolError for error events."""
        ...

    def extract_reasoning(self, body: dict) -> str:
        return ""

    # ── exchange ────────────────────────────────────────────────

    def exchange(self, messages: Messages) -> str:
        attempts = []
        for variant in self.payload_variants():
            payload = self.build_payload(messages, variant)
            try:
                return self._attempt(payload, variant)
            except (httpx.HTTPError, httpx.StreamError, ProtocolError) as e:
                reason = str(e) or type(e).__name__
                attempts.append((variant.name, reason))
                self._warn(f"{self.name}: payload variant '{variant.name}' failed: {reason}")
        raise ProviderExhausted(self.name, attempts)

    def _attempt(self, payload: dict, variant: PayloadVariant) -> str:
        if self.ai_logs:
            try:
                return self._stream(payload)
            except (httpx.HTTPError, httpx.StreamError, ProtocolError) as e:
                self._warn(f"{self.name}: streaming failed for variant '{variant.name}' "
                           f"({str(e) or type(e).__name__}), retrying without streaming")
        return self._post(payload)

    def _post(self, payload: dict) -> str:
        resp = self.client.post(self.endpoint, json=payload, headers=self.headers(),
                                timeout=self.timeout)
        _raise_for_status(resp)
        try:
            body = resp.json()
        except ValueError as e:
            raise ProtocolError(f"response body is not valid JSON: {e}") from e
        if not isinstance(body, dict):
            raise ProtocolError("response body is not a JSON object")

        thinking = self.extract_reasoning(body)
        if thinking and self.logger:
            self.logger.reasoning(thinking + "\n")
        return self.extract_text(body)

    def _stream(self, payload: dict) -> str:
        parts = []
        decoder = SSEDecoder()
        with self.client.stream("POST", self.endpoint, json={**payload, "stream": True},
                                headers=self.headers(), timeout=self.timeout) as resp:
            if resp.status_code >= 400:
                resp.read()
                _raise_for_status(resp)
            for chunk in resp.iter_bytes():
                for event in decoder.feed(chunk):
                    self._consume(event, parts)
                if decoder.done:
                    break
            for event in decoder.flush():
                self._consume(event, parts)

        if self.logger:
            self.logger.end_reasoning()
        if not parts:
            raise EmptyStream("stream ended without any content deltas")
        return "".join(parts)

    def _consume(self, event: dict, parts: list):
        delta = self.classify_event(event)
        if delta is None or not delta.text:
            return
        if delta.kind == "content":
            parts.append(delta.text)
        elif delta.kind == "reasoning" and self.logger:
            self.logger.reasoning(delta.text)

    # ── shared helpers ──────────────────────────────────────────

    def _warn(self, msg: str):
        if self.logger:
            self.logger.warn(msg)

    @staticmethod
    def split_system(messages: Messages) -> tuple[str, Messages]:
        """Separate system turns from the user/assistant history."""
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        rest = [{"role": m["role"], "content": m["content"]}
                for m in messages if m["role"] != "system"]
        return system, rest


def _raise_for_status(resp: httpx.Response):
    if resp.status_code < 400:
        return
    detail = resp.text[:300].strip()
    raise ProtocolError(f"HTTP {resp.status_code} from {resp.request.url}"
                        + (f": {detail}" if detail else ""))
