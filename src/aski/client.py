# aski: HTTP transport for OpenAI Chat Completions and Anthropic Messages. Yields plain text deltas; provider request shapes stay in this module.

import json
import pathlib
import random
import time
from typing import Any, Dict, Iterator, List, Optional, Tuple

import requests

from . import config
from .context import Context
from .errors import ConfigError, TransportError
from .fs import timestamp_slug
from .models import AppConfig, Profile
from .streaming import CancelToken


def _split_system(messages: List[Dict[str, str]]) -> Tuple[str, List[Dict[str, str]]]:
    """Anthropic takes the system prompt as a top-level field and rejects empty turns."""
    system = "\n\n".join(m["content"] for m in messages if m["role"] == "system" and m["content"])
    rest = [m for m in messages if m["role"] != "system" and m["content"]]
    return system, rest


class CompletionClient:
    """
    Minimal client for the two supported providers.

    The provider is chosen per call from the profile's model name: models
    starting with "claude" go to Anthropic, everything else to OpenAI (or an
    OpenAI-compatible OPENAI_BASE_URL).
    """

    def __init__(self, ctx: Context, app_config: AppConfig, session: Optional[requests.Session] = None) -> None:
        self.ctx = ctx
        self.app_config = app_config
        self.session = session or requests.Session()
        self.openai_base_url = config.OPENAI_BASE_URL.rstrip("/")
        self.anthropic_base_url = config.ANTHROPIC_BASE_URL.rstrip("/")

    # ---------- Requests ----------

    def _headers(self, profile: Profile) -> Dict[str, str]:
        if profile.is_claude:
            key = self.app_config.anthropic_api_key or config.ANTHROPIC_API_KEY
            if not key:
                raise ConfigError("Anthropic model selected but no API key (ANTHROPIC_API_KEY or anthropic_api_key in config.yaml).")
            return {
                "x-api-key": key,
                "anthropic-version": config.ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            }
        key = self.app_config.openai_api_key or config.OPENAI_API_KEY
        if not key:
            raise ConfigError("OpenAI model selected but no API key (OPENAI_API_KEY or openai_api_key in config.yaml).")
        return {"Authorization": f"Bearer {key}", "Content-Type": "application/json"}

    def _url(self, profile: Profile) -> str:
        if profile.is_claude:
            return f"{self.anthropic_base_url}/messages"
        return f"{self.openai_base_url}/chat/completions"

    def build_payload(self, messages: List[Dict[str, str]], profile: Profile, stream: bool) -> Dict[str, Any]:
        """Translate the active path and profile parameters into the provider request body."""
        params = profile.custom_parameters
        model = profile.model
        if profile.is_claude:
            system, turns = _split_system(messages)
            payload: Dict[str, Any] = {
                "model": model,
                "messages": turns,
                "max_tokens": params.max_tokens or config.MAX_TOKENS,
                "stream": stream,
            }
            if system:
                payload["system"] = system
            if params.temperature is not None:
                payload["temperature"] = params.temperature
            if params.top_p is not None:
                payload["top_p"] = params.top_p
            if params.stop:
                payload["stop_sequences"] = params.stop
            return payload

        payload = {"model": model, "messages": messages, "stream": stream}
        payload.update(params.as_payload())
        if profile.response_format != "text":
            payload["response_format"] = {"type": profile.response_format}
        return payload

    def _post(self, url: str, headers: Dict[str, str], payload: Dict[str, Any], stream: bool) -> requests.Response:
        """
        POST with a bounded retry loop for transient failures (timeouts, HTTP 5xx).

        Only the initial request is retried; once a stream has started, errors
        surface to the caller. 4xx responses raise immediately.
        """
        self._dump(url, headers, payload)
        attempt = 0
        while True:
            attempt += 1
            try:
                r = self.session.post(url, headers=headers, json=payload, stream=stream, timeout=config.HTTP_TIMEOUT)
            except requests.exceptions.Timeout as e:
                if attempt <= config.HTTP_MAX_RETRIES:
                    self._backoff(attempt, "timeout")
                    continue
                raise TransportError(f"request timed out after {attempt} attempt(s): {e}") from e
            except requests.exceptions.RequestException as e:
                raise TransportError(f"request failed: {e}") from e

            if r.status_code == 200:
                return r
            if r.status_code >= 500 and attempt <= config.HTTP_MAX_RETRIES:
                r.close()
                self._backoff(attempt, f"HTTP {r.status_code}")
                continue
            body = r.text[:2000]
            r.close()
            raise TransportError(f"API error {r.status_code}: {body}", status=r.status_code)

    def _backoff(self, attempt: int, reason: str) -> None:
        base_delay = [1.0, 2.0, 4.0][min(attempt - 1, 2)]
        delay = base_delay * random.uniform(0.5, 1.5)
        self.ctx.log(f"attempt {attempt} got {reason}; retrying in {delay:.2f}s...")
        time.sleep(delay)

    def _dump(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> None:
        if not config.HTTP_DUMP_DIR:
            return
        redacted = dict(headers)
        if "Authorization" in redacted:
            redacted["Authorization"] = "Bearer {{OPENAI_API_KEY}}"
        if "x-api-key" in redacted:
            redacted["x-api-key"] = "{{ANTHROPIC_API_KEY}}"
        path = pathlib.Path(config.HTTP_DUMP_DIR) / f"call-{timestamp_slug()}-{int(time.time() * 1000) % 1000:03d}.http"
        dumpHttpFile(self.ctx, path, url, "POST", redacted, payload)

    # ---------- Public API ----------

    def stream(self, messages: List[Dict[str, str]], profile: Profile, token: Optional[CancelToken] = None) -> Iterator[str]:
        """
        Yield text deltas of one streamed reply.

        Ends normally on the provider's end-of-stream marker; raises
        TransportError on HTTP, protocol or provider-reported errors.
        """
        headers = self._headers(profile)
        payload = self.build_payload(messages, profile, stream=True)
        self.ctx.log(f"POST {self._url(profile)} model={payload['model']} messages={len(messages)}")
        r = self._post(self._url(profile), headers, payload, stream=True)
        if token is not None:
            # Unblocks iter_lines on a hung connection once the user interrupts.
            token.add_callback(r.close)
        try:
            events = iter_sse(r)
            if profile.is_claude:
                yield from _anthropic_deltas(events)
            else:
                yield from _openai_deltas(events)
        except requests.exceptions.RequestException as e:
            if token is not None and token.cancelled:
                return
            raise TransportError(f"stream interrupted: {e}") from e
        finally:
            r.close()

    def complete(self, messages: List[Dict[str, str]], profile: Profile) -> str:
        """Non-streaming request; returns the whole reply text."""
        headers = self._headers(profile)
        payload = self.build_payload(messages, profile, stream=False)
        self.ctx.log(f"POST {self._url(profile)} model={payload['model']} (rest)")
        r = self._post(self._url(profile), headers, payload, stream=False)
        try:
            data = r.json()
        except ValueError as e:
            raise TransportError(f"invalid JSON in response: {r.text[:500]}") from e
        if profile.is_claude:
            blocks = data.get("content") or []
            return "".join(b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text")
        choices = data.get("choices") or []
        if not choices:
            raise TransportError(f"response has no choices: {json.dumps(data)[:500]}")
        return (choices[0].get("message") or {}).get("content") or ""


def iter_sse(r: requests.Response) -> Iterator[Tuple[str, str]]:
    """
    Yield (event, data) pairs from a server-sent-events response body.

    SSE is UTF-8 by definition; lines are decoded here because requests falls
    back to ISO-8859-1 for a text/event-stream without a charset.
    """
    event = ""
    data_lines: List[str] = []
    for line in r.iter_lines():
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        if line == "":
            if data_lines:
                yield event, "\n".join(data_lines)
            event, data_lines = "", []
            continue
        if line.startswith(":"):
            continue
        if line.startswith("event:"):
            event = line[6:].strip()
        elif line.startswith("data:"):
            data_lines.append(line[5:].lstrip())
    if data_lines:
        yield event, "\n".join(data_lines)


def _parse(data: str) -> Dict[str, Any]:
    try:
        obj = json.loads(data)
    except ValueError as e:
        raise TransportError(f"malformed stream event: {data[:200]}") from e
    if not isinstance(obj, dict):
        raise TransportError(f"unexpected stream event: {data[:200]}")
    return obj


def _openai_deltas(events: Iterator[Tuple[str, str]]) -> Iterator[str]:
    finished = False
    for _, data in events:
        if data == "[DONE]":
            return
        obj = _parse(data)
        if "error" in obj:
            raise TransportError(f"provider error: {json.dumps(obj['error'])[:500]}")
        for choice in obj.get("choices") or []:
            text = (choice.get("delta") or {}).get("content")
            if text:
                yield text
            if choice.get("finish_reason"):
                finished = True
    # Some OpenAI-compatible servers close after finish_reason without sending [DONE].
    if not finished:
        raise TransportError("stream ended without [DONE]")


def _anthropic_deltas(events: Iterator[Tuple[str, str]]) -> Iterator[str]:
    for event, data in events:
        obj = _parse(data)
        kind = obj.get("type") or event
        if kind == "message_stop":
            return
        if kind == "error":
            raise TransportError(f"provider error: {json.dumps(obj.get('error'))[:500]}")
        if kind == "content_block_delta":
            text = (obj.get("delta") or {}).get("text")
            if text:
                yield text
    raise TransportError("stream ended without message_stop")


def dumpHttpFile(ctx: Context, file: pathlib.Path, url: str, method: str, headers: Dict[str, str], obj: Any) -> None:
    """
    Write a human-readable HTTP request dump to disk for debugging.

    Best-effort: serialization and I/O errors are reported, never raised.
    """
    try:
        json_str = json.dumps(obj, indent=2, ensure_ascii=False)
        file.parent.mkdir(parents=True, exist_ok=True)
        with open(file, "w", encoding="utf-8") as f:
            f.write(f"{method.upper()} {url}\n")
            for key, value in headers.items():
                f.write(f"{key}: {value}\n")
            f.write("\n")
            f.write(json_str)
        ctx.log(f"HTTP request dumped to {file}")
    except TypeError as e:
        ctx.error_message(f"The object could not be serialized to JSON. Details: {e}")
    except OSError as e:
        ctx.error_message(f"Could not write to file {file}. Details: {e}")
