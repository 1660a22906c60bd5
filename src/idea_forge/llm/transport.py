"""Transports for provider calls: the OpenAI SDK and plain HTTP with SSE streaming."""

from __future__ import annotations

import json
import threading
from typing import Any, Callable, Dict, Iterable, Iterator, Mapping, Protocol, Tuple

import openai
import requests
from openai import OpenAI

from .types import Dialect, ProviderCall, TransportError

REDACTED = "***REDACTED***"


class Transport(Protocol):
    def post(self, call: ProviderCall) -> Dict[str, Any]:
        ...

    def stream(self, call: ProviderCall) -> Iterator[Dict[str, Any]]:
        ...


def redact(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def _status_error(call: ProviderCall, res: requests.Response) -> TransportError:
    detail = ""
    try:
        data = res.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        error = data["error"]
        detail = str(error.get("message") or error) if isinstance(error, dict) else str(error)
    if not detail:
        detail = (res.text or res.reason or "")[:500]
    message = f"{call.provider} returned HTTP {res.status_code}: {detail}"
    return TransportError(redact(message, call.secrets), provider=call.provider, http_status=res.status_code)


def iter_sse_data(lines: Iterable[str]) -> Iterator[str]:
    """Yields the ``data:`` payloads of an SSE stream, one per event line.

    Stops at the OpenAI ``[DONE]`` sentinel.
    """
    for line in lines:
        if not line or line.startswith(":"):
            continue
        if not line.startswith("data:"):
            continue
        data = line[5:].strip()
        if data == "[DONE]":
            return
        if data:
            yield data


class RequestsTransport:
    def __init__(self, timeout_seconds: float = 60) -> None:
        self.timeout_seconds = timeout_seconds

    def post(self, call: ProviderCall) -> Dict[str, Any]:
        try:
            res = requests.post(
                call.url,
                headers=dict(call.headers),
                json=call.payload,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise TransportError(
                redact(f"{call.provider} request failed: {exc}", call.secrets),
                provider=call.provider,
            ) from exc

        try:
            if not 200 <= res.status_code < 300:
                raise _status_error(call, res)
            try:
                data = res.json()
            except ValueError as exc:
                raise TransportError(
                    f"{call.provider} returned a non-JSON body",
                    provider=call.provider,
                    http_status=res.status_code,
                ) from exc
        finally:
            res.close()

        if not isinstance(data, dict):
            raise TransportError(f"{call.provider} returned a malformed envelope", provider=call.provider)
        return data

    def stream(self, call: ProviderCall) -> Iterator[Dict[str, Any]]:
        """Decoded SSE events for ``call``; closing the generator closes the response."""
        try:
            res = requests.post(
                call.url,
                headers={**call.headers, "Accept": "text/event-stream"},
                json=call.with_stream().payload,
                timeout=self.timeout_seconds,
                stream=True,
            )
        except requests.RequestException as exc:
            raise TransportError(
                redact(f"{call.provider} stream failed: {exc}", call.secrets),
                provider=call.provider,
            ) from exc

        try:
            if not 200 <= res.status_code < 300:
                raise _status_error(call, res)
            # SSE payloads are UTF-8 regardless of the declared charset.
            lines = (
                raw.decode("utf-8") if isinstance(raw, bytes) else raw
                for raw in res.iter_lines()
            )
            for data in iter_sse_data(lines):
                try:
                    event = json.loads(data)
                except json.JSONDecodeError as exc:
                    raise TransportError(
                        f"{call.provider} sent a malformed stream event",
                        provider=call.provider,
                    ) from exc
                if isinstance(event, dict):
                    yield event
        except requests.RequestException as exc:
            raise TransportError(
                redact(f"{call.provider} stream failed: {exc}", call.secrets),
                provider=call.provider,
            ) from exc
        finally:
            res.close()


def _sdk_error(call: ProviderCall, exc: openai.APIError) -> TransportError:
    if isinstance(exc, openai.APIStatusError):
        message = f"{call.provider} returned HTTP {exc.status_code}: {exc.message}"
        status = exc.status_code
    else:
        message = f"{call.provider} request failed: {exc}"
        status = None
    return TransportError(redact(message, call.secrets), provider=call.provider, http_status=status)


class OpenAIClientTransport:
    """OpenAI-compatible calls through the ``openai`` SDK.

    One client is kept per (base URL, key). The SDK's own retries are off;
    retrying is the router's job.
    """

    def __init__(self, timeout_seconds: float = 60, client_factory: Callable[..., OpenAI] = OpenAI) -> None:
        self.timeout_seconds = timeout_seconds
        self.client_factory = client_factory
        self._clients: Dict[Tuple[str, str], OpenAI] = {}
        self._lock = threading.Lock()

    def _client(self, call: ProviderCall) -> OpenAI:
        key = (call.url, call.api_key or "")
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = self.client_factory(
                    base_url=call.url,
                    api_key=call.api_key,
                    default_headers=dict(call.headers),
                    timeout=self.timeout_seconds,
                    max_retries=0,
                )
                self._clients[key] = client
        return client

    def post(self, call: ProviderCall) -> Dict[str, Any]:
        try:
            completion = self._client(call).chat.completions.create(**call.payload)
        except openai.APIError as exc:
            raise _sdk_error(call, exc) from exc
        return completion.model_dump()

    def stream(self, call: ProviderCall) -> Iterator[Dict[str, Any]]:
        """Chunk dicts for ``call``; closing the generator closes the SDK stream."""
        try:
            chunks = self._client(call).chat.completions.create(**call.with_stream().payload)
        except openai.APIError as exc:
            raise _sdk_error(call, exc) from exc

        try:
            for chunk in chunks:
                yield chunk.model_dump()
        except openai.APIError as exc:
            raise _sdk_error(call, exc) from exc
        finally:
            chunks.close()


class DialectTransport:
    """Sends each call through the transport registered for its dialect."""

    def __init__(self, transports: Mapping[Dialect, Transport]) -> None:
        self.transports = dict(transports)

    def _for(self, call: ProviderCall) -> Transport:
        return self.transports[call.dialect]

    def post(self, call: ProviderCall) -> Dict[str, Any]:
        return self._for(call).post(call)

    def stream(self, call: ProviderCall) -> Iterator[Dict[str, Any]]:
        return self._for(call).stream(call)


def default_transport(timeout_seconds: float = 60) -> DialectTransport:
    return DialectTransport(
        {
            Dialect.OPENAI_COMPATIBLE: OpenAIClientTransport(timeout_seconds=timeout_seconds),
            Dialect.ANTHROPIC_NATIVE: RequestsTransport(timeout_seconds=timeout_seconds),
        }
    )
