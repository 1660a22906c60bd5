"""Model-based provider routing with retries and streaming."""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterator, Optional

from .providers import adapter_for, build_call
from .registry import ProviderRegistry, get_default_registry
from .retry import arun_with_retry, run_with_retry
from .transport import Transport, default_transport, redact
from .types import GenerationError, GenerationRequest, ProviderCall, TransportError

_EXHAUSTED = object()


def _scrub(exc: GenerationError, call: ProviderCall) -> None:
    """Tag ``exc`` with the call's provider and strip credentials from its message."""
    if exc.provider is None:
        exc.provider = call.provider
    exc.args = (redact(str(exc), call.secrets),) + exc.args[1:]


class LLMRouter:
    def __init__(
        self,
        config: Dict[str, Any] | None = None,
        registry: ProviderRegistry | None = None,
        transport: Transport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        async_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config or {}
        llm_cfg = self.config.get("llm", {})
        self.registry = registry or get_default_registry()
        self.transport = transport or default_transport(
            timeout_seconds=float(llm_cfg.get("timeout_seconds", 60))
        )
        self.sleep = sleep
        self.async_sleep = async_sleep
        self.logger = logging.getLogger(__name__)

    def _retry_settings(self, max_attempts: Optional[int]) -> tuple[int, float]:
        retry_cfg = self.config.get("retry", {})
        attempts = max_attempts if max_attempts is not None else int(retry_cfg.get("max_attempts", 3))
        return attempts, float(retry_cfg.get("backoff_seconds", 1.0))

    def prepare(self, request: GenerationRequest) -> ProviderCall:
        """Resolve the provider and build its call; raises before any network I/O."""
        profile = self.registry.resolve_authenticated(request.model)
        return build_call(request, profile)

    def invoke(self, call: ProviderCall) -> str:
        start = time.perf_counter()
        try:
            envelope = self.transport.post(call)
            text = adapter_for(call.dialect).extract_text(envelope)
        except GenerationError as exc:
            _scrub(exc, call)
            raise
        except Exception as exc:
            raise TransportError(redact(str(exc), call.secrets), provider=call.provider) from exc

        latency_ms = int((time.perf_counter() - start) * 1000)
        self.logger.info(
            "Generated %d chars with %s:%s in %dms", len(text), call.provider, call.model, latency_ms
        )
        return text

    def invoke_stream(self, call: ProviderCall) -> Iterator[str]:
        adapter = adapter_for(call.dialect)
        events = self.transport.stream(call)
        try:
            for event in events:
                fragment = adapter.fragment(event)
                if fragment:
                    yield fragment
                if adapter.is_terminal(event):
                    break
        except GenerationError as exc:
            _scrub(exc, call)
            raise
        except Exception as exc:
            raise TransportError(redact(str(exc), call.secrets), provider=call.provider) from exc
        finally:
            close = getattr(events, "close", None)
            if close is not None:
                close()

    def generate(self, request: GenerationRequest) -> str:
        return self.invoke(self.prepare(request))

    def generate_stream(self, request: GenerationRequest) -> Iterator[str]:
        """Fragments of one completion; never retried.

        Unsupported models and missing credentials raise here, before the
        first fragment is requested.
        """
        return self.invoke_stream(self.prepare(request))

    def generate_with_retry(self, request: GenerationRequest, max_attempts: Optional[int] = None) -> str:
        attempts, backoff_seconds = self._retry_settings(max_attempts)
        return run_with_retry(
            lambda: self.generate(request),
            max_attempts=attempts,
            backoff_seconds=backoff_seconds,
            sleep=self.sleep,
        )

    async def agenerate(self, request: GenerationRequest) -> str:
        call = self.prepare(request)
        return await asyncio.to_thread(self.invoke, call)

    async def agenerate_stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        fragments = self.generate_stream(request)
        # One worker thread per stream keeps fragments in transport order.
        executor = ThreadPoolExecutor(max_workers=1)
        step: Optional[Future] = None
        try:
            while True:
                step = executor.submit(next, fragments, _EXHAUSTED)
                fragment = await asyncio.wrap_future(step)
                if fragment is _EXHAUSTED:
                    return
                yield fragment
        finally:
            # A cancelled step may still be running next(); close once it returns.
            if step is None:
                fragments.close()
            else:
                step.add_done_callback(lambda _step: fragments.close())
            executor.shutdown(wait=False)

    async def agenerate_with_retry(
        self, request: GenerationRequest, max_attempts: Optional[int] = None
    ) -> str:
        attempts, backoff_seconds = self._retry_settings(max_attempts)
        return await arun_with_retry(
            lambda: self.agenerate(request),
            max_attempts=attempts,
            backoff_seconds=backoff_seconds,
            sleep=self.async_sleep,
        )
