"""Concurrent OpenAI calls from synchronous code.

``run_batch`` and ``embed_batch`` fan a list of requests out over one
``AsyncOpenAI`` client, bounded by a semaphore, and return results
index-aligned with the input. A failing request does not raise: its slot
holds the exception instead, so callers decide per item whether to mask or
propagate.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence, TypeVar

from openai import AsyncOpenAI

from constants import EMBEDDING_MODEL, LLM_MODEL, LLM_TEMPERATURE

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class OpenAIRequest:
    system_prompt: str
    user_prompt: str
    model: str = LLM_MODEL
    temperature: float = LLM_TEMPERATURE


def run_batch(
    requests: Sequence[OpenAIRequest],
    *,
    max_concurrency: int,
    timeout: float | None = None,
) -> list[str | Exception]:
    """Run text-generation requests concurrently; results match input order.

    Raises ``TimeoutError`` only when the whole batch exceeds ``timeout``.
    """
    if not requests:
        return []

    async def _generate(client: AsyncOpenAI, request: OpenAIRequest) -> str:
        response = await client.responses.create(
            model=request.model,
            instructions=request.system_prompt,
            input=request.user_prompt,
            temperature=request.temperature,
        )
        output_text = getattr(response, "output_text", None)
        if isinstance(output_text, str):
            return output_text
        raise ValueError("Unexpected OpenAI response format.")

    return _run(_generate, requests, max_concurrency=max_concurrency, timeout=timeout)


def embed_batch(
    texts: Sequence[str],
    *,
    model: str = EMBEDDING_MODEL,
    max_concurrency: int,
    timeout: float | None = None,
) -> list[list[float] | Exception]:
    """Embed each text with one request per item; results match input order."""
    if not texts:
        return []

    async def _embed(client: AsyncOpenAI, text: str) -> list[float]:
        response = await client.embeddings.create(model=model, input=text)
        data = getattr(response, "data", None) or []
        if not data:
            raise ValueError("Embedding response contained no vectors.")
        return [float(x) for x in data[0].embedding]

    return _run(_embed, texts, max_concurrency=max_concurrency, timeout=timeout)


def complete(request: OpenAIRequest) -> str:
    """Run a single text-generation request, raising on failure."""
    result = run_batch([request], max_concurrency=1)[0]
    if isinstance(result, Exception):
        raise result
    return result


def _get_openai_client() -> AsyncOpenAI:
    return AsyncOpenAI()


def _run(
    call: Callable[[AsyncOpenAI, T], Awaitable[R]],
    items: Sequence[T],
    *,
    max_concurrency: int,
    timeout: float | None,
) -> list[R | Exception]:
    try:
        return asyncio.run(_gather_bounded(call, items, max_concurrency=max_concurrency, timeout=timeout))
    except asyncio.TimeoutError as exc:
        raise TimeoutError(f"Batch of {len(items)} requests exceeded {timeout}s") from exc


async def _gather_bounded(
    call: Callable[[AsyncOpenAI, T], Awaitable[R]],
    items: Sequence[T],
    *,
    max_concurrency: int,
    timeout: float | None,
) -> list[R | Exception]:
    client = _get_openai_client()
    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    results: list[R | Exception] = [RuntimeError("request not run")] * len(items)

    async def _one(idx: int, item: T) -> None:
        async with semaphore:
            try:
                results[idx] = await call(client, item)
            except Exception as exc:
                logger.debug("OpenAI request %d failed: %s", idx, exc)
                results[idx] = exc

    try:
        gathered = asyncio.gather(*(_one(idx, item) for idx, item in enumerate(items)))
        if timeout is None:
            await gathered
        else:
            await asyncio.wait_for(gathered, timeout=max(0.0, timeout))
    finally:
        await client.close()
    return results
