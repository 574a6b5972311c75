"""Map synopses to embedding vectors."""

import dataclasses
import logging

from constants import EMBEDDING_MODEL, SYNOPSIS_MAX_CONCURRENCY
from repo_wiki.errors import EmbeddingError
from repo_wiki.models import FileRecord
from repo_wiki.utils.async_openai import embed_batch

logger = logging.getLogger(__name__)


def embed(text: str, *, model: str = EMBEDDING_MODEL) -> list[float]:
    """Embed one string, raising EmbeddingError on failure."""
    result = embed_batch([text], model=model, max_concurrency=1)[0]
    if isinstance(result, Exception):
        raise EmbeddingError(f"Embedding failed: {result}") from result
    return result


def embed_all(
    files: list[FileRecord],
    *,
    model: str = EMBEDDING_MODEL,
    max_concurrency: int = SYNOPSIS_MAX_CONCURRENCY,
    timeout: float | None = None,
) -> list[FileRecord]:
    """Return ``files`` with ``embedding`` filled, index-aligned with the input.

    Every file must carry a non-empty synopsis. Any failed request fails the
    whole stage: a file without a vector cannot be placed in a cluster.
    """
    texts: list[str] = []
    for f in files:
        if not f.synopsis:
            raise ValueError(f"File has no synopsis to embed: {f.path}")
        texts.append(f.synopsis)

    results = embed_batch(texts, model=model, max_concurrency=max_concurrency, timeout=timeout)

    embedded: list[FileRecord] = []
    dimension: int | None = None
    for f, result in zip(files, results):
        if isinstance(result, Exception):
            raise EmbeddingError(f"Embedding failed path={f.path}: {result}") from result
        if dimension is None:
            dimension = len(result)
        elif len(result) != dimension:
            raise EmbeddingError(
                f"Embedding dimension mismatch path={f.path}: {len(result)} != {dimension}"
            )
        embedded.append(dataclasses.replace(f, embedding=tuple(result)))

    logger.info("Embeddings done count=%d dimension=%s", len(embedded), dimension)
    return embedded
