"""
Embedding Client

This module implements the embedding requester: a thin client over the
OpenAI embeddings API or an Azure OpenAI embedding deployment. It is
responsible for:

- Batching text inputs
- Network and transport error isolation
- Strict response validation

No retry and no caching happen here; callers see every failure as an
``EmbeddingError``.
"""

from __future__ import annotations

from typing import List, Sequence, Optional, Dict
import logging
import httpx

from ..config import settings
from ..core.errors import EmbeddingError

logger = logging.getLogger("vss.embedder")


class Embedder:
    """
    Asynchronous embedding generator for batches of text.

    The class is stateless and safe to reuse across requests.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        api_key : Optional[str]
            Override for the API key. Defaults to settings.openai_api_key.

        model : Optional[str]
            Override for the embedding model. Defaults to
            settings.embedding_model.

        base_url : Optional[str]
            Full URL of the embeddings endpoint. Defaults to the Azure
            OpenAI deployment URL when settings.azure_openai_endpoint is
            set, otherwise settings.embedding_base_url.

        timeout : Optional[float]
            HTTP timeout for each request.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom httpx transport, mainly for tests.
        """
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.embedding_model
        self.use_azure = base_url is None and settings.azure_openai_endpoint is not None
        self.base_url = base_url or self._default_url()
        self.timeout = timeout if timeout is not None else settings.embedding_timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(
        self,
        texts: Sequence[str],
        batch_size: int = 20,
    ) -> List[List[float]]:
        """
        Generate embeddings for a sequence of input texts.

        Parameters
        ----------
        texts : Sequence[str]
            List or sequence of input text strings.

        batch_size : int
            Maximum batch size per request.

        Returns
        -------
        List[List[float]]
            One embedding per input text, in input order.

        Raises
        ------
        EmbeddingError
            If any batch fails or the response is malformed.
        """
        if not texts:
            return []

        all_embeddings: List[List[float]] = []

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            for start in range(0, len(texts), batch_size):
                batch = list(texts[start : start + batch_size])
                embeddings = await self._request(client, batch)

                if len(embeddings) != len(batch):
                    raise EmbeddingError(
                        f"Embedding response has {len(embeddings)} vectors "
                        f"for {len(batch)} inputs."
                    )
                all_embeddings.extend(embeddings)

        return all_embeddings

    async def embed_one(self, text: str) -> List[float]:
        """
        Embed a single text and return the first vector of the response.

        Raises
        ------
        EmbeddingError
            If the call fails or the response carries no data.
        """
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            embeddings = await self._request(client, [text])

        if not embeddings:
            raise EmbeddingError("Embedding response contained no data.")
        return embeddings[0]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _default_url(self) -> str:
        if not self.use_azure:
            return settings.embedding_base_url

        endpoint = str(settings.azure_openai_endpoint).rstrip("/")
        return (
            f"{endpoint}/openai/deployments/{settings.azure_openai_deployment}"
            f"/embeddings?api-version={settings.azure_openai_api_version}"
        )

    def _headers(self) -> Dict[str, str]:
        if self.use_azure:
            return {"api-key": self.api_key}
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _request(
        self,
        client: httpx.AsyncClient,
        batch: List[str],
    ) -> List[List[float]]:
        payload = {
            "model": self.model,
            "input": batch,
        }

        try:
            response = await client.post(
                self.base_url,
                json=payload,
                headers=self._headers(),
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.error(
                "Embedding request failed (%s): batch size=%d, error=%s",
                type(exc).__name__,
                len(batch),
                str(exc),
            )
            raise EmbeddingError(
                f"Embedding generation failed: {type(exc).__name__}"
            ) from exc
        except ValueError as exc:
            raise EmbeddingError("Embedding response is not valid JSON.") from exc

        return self._extract_embeddings(data)

    @staticmethod
    def _extract_embeddings(data: dict) -> List[List[float]]:
        """
        Parse and validate embedding output format.

        The API returns:
            { "data": [ {"index": 0, "embedding": [...]}, ... ] }

        Records are re-ordered by ``index`` when present.

        Raises
        ------
        EmbeddingError
            If the API returns unexpected structure.
        """
        if not isinstance(data, dict) or "data" not in data:
            raise EmbeddingError("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list):
            raise EmbeddingError("'data' field must be a list.")

        if all(isinstance(r, dict) and "index" in r for r in records):
            records = sorted(records, key=lambda r: r["index"])

        embeddings: List[List[float]] = []

        for index, record in enumerate(records):
            if not isinstance(record, dict) or "embedding" not in record:
                raise EmbeddingError(
                    f"Malformed embedding record at index {index}: {record!r}"
                )

            emb = record["embedding"]
            if not isinstance(emb, list) or not all(
                isinstance(x, (float, int)) for x in emb
            ):
                raise EmbeddingError(
                    f"Invalid embedding vector at index {index}: must be float list."
                )

            embeddings.append([float(x) for x in emb])

        return embeddings
