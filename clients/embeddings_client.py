"""Client for the downstream embeddings service."""

import httpx

from docsnap.errors import DeliveryError
from docsnap.types import ExtractedDocument

DEFAULT_TIMEOUT = 30.0


class EmbeddingsClient:
    """Delivers extracted documents to `{base_url}/embeddings`.

    Satisfies the DocumentSink protocol, so it can be passed straight to
    WebExtractor(sink=...).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/embeddings"

    async def deliver(self, document: ExtractedDocument) -> None:
        """POST a document as JSON.

        Raises:
            DeliveryError: On connection failure, timeout or a 4xx/5xx response
        """
        payload = document.model_dump(mode="json", exclude_none=True)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.endpoint, json=payload)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeliveryError(
                f"Embeddings service returned {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.TimeoutException as e:
            raise DeliveryError(f"Embeddings service timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"Failed to reach embeddings service: {e}") from e


def get_embeddings_client() -> EmbeddingsClient | None:
    """Client for the configured EMBEDDINGS_SERVICE_URL, or None when unset."""
    from config.utils import get_delivery_url

    url = get_delivery_url()
    return EmbeddingsClient(url) if url else None
