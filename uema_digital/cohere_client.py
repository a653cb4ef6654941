"""Cohere API client wrapper with error handling."""
import httpx
from typing import List, Dict, Optional, Any
import structlog

from uema_digital import config

logger = structlog.get_logger()


class ProviderNotConfiguredError(RuntimeError):
    """Raised when a remote call is attempted without an API key."""


class MalformedResponseError(ValueError):
    """Raised when a Cohere response does not have the expected shape."""


class CohereClient:
    """Async client for the Cohere embed, rerank and chat endpoints.

    Every call is attempted exactly once. Errors are logged and re-raised;
    callers decide how to degrade.
    """

    def __init__(
        self,
        api_key: str = None,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Cohere client.

        Args:
            api_key: Cohere API key (defaults to config.COHERE_API_KEY at call time)
            base_url: Cohere API base URL (defaults to config.COHERE_BASE_URL)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used to fake the API in tests
        """
        self._api_key = api_key
        self.base_url = (base_url or config.COHERE_BASE_URL).rstrip("/")
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self.transport = transport

    @property
    def api_key(self) -> str:
        return config.COHERE_API_KEY if self._api_key is None else self._api_key

    def is_configured(self) -> bool:
        """Check whether a usable API key is present."""
        return config.provider_configured(self.api_key)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.is_configured():
            raise ProviderNotConfiguredError("COHERE_API_KEY is not set")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.base_url}/{path}",
                json=payload,
                headers=headers,
            )
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected JSON object from /{path}")
        return data

    async def embed(
        self,
        texts: List[str],
        input_type: str = "search_document",
        model: str = None,
    ) -> List[List[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: Texts to embed
            input_type: 'search_query' or 'search_document'
            model: Model to use (defaults to config.EMBEDDING_MODEL)

        Returns:
            One vector per input text

        Raises:
            httpx.HTTPError: On transport or API errors
            MalformedResponseError: If the response lacks embeddings
        """
        model = model or config.EMBEDDING_MODEL
        payload = {
            "texts": texts,
            "model": model,
            "input_type": input_type,
            "truncate": "END",
        }

        try:
            logger.debug(
                "cohere_embed_request",
                model=model,
                text_count=len(texts),
                input_type=input_type,
            )
            data = await self._post("embed", payload)
        except httpx.HTTPError as e:
            logger.error(
                "cohere_embed_error",
                error=str(e),
                status_code=getattr(getattr(e, "response", None), "status_code", None),
            )
            raise

        embeddings = data.get("embeddings")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise MalformedResponseError("Embed response missing 'embeddings'")

        vectors = [[float(x) for x in vector] for vector in embeddings]
        logger.debug(
            "cohere_embed_response",
            model=model,
            dimension=len(vectors[0]) if vectors else 0,
        )
        return vectors

    async def rerank(
        self,
        query: str,
        documents: List[str],
        top_n: int,
        model: str = None,
    ) -> List[Dict[str, Any]]:
        """Rank documents against a query with a cross-encoder.

        Returns:
            List of dicts with 'index' and 'relevance_score', in the
            order returned by the API

        Raises:
            httpx.HTTPError: On transport or API errors
            MalformedResponseError: If the response lacks results
        """
        model = model or config.RERANK_MODEL
        payload = {
            "model": model,
            "query": query,
            "documents": documents,
            "top_n": top_n,
        }

        try:
            logger.info(
                "cohere_rerank_request",
                model=model,
                document_count=len(documents),
                top_n=top_n,
            )
            data = await self._post("rerank", payload)
        except httpx.HTTPError as e:
            logger.error(
                "cohere_rerank_error",
                error=str(e),
                status_code=getattr(getattr(e, "response", None), "status_code", None),
            )
            raise

        results = data.get("results")
        if not isinstance(results, list):
            raise MalformedResponseError("Rerank response missing 'results'")

        parsed = [
            {"index": int(item["index"]), "relevance_score": float(item["relevance_score"])}
            for item in results
        ]
        logger.info("cohere_rerank_response", model=model, result_count=len(parsed))
        return parsed

    async def chat(
        self,
        message: str,
        preamble: Optional[str] = None,
        chat_history: Optional[List[Dict[str, str]]] = None,
        temperature: Optional[float] = None,
        model: str = None,
    ) -> str:
        """Send a chat request and return the generated text.

        Args:
            message: The new user message
            preamble: System instructions prepended by the API
            chat_history: Prior turns as {'role': 'USER'|'CHATBOT', 'message': ...}
            temperature: Sampling temperature
            model: Model to use (defaults to config.CHAT_MODEL)

        Raises:
            httpx.HTTPError: On transport or API errors
            MalformedResponseError: If the response lacks text
        """
        model = model or config.CHAT_MODEL
        payload: Dict[str, Any] = {
            "model": model,
            "message": message,
            "chat_history": chat_history or [],
        }
        if preamble is not None:
            payload["preamble"] = preamble
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            logger.info(
                "cohere_chat_request",
                model=model,
                history_length=len(payload["chat_history"]),
                preamble_length=len(preamble or ""),
            )
            data = await self._post("chat", payload)
        except httpx.HTTPError as e:
            logger.error(
                "cohere_chat_error",
                error=str(e),
                status_code=getattr(getattr(e, "response", None), "status_code", None),
            )
            raise

        text = data.get("text")
        if not isinstance(text, str):
            raise MalformedResponseError("Chat response missing 'text'")

        logger.info("cohere_chat_response", model=model, response_length=len(text))
        return text


# Global client instance
cohere_client = CohereClient()
