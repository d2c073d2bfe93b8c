import logging

import httpx

from cif_pipeline.data.config import PipelineConfig
from cif_pipeline.data.event_codec import CONTENT_TYPE, encode_event
from cif_pipeline.models.events import InfrastructurePathwayConfirmedEvent

logger = logging.getLogger(__name__)


class HttpEventPublisher:
    """Async HTTP publisher posting protobuf-encoded events to the message store.

    Usage:
        async with HttpEventPublisher(config) as publisher:
            ok = await publisher.publish(event)
    """

    def __init__(self, config: PipelineConfig):
        """Initialize the publisher.

        Args:
            config: Configuration with publish URL, API key and timeout.
        """
        if not config.publish_url:
            raise ValueError("publish_url must be configured for HTTP publishing")
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HttpEventPublisher":
        """Enter async context - create HTTP client."""
        headers = {"Content-Type": CONTENT_TYPE}
        if self._config.publish_api_key:
            headers["apikey"] = self._config.publish_api_key
        self._client = httpx.AsyncClient(
            headers=headers, timeout=self._config.publish_timeout_seconds
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def publish(self, event: InfrastructurePathwayConfirmedEvent) -> bool:
        """Post one event.

        Returns:
            True if the transport accepted the event, False otherwise.

        Raises:
            RuntimeError: If client not initialized.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        try:
            response = await self._client.post(
                self._config.publish_url,
                content=encode_event(event),
                headers={"X-Correlation-Id": event.metadata.correlation_id},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to publish {event.train_service_number}: {e}")
            return False
        return True
