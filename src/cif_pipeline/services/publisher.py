import logging
from typing import Protocol

from cif_pipeline.models.events import InfrastructurePathwayConfirmedEvent

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    """Outbound transport for pathway events.

    Returns True when the transport accepted the event. Implementations may
    return False or raise; the pipeline treats both as a failed publish.
    """

    async def publish(self, event: InfrastructurePathwayConfirmedEvent) -> bool: ...


class LoggingEventPublisher:
    """Publisher that only logs events. Used when no transport is configured."""

    async def publish(self, event: InfrastructurePathwayConfirmedEvent) -> bool:
        logger.debug(
            f"Published event: {event.train_service_number} on {event.travel_date} "
            f"from {event.origin} to {event.destination}"
        )
        return True
