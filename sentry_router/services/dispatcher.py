"""
Batch dispatch of raw log records to the delivery client.

Records are handled strictly one at a time, in input order, each inside
its own isolated scope so nothing set for one record is visible to the
next.
"""

import logging
from typing import Any, Callable, Iterable, Optional, Union

from ..clients.sentry_client import DeliveryClient, apply_scope, event_hint
from ..config import RouterConfig
from ..models import EnrichmentScope, RawLogRecord
from .context import ContextProvider
from .normalizer import EventNormalizer

logger = logging.getLogger(__name__)

ClientResolver = Callable[[], Optional[DeliveryClient]]


class LogDispatcher:
    """Normalise and ship batches of log records.

    Usage::

        dispatcher = LogDispatcher(RouterConfig(), component.get_client)
        dispatcher.dispatch_batch(records)
    """

    def __init__(
        self,
        config: Optional[RouterConfig] = None,
        client: Union[DeliveryClient, ClientResolver, None] = None,
        provider: Optional[ContextProvider] = None,
        *,
        normalizer: Optional[EventNormalizer] = None,
    ) -> None:
        self.config = config or RouterConfig()
        self._client = client
        self.normalizer = normalizer or EventNormalizer(self.config, provider)
        self.logger = logger

    def dispatch_batch(self, records: Iterable[Any]) -> int:
        """
        Ship every record in *records*.

        Args:
            records: ``RawLogRecord`` objects, or ``(message, level,
                category, timestamp)`` tuples.

        Returns:
            Number of records handed to the delivery client; 0 when the
            batch was empty or no client is available.

        Raises:
            CallbackError: If an enrichment callback fails.  The scope of
                the failing record is torn down before the error escapes.
        """
        records = [_coerce(r) for r in records]
        if not records:
            return 0

        client = self._resolve_client()
        if client is None:
            self.logger.debug(
                "Skipping %d log record(s): '%s' is not available",
                len(records),
                self.config.component,
                extra={"component": self.config.component, "batch_size": len(records)},
            )
            return 0

        for record in records:
            with client.isolated_scope() as writer:
                result = self.normalizer.normalize(record, EnrichmentScope())
                apply_scope(writer, result.scope)
                if result.is_exception:
                    client.capture_exception(result.payload.error)
                else:
                    client.capture_event(
                        result.event.to_sentry(), hint=event_hint(result.hint_exception)
                    )

        return len(records)

    def _resolve_client(self) -> Optional[DeliveryClient]:
        client = self._client
        if client is None:
            from ..component import resolve_client

            client = resolve_client(self.config.component)
        elif not hasattr(client, "capture_event") and callable(client):
            client = client()

        if client is None:
            return None
        if not client.is_active():
            self.logger.debug("'%s' not initialized", self.config.component)
            return None
        return client


def _coerce(record: Any) -> RawLogRecord:
    if isinstance(record, RawLogRecord):
        return record
    message, level, category, timestamp = record
    return RawLogRecord.create(message, level, category, timestamp)
