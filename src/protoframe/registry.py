"""Per-connector ownership of transport subscriptions."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from protoframe.transport import Subscription


__all__ = ["ListenerRegistry"]

logger = logging.getLogger("protoframe.registry")


class ListenerRegistry:
    """Ordered collection of the subscriptions a connector created.

    ``destroy`` detaches every recorded subscription from its transport and
    forgets them.  It never closes the transport itself, and calling it again
    is a no-op.

    Examples
    --------
    >>> registry = ListenerRegistry()
    >>> registry.destroy()
    >>> len(registry)
    0
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def add(self, subscription: Subscription) -> Subscription:
        self._subscriptions.append(subscription)
        return subscription

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __iter__(self) -> Iterator[Subscription]:
        return iter(tuple(self._subscriptions))

    def destroy(self) -> None:
        if not self._subscriptions:
            return
        logger.debug("Detaching %d subscriptions", len(self._subscriptions))
        for subscription in self._subscriptions:
            subscription.detach()
        self._subscriptions.clear()
