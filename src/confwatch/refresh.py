"""Refresh scheduler: rate-limited change detection across configuration stores."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from confwatch._redact import redact_for_log
from confwatch.config import StoreConfig, WatchConfig
from confwatch.exceptions import NotificationError, RefreshError
from confwatch.filters import resolve_label_filter
from confwatch.models.events import Category, ChangedCategory, RefreshEvent
from confwatch.models.revision import RevisionSnapshot
from confwatch.revisions import RevisionClient
from confwatch.sinks.base import NotificationSink
from confwatch.state.clock import PollClock
from confwatch.state.policy import SnapshotChange, classify
from confwatch.state.store import StateStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Observation:
    """Outcome of polling one category of one store."""

    store: str
    category: Category
    snapshot: RevisionSnapshot
    change: SnapshotChange


class RefreshScheduler:
    """Poll configuration stores and publish one event per detected change.

    Callers may invoke :meth:`refresh_configurations` as often as they like
    (e.g. once per inbound request); the configured refresh interval bounds
    how often stores are actually queried.

    Usage::

        scheduler = RefreshScheduler(config, client, bus)
        if await scheduler.refresh_configurations():
            ...  # subscribers of ``bus`` were notified

    Cycles are serialized by a lock. A caller arriving while a cycle runs
    waits for it and then re-evaluates the rate gate, which normally turns
    it away without any I/O.
    """

    def __init__(
        self,
        config: WatchConfig,
        client: RevisionClient,
        sink: NotificationSink,
        *,
        state: StateStore | None = None,
        poll_clock: PollClock | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._client = client
        self._sink = sink
        self._state = state if state is not None else StateStore()
        self._poll_clock = poll_clock if poll_clock is not None else PollClock()
        self._clock = clock
        self._lock = asyncio.Lock()
        _logger.debug(
            "Refresh scheduler configured interval=%ss stores=%s",
            config.refresh_interval,
            redact_for_log(list(config.stores)),
        )

    @property
    def state(self) -> StateStore:
        return self._state

    @property
    def poll_clock(self) -> PollClock:
        return self._poll_clock

    def reset(self) -> None:
        """Forget every observed snapshot and the last poll attempt."""
        self._state.clear()
        self._poll_clock.reset()

    async def refresh_configurations(self) -> bool:
        """Run one refresh cycle if the refresh interval has elapsed.

        Returns
        -------
        bool
            ``True`` when a change was detected and a refresh event published.

        Raises
        ------
        RefreshError
            Every polled store failed.
        NotificationError
            The refresh event could not be published. State changes detected
            in this cycle stay recorded, so the event will not be retried.
        """
        async with self._lock:
            now = self._clock()
            if not self._poll_clock.is_due(now, self._config.refresh_interval):
                _logger.debug(
                    "Refresh skipped, %.3fs elapsed of %ss interval",
                    self._poll_clock.elapsed(now),
                    self._config.refresh_interval,
                )
                return False
            # Measured from the last attempt, not the last change.
            self._poll_clock.mark(now)
            return await self._run_cycle()

    async def _run_cycle(self) -> bool:
        stores = [store for store in self._config.stores if store.monitoring_enabled]
        if not stores:
            _logger.debug("No store has monitoring enabled")
            return False

        results = await asyncio.gather(
            *(self._poll_store(store) for store in stores),
            return_exceptions=True,
        )

        failures: dict[str, BaseException] = {}
        observations: list[_Observation] = []
        for store, result in zip(stores, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                _logger.warning("Refresh of store %s failed: %s", store.name, result)
                _logger.debug("Refresh failure details for store %s", store.name, exc_info=result)
                failures[store.name] = result
                continue
            observations.extend(result)

        if len(failures) == len(stores):
            raise RefreshError(
                f"All {len(stores)} configuration stores failed to refresh",
                failures=failures,
            )

        changes: list[ChangedCategory] = []
        for observation in observations:
            if observation.change.should_store:
                self._state.set(observation.store, observation.category, observation.snapshot)
            if observation.change.should_notify:
                changes.append(ChangedCategory(store=observation.store, category=observation.category))
            elif observation.change is SnapshotChange.BASELINE:
                _logger.debug(
                    "Captured baseline store=%s category=%s revisions=%d",
                    observation.store,
                    observation.category,
                    len(observation.snapshot),
                )

        if not changes:
            _logger.debug("No configuration change detected")
            return False

        event = RefreshEvent(changes=tuple(changes))
        _logger.info("Configuration change detected in %s", ", ".join(event.stores))
        try:
            await self._sink.publish(event)
        except NotificationError:
            _logger.error("Publishing refresh event failed", exc_info=True)
            raise
        except Exception as exc:
            _logger.error("Publishing refresh event failed", exc_info=True)
            raise NotificationError(f"Publishing refresh event failed: {exc}") from exc
        return True

    async def _poll_store(self, store: StoreConfig) -> list[_Observation]:
        """Query both categories of *store*; any failure fails the whole store."""
        label_filter = resolve_label_filter(store)
        contexts = self._config.contexts_for(store)
        observations: list[_Observation] = []
        for category in Category:
            key_filter = self._client.resolve_watched_key_filter(store, category, contexts)
            revisions = await self._client.list_revisions(store, key_filter, label_filter)
            snapshot = RevisionSnapshot.of(revisions)
            change = classify(self._state.get(store, category), snapshot)
            _logger.debug(
                "Polled store=%s category=%s filter=%r revisions=%d result=%s",
                store.name,
                category,
                key_filter,
                len(snapshot),
                change,
            )
            observations.append(_Observation(store.name, category, snapshot, change))
        return observations
