"""
Change detection for tracked queries.

One scheduler tick walks every active subscription:

    1. Search for the single latest filing of the subscription's query.
    2. Compare its identity key (case number + date) to the stored
       last-seen key; if equal, nothing happens.
    3. Otherwise run the full pipeline on exactly that filing, notify the
       subscriber, and only then persist the new key.

Because the key is persisted after the notification, a crash between the
two can cause a repeat notification (at-least-once delivery) but never a
missed one.  A failure for one subscription is logged and the tick moves
on to the next.

The identity key does not disambiguate two filings that share a case
number and date (e.g., at different courts); such a pair is treated as
the same filing.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from court_watch.config import get_settings
from court_watch.config.constants import MONITOR_CASE_COUNT
from court_watch.core import get_logger
from court_watch.database import SubscriptionRecord, SubscriptionStore
from court_watch.monitor.notify import Notification, Notifier
from court_watch.pipeline import LoggingSink, PipelineOrchestrator
from court_watch.search import SearchProvider

logger = get_logger(__name__)


class CheckOutcome(str, Enum):
    """Result of checking one subscription."""

    NO_RESULTS = "no_results"
    UNCHANGED = "unchanged"
    NOTIFIED = "notified"


@dataclass
class TickReport:
    """Counters for one scheduler tick."""

    checked: int = 0
    unchanged: int = 0
    notified: int = 0
    failed: int = 0
    no_results: int = 0

    def record(self, outcome: CheckOutcome) -> None:
        if outcome is CheckOutcome.NOTIFIED:
            self.notified += 1
        elif outcome is CheckOutcome.UNCHANGED:
            self.unchanged += 1
        else:
            self.no_results += 1


class ChangeDetector:
    """
    Notifies subscribers when the latest filing for their query changes.

    The search provider is shared by every subscription of a tick (one
    long-lived session); the caller owns its lifecycle.

    Example:
        >>> async with EOglasnaSearchProvider() as provider:
        ...     detector = ChangeDetector(store, provider, orchestrator, notifier)
        ...     report = await detector.check_all()
    """

    def __init__(
        self,
        store: SubscriptionStore,
        search_provider: SearchProvider,
        orchestrator: PipelineOrchestrator,
        notifier: Notifier,
    ) -> None:
        self.store = store
        self.search_provider = search_provider
        self.orchestrator = orchestrator
        self.notifier = notifier

    async def check_one(self, record: SubscriptionRecord) -> CheckOutcome:
        """
        Check a single subscription.

        Raises:
            CourtWatchError: From search, pipeline, notification, or store;
                the stored key is left untouched in every failure case.
        """
        hits = await self.search_provider.find_latest(record.query, MONITOR_CASE_COUNT)
        if not hits:
            logger.info("No filings for %r, skipping", record.query)
            return CheckOutcome.NO_RESULTS

        latest = hits[0]
        identity_key = latest.identity_key
        if identity_key == record.last_seen_identity:
            logger.info("No new filing for %r (last seen %s)", record.query, identity_key)
            return CheckOutcome.UNCHANGED

        logger.info(
            "New filing for %r: %s (previously %s)",
            record.query,
            identity_key,
            record.last_seen_identity,
        )
        result = await self.orchestrator.run([latest], LoggingSink(label=record.query))

        await self.notifier.notify(
            Notification(
                recipient=record.email,
                query=record.query,
                filing=latest,
                narrative=result.narrative,
                unsubscribe_token=record.unsubscribe_token,
            )
        )
        await asyncio.to_thread(self.store.update_last_seen, record.id, identity_key)
        return CheckOutcome.NOTIFIED

    async def check_all(self) -> TickReport:
        """Run one scheduler tick over every active subscription."""
        records = await asyncio.to_thread(self.store.list_active)
        report = TickReport()
        logger.info("Checking %d active subscriptions", len(records))

        for record in records:
            report.checked += 1
            try:
                outcome = await self.check_one(record)
            except Exception as e:
                report.failed += 1
                logger.warning(
                    "Subscription #%d (%r) failed: %s", record.id, record.query, e
                )
                continue
            report.record(outcome)

        logger.info(
            "Tick done: %d checked, %d unchanged, %d notified, %d failed",
            report.checked,
            report.unchanged,
            report.notified,
            report.failed,
        )
        return report

    async def run_forever(
        self,
        interval: Optional[float] = None,
        max_ticks: Optional[int] = None,
    ) -> None:
        """
        Run ticks on a fixed schedule.

        Args:
            interval: Seconds to wait after one tick before the next
                (defaults to ``settings.monitor.interval_seconds``)
            max_ticks: Stop after this many ticks (None runs until cancelled)
        """
        interval = interval if interval is not None else get_settings().monitor.interval_seconds
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            try:
                await self.check_all()
            except Exception:
                logger.exception("Scheduler tick failed")
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            await asyncio.sleep(interval)
