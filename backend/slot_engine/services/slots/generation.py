# backend/slot_engine/services/slots/generation.py
"""
Lazy slot generation.

Slot rows for a (business, date) are materialized the first time they are
needed. Concurrent callers for the same key are coalesced in-process
(single flight); across processes the unique window constraint turns a
duplicate insert into a no-op.

Batch generation groups requests by BusinessHours so each template is
computed once per group, then generates the group on a thread pool.
"""

import logging
import threading
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from ...models.tables import new_slot_id
from .config import BusinessHours, BusinessSchedule
from .exceptions import SlotConfigError, SlotStoreError
from .state import AVAILABLE
from .store import SlotStore
from .template_cache import SlotTemplateCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    business_id: str
    date: date
    hours: BusinessHours


@dataclass(frozen=True)
class GenerationResult:
    """Per-key outcome of a batch run. error is None on success."""
    business_id: str
    date: date
    created: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SlotGenerator:
    """Ensures slot rows exist, exactly once per (business, date)."""

    def __init__(
        self,
        store: SlotStore,
        template_cache: SlotTemplateCache,
        max_workers: int = 8,
        retries: int = 2,
    ):
        self.store = store
        self.template_cache = template_cache
        self.max_workers = max_workers
        self.retries = retries
        self._inflight: dict[str, Future] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(business_id: str, dt: date) -> str:
        return f"{business_id}:{dt.isoformat()}"

    def build_rows(self, business_id: str, dt: date, hours: BusinessHours) -> list[dict]:
        """Slot rows for one day, all available."""
        return [
            {
                "id": new_slot_id(),
                "business_id": business_id,
                "date": dt,
                "start_time": start,
                "end_time": end,
                "status": AVAILABLE,
                "reserved_until": None,
            }
            for start, end in self.template_cache.get_template(hours)
        ]

    def ensure_generated(self, business_id: str, dt: date, hours: BusinessHours) -> bool:
        """
        Make sure slot rows exist for business+date.

        Late callers for a key that is already being generated wait for the
        in-flight run and share its outcome (including its exception).

        Returns:
            True only for the caller whose insert created the rows.
        """
        key = self._key(business_id, dt)

        with self._lock:
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            future.result()
            return False

        try:
            created = self._generate_with_retry(business_id, dt, hours)
        except Exception as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(created)
            return created
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    def _generate_with_retry(self, business_id: str, dt: date, hours: BusinessHours) -> bool:
        # Generation is idempotent, so store failures are safe to retry here.
        attempt = 0
        while True:
            try:
                return self._generate(business_id, dt, hours)
            except SlotStoreError:
                if attempt >= self.retries:
                    raise
                attempt += 1
                logger.warning(
                    f"Slot generation failed for business={business_id} date={dt}, "
                    f"retry {attempt}/{self.retries}"
                )

    def _generate(self, business_id: str, dt: date, hours: BusinessHours) -> bool:
        if self.store.has_slots(business_id, dt):
            return False

        rows = self.build_rows(business_id, dt, hours)
        if not rows:
            return False

        inserted = self.store.insert_slots(rows)
        if inserted:
            logger.info(f"Generated {inserted} slots for business={business_id} date={dt}")
        return inserted > 0

    # ── Batch ────────────────────────────────────────────────────────────

    def batch_generate(self, requests: Iterable[GenerationRequest]) -> list[GenerationResult]:
        """
        Generate for many (business, date) keys.

        Failures are captured per key; one bad key never fails the batch.

        Returns:
            One GenerationResult per request, in request order.
        """
        requests = list(requests)
        if not requests:
            return []

        groups: dict[BusinessHours, list[int]] = defaultdict(list)
        for idx, req in enumerate(requests):
            groups[req.hours].append(idx)

        results: list[GenerationResult | None] = [None] * len(requests)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures: dict[int, Future] = {}
            for hours, indexes in groups.items():
                # Warm once per group; workers then hit the cache
                self.template_cache.get_template(hours)
                for idx in indexes:
                    req = requests[idx]
                    futures[idx] = pool.submit(
                        self.ensure_generated, req.business_id, req.date, req.hours
                    )

            for idx, fut in futures.items():
                req = requests[idx]
                try:
                    created = fut.result()
                except Exception as exc:
                    logger.error(
                        f"Slot generation failed for business={req.business_id} "
                        f"date={req.date}: {exc}"
                    )
                    results[idx] = GenerationResult(req.business_id, req.date, error=str(exc))
                else:
                    results[idx] = GenerationResult(req.business_id, req.date, created=created)

        return results

    def generate_ahead(
        self,
        businesses: Iterable[tuple[str, BusinessHours | BusinessSchedule]],
        start: date,
        days: int,
    ) -> list[GenerationResult]:
        """
        Pre-generate [start, start + days) for each business.

        Only dates without rows are submitted (one existence query per
        business). Hours are resolved per date, so closed dates are skipped
        and weekday special hours pick their own template.
        """
        dates = [start + timedelta(days=i) for i in range(days)]
        requests: list[GenerationRequest] = []
        failures: list[GenerationResult] = []
        for business_id, schedule in businesses:
            try:
                existing = self.store.existing_dates(business_id, dates)
            except SlotStoreError as exc:
                logger.error(f"Existence check failed for business={business_id}: {exc}")
                failures.extend(GenerationResult(business_id, dt, error=str(exc)) for dt in dates)
                continue

            for dt in dates:
                if dt in existing:
                    continue
                try:
                    hours = schedule.hours_for(dt)
                except SlotConfigError as exc:
                    failures.append(GenerationResult(business_id, dt, error=str(exc)))
                    continue
                if hours is None:
                    logger.debug(f"Business {business_id} closed on {dt}, nothing to generate")
                    continue
                requests.append(GenerationRequest(business_id, dt, hours))

        results = self.batch_generate(requests) + failures
        created = sum(1 for r in results if r.created)
        failed = sum(1 for r in results if not r.ok)
        logger.info(f"generate_ahead: {len(requests)} missing days, {created} created, {failed} failed")
        return results
