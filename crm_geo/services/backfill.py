"""
Backfill for job coordinates.

Scans jobs whose stored coordinates are not usable and re-geocodes them with a
small worker pool. Per-row problems are counted in the report; the run itself
only aborts on setup errors.
"""
import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from crm_geo.application.dto import GeocodeHit, JobCoordsDTO
from crm_geo.repositories.job_repository import JobRepository
from crm_geo.services.address_query import build_address_queries
from crm_geo.services.coords_policy import (
    has_any_coords, is_usable_job_coords, normalize_address_text, same_coords
)
from crm_geo.services.geocode_service import geocode_with_providers

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 500
DEFAULT_CONCURRENCY = 3
MAX_SAMPLES = 20


@dataclass
class BackfillSummary:
    scanned: int = 0
    fixed: int = 0
    nulled: int = 0
    failed: int = 0
    skipped: int = 0


@dataclass
class BackfillReport:
    dry_run: bool
    limit: int
    concurrency: int
    summary: BackfillSummary = field(default_factory=BackfillSummary)
    samples: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": "dry-run" if self.dry_run else "apply",
            "options": {
                "dryRun": self.dry_run,
                "limit": self.limit,
                "concurrency": self.concurrency,
            },
            "summary": asdict(self.summary),
            "samples": list(self.samples),
        }


class BackfillJob:
    def __init__(
        self,
        job_repository: JobRepository,
        providers: Sequence,
        dry_run: bool = True,
        limit: int = DEFAULT_LIMIT,
        concurrency: int = DEFAULT_CONCURRENCY
    ):
        self.job_repository = job_repository
        self.providers = list(providers)
        self.dry_run = dry_run
        self.limit = limit
        self.concurrency = max(1, concurrency)
        self.report = self._new_report()

    def _new_report(self) -> BackfillReport:
        return BackfillReport(dry_run=self.dry_run, limit=self.limit, concurrency=self.concurrency)

    async def run(self) -> BackfillReport:
        self.report = self._new_report()
        jobs = await asyncio.to_thread(self.job_repository.list_jobs)
        candidates = [job for job in jobs if not is_usable_job_coords(job.lat, job.lng)][:self.limit]
        self.report.summary.scanned = len(candidates)
        logger.info(
            f"Backfill: {len(candidates)} of {len(jobs)} jobs need coordinates "
            f"({'dry-run' if self.dry_run else 'apply'}, concurrency={self.concurrency})"
        )

        queue: asyncio.Queue = asyncio.Queue()
        for job in candidates:
            queue.put_nowait(job)

        workers = [asyncio.create_task(self._worker(queue)) for _ in range(self.concurrency)]
        await asyncio.gather(*workers)

        logger.info(f"Backfill finished: {asdict(self.report.summary)}")
        return self.report

    async def _worker(self, queue: asyncio.Queue):
        while True:
            try:
                job = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await self.process_job(job)
            except Exception as e:
                logger.error(f"Backfill: job {job.id} failed: {e}", exc_info=True)
                self.report.summary.failed += 1

    async def process_job(self, job: JobCoordsDTO):
        summary = self.report.summary
        has_coords_now = has_any_coords(job.lat, job.lng)
        address = normalize_address_text(job.address_text)

        if not address:
            if not has_coords_now:
                summary.skipped += 1
                return
            if not await self._write(job.id, None, None):
                summary.failed += 1
                return
            summary.nulled += 1
            self._sample({"id": job.id, "action": "nulled_no_address"})
            return

        hit = await self.geocode(address)
        if hit is not None and is_usable_job_coords(hit.lat, hit.lng):
            if same_coords(job.lat, job.lng, hit.lat, hit.lng):
                summary.skipped += 1
                return
            if not await self._write(job.id, hit.lat, hit.lng):
                summary.failed += 1
                return
            summary.fixed += 1
            self._sample({
                "id": job.id,
                "action": "fixed",
                "provider": hit.provider,
                "lat": hit.lat,
                "lng": hit.lng,
            })
            return

        if not has_coords_now:
            summary.failed += 1
            self._sample({"id": job.id, "action": "geocode_failed_no_change"})
            return

        if not await self._write(job.id, None, None):
            summary.failed += 1
            return
        summary.nulled += 1
        self._sample({"id": job.id, "action": "nulled_after_geocode_fail"})

    async def geocode(self, address: str) -> Optional[GeocodeHit]:
        queries = build_address_queries(address)
        if not queries:
            return None
        hit, _ = await geocode_with_providers(queries, self.providers)
        return hit

    async def _write(self, job_id: str, lat: Optional[float], lng: Optional[float]) -> bool:
        if self.dry_run:
            return True
        try:
            return await asyncio.to_thread(self.job_repository.update_coords, job_id, lat, lng)
        except Exception as e:
            logger.warning(f"Backfill: could not update job {job_id}: {e}")
            return False

    def _sample(self, sample: Dict[str, Any]):
        if len(self.report.samples) < MAX_SAMPLES:
            self.report.samples.append(sample)
