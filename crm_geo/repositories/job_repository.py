"""
Repository for job coordinates
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from crm_geo.application.dto import JobCoordsDTO
from crm_geo.database.connection import SessionFactory
from crm_geo.models.job import JobDB
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class JobRepository(BaseRepository):
    """Reads jobs and writes their lat/lng columns only"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        super().__init__(JobDB, session_factory)

    def list_jobs(self, session: Session = None) -> List[JobCoordsDTO]:
        """All jobs, newest first"""
        if session is None:
            with self._session() as session:
                return self._list_jobs(session)
        return self._list_jobs(session)

    def _list_jobs(self, session: Session) -> List[JobCoordsDTO]:
        rows = session.query(JobDB).order_by(JobDB.created_at.desc()).all()
        return [JobCoordsDTO.model_validate(row) for row in rows]

    def update_coords(
        self,
        job_id: str,
        lat: Optional[float],
        lng: Optional[float],
        session: Session = None
    ) -> bool:
        """
        Set (or clear) a job's coordinates

        Returns:
            True if a row was updated
        """
        if session is None:
            with self._session() as session:
                return self._update_coords(job_id, lat, lng, session)
        return self._update_coords(job_id, lat, lng, session)

    def _update_coords(self, job_id: str, lat: Optional[float], lng: Optional[float], session: Session) -> bool:
        updated = session.query(JobDB).filter(JobDB.id == job_id).update(
            {JobDB.lat: lat, JobDB.lng: lng},
            synchronize_session=False
        )
        session.commit()
        logger.debug(f"Job {job_id} coordinates set to ({lat}, {lng})")
        return updated > 0
