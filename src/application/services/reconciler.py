"""Status reconciliation: merge provider reports into stored records."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from src.application.services.post_commit import PostCommitPipeline
from src.application.services.video_store import VideoRecordStore
from src.commons.telemetry import get_logger
from src.domain.exceptions import PersistenceException, VideoNotFoundException
from src.domain.models import StatusReport, VideoRecord, VideoStatus


@dataclass
class ReconcileResult:
    """Outcome of applying one report."""

    record: VideoRecord
    previous: VideoRecord
    applied: bool  # False when the reported transition was not allowed

    @property
    def status_changed(self) -> bool:
        return self.previous.status != self.record.status


class StatusReconciler:
    """Applies status reports to the matching record.

    Writes are conditional on the record version that was read, so two
    deliveries racing for the same asset cannot interleave: the loser
    re-reads and merges again on top of the winner's result.
    """

    def __init__(
        self,
        store: VideoRecordStore,
        post_commit: PostCommitPipeline,
        max_attempts: int = 3,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._post_commit = post_commit
        self._max_attempts = max_attempts
        self._clock = clock or (lambda: datetime.now(UTC))
        self._logger = get_logger(__name__)

    async def reconcile(self, report: StatusReport) -> ReconcileResult:
        """Merge a report into the record with the same provider id.

        Args:
            report: Provider status report.

        Returns:
            The persisted record and whether the report was applied.

        Raises:
            VideoNotFoundException: If no record has this provider id.
            PersistenceException: If the store fails or concurrent writers
                keep winning.
        """
        for attempt in range(1, self._max_attempts + 1):
            current = await self._store.get_by_provider_id(report.provider_video_id)
            if current is None:
                raise VideoNotFoundException(
                    report.provider_video_id, by="provider_video_id"
                )

            target = report.state or current.status
            applied = current.status.can_transition_to(target)
            reconciled = current.apply_report(report, now=self._clock())

            saved = await self._store.save_if_unchanged(current, reconciled)
            if saved is None:
                self._logger.info(
                    "Concurrent update detected, retrying reconciliation",
                    extra={"video_id": current.id, "attempt": attempt},
                )
                continue

            self._log_outcome(current, saved, report, applied)
            await self._post_commit.run(saved, previous=current)
            return ReconcileResult(record=saved, previous=current, applied=applied)

        raise PersistenceException(
            "reconcile",
            f"record kept changing after {self._max_attempts} attempts",
        )

    def _log_outcome(
        self,
        previous: VideoRecord,
        reconciled: VideoRecord,
        report: StatusReport,
        applied: bool,
    ) -> None:
        if not applied:
            self._logger.warning(
                "Ignoring report that would move video backwards",
                extra={
                    "video_id": previous.id,
                    "stored_status": previous.status.value,
                    "reported_status": report.state.value if report.state else None,
                },
            )
            return

        if reconciled.status == VideoStatus.ERROR:
            self._logger.error(
                "Video processing failed",
                extra={
                    "video_id": reconciled.id,
                    "error_code": reconciled.error_code,
                    "error_message": reconciled.error_message,
                },
            )
        else:
            self._logger.info(
                "Video status reconciled",
                extra={
                    "video_id": reconciled.id,
                    "previous_status": previous.status.value,
                    "status": reconciled.status.value,
                    "progress": reconciled.processing_progress,
                },
            )
