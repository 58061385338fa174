"""Side effects that run after a video record change is committed."""

from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from src.application.services.video_store import VideoRecordStore
from src.commons.telemetry import get_logger
from src.domain.models import VideoRecord
from src.infrastructure.notifications import StatusNotifierBase

# (committed record, record as it was before the change or None on create)
PostCommitStep = Callable[[VideoRecord, VideoRecord | None], Awaitable[None]]

logger = get_logger(__name__)


class PostCommitPipeline:
    """Runs named, idempotent steps after a store write.

    A failing step is logged and skipped. Steps never change the outcome
    of the write that triggered them.
    """

    def __init__(self, steps: Iterable[tuple[str, PostCommitStep]] = ()) -> None:
        self._steps: list[tuple[str, PostCommitStep]] = list(steps)

    @property
    def step_names(self) -> list[str]:
        return [name for name, _ in self._steps]

    def add_step(self, name: str, step: PostCommitStep) -> None:
        self._steps.append((name, step))

    async def run(
        self,
        record: VideoRecord,
        previous: VideoRecord | None = None,
    ) -> list[str]:
        """Run every step in order.

        Returns:
            Names of the steps that failed.
        """
        failed: list[str] = []
        for name, step in self._steps:
            try:
                await step(record, previous)
            except Exception as e:
                failed.append(name)
                logger.warning(
                    "Post-commit step failed",
                    extra={
                        "step": name,
                        "video_id": record.id,
                        "error": str(e),
                    },
                )
        return failed


def invalidate_cache_step(store: VideoRecordStore) -> PostCommitStep:
    async def invalidate_cache(
        record: VideoRecord, previous: VideoRecord | None
    ) -> None:
        await store.invalidate(record)

    return invalidate_cache


def notify_status_change_step(
    notifier: StatusNotifierBase,
    notify_states: Iterable[str],
) -> PostCommitStep:
    """Build the step that announces status changes to an external webhook.

    Only real transitions into one of ``notify_states`` are announced;
    creation and re-applied reports stay silent.
    """
    states = frozenset(notify_states)

    async def notify_status_change(
        record: VideoRecord, previous: VideoRecord | None
    ) -> None:
        if previous is None or previous.status == record.status:
            return
        if record.status.value not in states:
            return
        event: dict[str, Any] = {
            "event": "video.status_changed",
            "video_id": record.id,
            "provider_video_id": record.provider_video_id,
            "course_id": record.course_id,
            "lesson_id": record.lesson_id,
            "previous_status": previous.status.value,
            "status": record.status.value,
            "error_code": record.error_code,
            "error_message": record.error_message,
            "occurred_at": datetime.now(UTC).isoformat(),
        }
        await notifier.notify(event)

    return notify_status_change


def build_post_commit_pipeline(
    store: VideoRecordStore,
    notifier: StatusNotifierBase | None = None,
    notify_states: Iterable[str] = ("ready", "error"),
) -> PostCommitPipeline:
    """Standard pipeline: cache invalidation, then optional notification."""
    pipeline = PostCommitPipeline([("invalidate_cache", invalidate_cache_step(store))])
    if notifier is not None:
        pipeline.add_step(
            "notify_status_change",
            notify_status_change_step(notifier, notify_states),
        )
    return pipeline
