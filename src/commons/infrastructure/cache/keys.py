"""Cache key scheme for video records."""


class CacheKeys:
    """Builds cache keys for single videos, lesson lookups and course lists."""

    @staticmethod
    def video(video_id: str) -> str:
        return f"video:{video_id}"

    @staticmethod
    def lesson_video(course_id: str, lesson_id: str) -> str:
        return f"video:{course_id}:{lesson_id}"

    @staticmethod
    def course_videos(course_id: str) -> str:
        return f"course_videos:{course_id}"

    @classmethod
    def for_record(cls, video_id: str, course_id: str, lesson_id: str) -> list[str]:
        """All keys that may hold a copy of the given record."""
        return [
            cls.video(video_id),
            cls.lesson_video(course_id, lesson_id),
            cls.course_videos(course_id),
        ]
