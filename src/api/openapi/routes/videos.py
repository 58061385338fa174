"""Video management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header, Query, status

from src.api.dependencies import AdminDep, VideoServiceDep
from src.api.middleware.error_handler import APIError
from src.application.dtos.videos import (
    CourseVideoListResponse,
    CourseVideoStats,
    DeleteVideoResponse,
    UpdateVideoRequest,
    VideoResponse,
)

router = APIRouter()


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get video",
    description="Get a video record by its internal ID.",
)
async def get_video(
    video_id: str,
    _admin: AdminDep,
    service: VideoServiceDep,
) -> VideoResponse:
    record = await service.get_video(video_id)
    return VideoResponse.from_record(record)


@router.patch(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Update video details",
    description="Edit a video's title and/or description.",
)
async def update_video(
    video_id: str,
    request: UpdateVideoRequest,
    admin: AdminDep,
    service: VideoServiceDep,
) -> VideoResponse:
    record = await service.update_video(
        video_id,
        updated_by=admin.identity,
        title=request.title,
        description=request.description,
    )
    return VideoResponse.from_record(record)


@router.delete(
    "/videos/{video_id}",
    response_model=DeleteVideoResponse,
    summary="Delete video",
    description="Delete a video record and, by default, the provider asset.",
)
async def delete_video(
    video_id: str,
    admin: AdminDep,
    service: VideoServiceDep,
    delete_from_provider: Annotated[
        bool,
        Query(description="Also delete the asset from the streaming provider"),
    ] = True,
    x_confirm_delete: Annotated[
        str | None,
        Header(description="Must be 'true' to confirm deletion"),
    ] = None,
) -> DeleteVideoResponse:
    """Delete a video.

    Requires X-Confirm-Delete header set to 'true'.
    """
    if x_confirm_delete != "true":
        raise APIError(
            code="CONFIRMATION_REQUIRED",
            message="Deletion requires X-Confirm-Delete header set to 'true'",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    return await service.delete_video(
        video_id,
        deleted_by=admin.identity,
        delete_from_provider=delete_from_provider,
    )


@router.post(
    "/videos/{video_id}/sync",
    response_model=VideoResponse,
    summary="Sync video status",
    description="Pull the current status from the provider and reconcile it.",
)
async def sync_video(
    video_id: str,
    _admin: AdminDep,
    service: VideoServiceDep,
) -> VideoResponse:
    record = await service.sync_video_status(video_id)
    return VideoResponse.from_record(record)


@router.get(
    "/courses/{course_id}/videos",
    response_model=CourseVideoListResponse,
    summary="List course videos",
    description="List a course's videos. Only ready videos unless asked otherwise.",
)
async def list_course_videos(
    course_id: str,
    service: VideoServiceDep,
    include_not_ready: Annotated[
        bool,
        Query(description="Include queued, processing and failed videos"),
    ] = False,
) -> CourseVideoListResponse:
    records = await service.list_course_videos(
        course_id, include_not_ready=include_not_ready
    )
    return CourseVideoListResponse(
        course_id=course_id,
        videos=[VideoResponse.from_record(record) for record in records],
        total=len(records),
    )


@router.get(
    "/courses/{course_id}/videos/stats",
    response_model=CourseVideoStats,
    summary="Course video stats",
    description="Count a course's videos by processing status.",
)
async def get_course_stats(
    course_id: str,
    _admin: AdminDep,
    service: VideoServiceDep,
) -> CourseVideoStats:
    return await service.get_course_stats(course_id)


@router.get(
    "/courses/{course_id}/lessons/{lesson_id}/video",
    response_model=VideoResponse,
    summary="Get lesson video",
    description="Get the current video attached to a lesson.",
)
async def get_lesson_video(
    course_id: str,
    lesson_id: str,
    service: VideoServiceDep,
) -> VideoResponse:
    record = await service.get_lesson_video(course_id, lesson_id)
    return VideoResponse.from_record(record)
