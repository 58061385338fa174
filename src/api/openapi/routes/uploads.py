"""Upload intake endpoints."""

from fastapi import APIRouter, status

from src.api.dependencies import AdminDep, UploadIntakeServiceDep
from src.application.dtos.uploads import CreateUploadRequest, UploadTicketResponse

router = APIRouter()


@router.post(
    "/videos/upload",
    response_model=UploadTicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request upload ticket",
    description=(
        "Validate an upload request and return a single-use, time-boxed URL "
        "for uploading the video directly to the streaming provider."
    ),
)
async def create_upload(
    request: CreateUploadRequest,
    admin: AdminDep,
    service: UploadIntakeServiceDep,
) -> UploadTicketResponse:
    """Issue a resumable upload ticket for a lesson video."""
    return await service.create_upload(request, uploaded_by=admin.identity)
