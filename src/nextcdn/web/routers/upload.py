from fastapi import APIRouter, File, UploadFile

from nextcdn.core.modules.file.models import UploadResult
from nextcdn.errors import ValidationError
from nextcdn.web.deps import AppDep, SubjectDep
from nextcdn.web.openapi import ErrorResponse

router = APIRouter(tags=["upload"])


@router.post(
    "/upload",
    summary="Upload file",
    description=(
        "Upload a file as multipart field `file`. The file is scanned for malware, stored, "
        "and returned with a signed retrieval URL."
    ),
    operation_id="uploadFile",
    responses={
        200: {"description": "File uploaded successfully"},
        400: {"model": ErrorResponse, "description": "No file provided or file is infected"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        413: {"model": ErrorResponse, "description": "File too large"},
    },
)
async def upload_file(app: AppDep, subject_id: SubjectDep, file: UploadFile | None = File(None)) -> UploadResult:
    if file is None:
        raise ValidationError("No file provided")
    content = await file.read()
    return await app.upload_file(subject_id, file.filename, content, file.content_type)
