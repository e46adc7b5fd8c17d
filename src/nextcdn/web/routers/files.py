from fastapi import APIRouter, Query
from fastapi.responses import Response

from nextcdn.web.deps import AppDep
from nextcdn.web.openapi import ErrorResponse

router = APIRouter(tags=["files"])


def _inline_disposition(filename: str) -> str:
    safe = filename.replace("\\", "_").replace('"', "_").replace("\r", "").replace("\n", "")
    return f'inline; filename="{safe}"'


@router.get(
    "/files/{file_id}",
    summary="Retrieve file",
    description=(
        "Download a file using a signed URL. No session is required: the `signature` and "
        "`timestamp` returned by the upload endpoint authorize access until they expire."
    ),
    operation_id="getFile",
    response_class=Response,
    responses={
        200: {"description": "File contents"},
        403: {"model": ErrorResponse, "description": "Invalid or expired signature"},
        404: {"model": ErrorResponse, "description": "File not found"},
    },
)
async def get_file(
    file_id: str,
    app: AppDep,
    signature: str = Query(..., description="Hex HMAC signature"),
    timestamp: int = Query(..., description="Unix time (seconds) the signature was issued"),
) -> Response:
    record, content = await app.get_file(file_id, signature, timestamp)
    return Response(
        content=content,
        media_type=record.content_type,
        headers={"Content-Disposition": _inline_disposition(record.name or record.id)},
    )
