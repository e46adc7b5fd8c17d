from fastapi import APIRouter, Query
from fastapi.responses import Response

from nextcdn.core.modules.preview.models import LinkPreview
from nextcdn.web.deps import AppDep, SubjectDep
from nextcdn.web.openapi import ErrorResponse

router = APIRouter(tags=["preview"])


@router.get(
    "/preview",
    summary="Link preview",
    description="Fetch a web page and extract its OpenGraph, Twitter card and meta tags.",
    operation_id="getLinkPreview",
    responses={
        200: {"description": "Preview metadata"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        502: {"model": ErrorResponse, "description": "Page could not be fetched"},
    },
)
async def get_link_preview(app: AppDep, _: SubjectDep, url: str = Query(..., description="Page URL")) -> LinkPreview:
    return await app.get_link_preview(url)


@router.get(
    "/preview/image",
    summary="Resized image",
    description=(
        "Fetch a remote image and resize it to PNG. With one dimension the aspect ratio is kept; "
        "with both the image is resized exactly."
    ),
    operation_id="getResizedImage",
    response_class=Response,
    responses={
        200: {"description": "PNG image", "content": {"image/png": {}}},
        400: {"model": ErrorResponse, "description": "No dimension given"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        502: {"model": ErrorResponse, "description": "Image could not be fetched or decoded"},
    },
)
async def get_resized_image(
    app: AppDep,
    _: SubjectDep,
    url: str = Query(..., description="Image URL"),
    width: int | None = Query(None, gt=0, le=10000),
    height: int | None = Query(None, gt=0, le=10000),
) -> Response:
    data = await app.get_resized_image(url, width, height)
    return Response(content=data, media_type="image/png")
