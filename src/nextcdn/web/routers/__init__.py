from nextcdn.web.routers.files import router as files_router
from nextcdn.web.routers.preview import router as preview_router
from nextcdn.web.routers.upload import router as upload_router

__all__ = [
    "files_router",
    "preview_router",
    "upload_router",
]
