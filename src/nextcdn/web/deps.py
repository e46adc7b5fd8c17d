from typing import Annotated, cast

from fastapi import Depends, Header, Request

from nextcdn.app import App
from nextcdn.core.modules.session.models import SubjectId


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_subject_id(
    app: Annotated[App, Depends(get_app)],
    authorization: Annotated[str | None, Header()] = None,
) -> SubjectId:
    """Authenticate the request from its Authorization header before the handler runs."""
    return await app.authenticate(authorization)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
SubjectDep = Annotated[SubjectId, Depends(get_subject_id)]
