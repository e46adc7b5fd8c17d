from pydantic import BaseModel, Field


class LinkPreview(BaseModel):
    """Metadata extracted from a web page for rendering a link card."""

    url: str = Field(..., description="Requested URL")
    title: str | None = Field(None, description="Page title")
    description: str | None = Field(None, description="Page description")
    image: str | None = Field(None, description="Absolute URL of the preview image")
    site_name: str | None = Field(None, description="Site name")
