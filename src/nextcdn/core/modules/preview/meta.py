"""Meta tag extraction for link previews."""

from html.parser import HTMLParser
from urllib.parse import urljoin

from nextcdn.core.modules.preview.models import LinkPreview

TITLE_KEYS = ("og:title", "twitter:title")
DESCRIPTION_KEYS = ("og:description", "twitter:description", "description")
IMAGE_KEYS = ("og:image", "twitter:image")
SITE_NAME_KEYS = ("og:site_name", "twitter:site")


class _MetaCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.by_property: dict[str, str] = {}
        self.by_name: dict[str, str] = {}
        self.title: str | None = None
        self._title_parts: list[str] | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "meta":
            values = {key: value for key, value in attrs if value is not None}
            content = values.get("content", "")
            if not content.strip():
                return
            # First occurrence wins
            if "property" in values:
                self.by_property.setdefault(values["property"], content)
            if "name" in values:
                self.by_name.setdefault(values["name"], content)
        elif tag == "title" and self.title is None:
            self._title_parts = []

    def handle_data(self, data: str) -> None:
        if self._title_parts is not None:
            self._title_parts.append(data)

    def handle_endtag(self, tag: str) -> None:
        if tag == "title" and self._title_parts is not None:
            self.title = "".join(self._title_parts).strip()
            self._title_parts = None

    def lookup(self, keys: tuple[str, ...]) -> str | None:
        for key in keys:
            if key in self.by_property:
                return self.by_property[key]
            if key in self.by_name:
                return self.by_name[key]
        return None


def resolve_url(base: str, relative: str) -> str:
    if relative.startswith(("http://", "https://")):
        return relative
    return urljoin(base, relative)


def extract_preview(url: str, html: str) -> LinkPreview:
    """Build a preview from OpenGraph, Twitter and standard meta tags.

    Meta tags matched by property are preferred over those matched by name.
    The title falls back to the <title> element.
    """
    collector = _MetaCollector()
    collector.feed(html)
    collector.close()

    image = collector.lookup(IMAGE_KEYS)
    return LinkPreview(
        url=url,
        title=collector.lookup(TITLE_KEYS) or collector.title,
        description=collector.lookup(DESCRIPTION_KEYS),
        image=resolve_url(url, image) if image else None,
        site_name=collector.lookup(SITE_NAME_KEYS),
    )
