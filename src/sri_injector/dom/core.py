# src/sri_injector/dom/core.py
from enum import Enum
from typing import Optional, TYPE_CHECKING

from bs4 import Tag

if TYPE_CHECKING:
    from .document import HtmlDocument


class ElementKind(str, Enum):
    """The element variants the injector distinguishes."""
    SCRIPT = "script"
    LINK = "link"
    OTHER = "other"

    @classmethod
    def from_tag(cls, tag_name: str) -> "ElementKind":
        name = (tag_name or "").lower()
        if name == "script":
            return cls.SCRIPT
        if name == "link":
            return cls.LINK
        return cls.OTHER

    @property
    def reference_attribute(self) -> Optional[str]:
        """Name of the attribute holding the resource reference ('src' / 'href')."""
        return {ElementKind.SCRIPT: "src", ElementKind.LINK: "href"}.get(self)


class CandidateElement:
    """
    A view onto a `script[src]` or `link[href]` node of one HtmlDocument.

    Reads go to the parsed tag; writes are recorded on the owning document
    so that serialization can splice them into the original source.
    """

    def __init__(self, document: "HtmlDocument", tag: Tag, kind: ElementKind):
        self._document = document
        self._tag = tag
        self.kind = kind

    @property
    def tag_name(self) -> str:
        return self._tag.name

    @property
    def reference(self) -> str:
        return (self.get_attribute(self.kind.reference_attribute) or "").strip()

    @property
    def rel(self) -> Optional[str]:
        return self.get_attribute("rel")

    @property
    def integrity(self) -> Optional[str]:
        return self.get_attribute("integrity")

    def get_attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return value

    def set_attribute(self, name: str, value: str) -> None:
        self._tag[name] = value
        self._document.record_edit(self._tag, name, value)

    def __repr__(self) -> str:
        return f"<CandidateElement {self.kind.value} {self.reference!r}>"
