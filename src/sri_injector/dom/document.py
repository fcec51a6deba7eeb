# src/sri_injector/dom/document.py
import logging
import re
from html import escape
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .core import CandidateElement, ElementKind

logger = logging.getLogger(__name__)

_TAG_OPEN_RE = re.compile(r"<([a-zA-Z][^\s/>]*)")
_ATTR_RE = re.compile(r"""([^\s/>=][^\s/>=]*)(?:(\s*=\s*)("[^"]*"|'[^']*'|[^\s>]*))?""")
_LINE_BREAK_RE = re.compile(r"\n")

TEXT_ONLY_ELEMENTS = ["title", "textarea"]

# (name, attribute span, value span or None)
AttrSpan = Tuple[str, Tuple[int, int], Optional[Tuple[int, int]]]


def scan_start_tag(text: str, start: int) -> Tuple[int, List[AttrSpan]]:
    """
    Tokenizes the start tag beginning at `start` (which must point at '<').

    Quoted attribute values may contain '>' without ending the tag.

    Returns:
        The offset just past the closing '>' (or len(text) for an unterminated tag)
        and the attributes found, with absolute offsets.
    """
    m = _TAG_OPEN_RE.match(text, start)
    if not m:
        raise ValueError(f"No start tag at offset {start}")

    attrs: List[AttrSpan] = []
    pos = m.end()
    length = len(text)
    while pos < length:
        ch = text[pos]
        if ch == ">":
            return pos + 1, attrs
        if ch.isspace() or ch == "/":
            pos += 1
            continue
        am = _ATTR_RE.match(text, pos)
        if not am or am.end() == pos:
            pos += 1
            continue
        value_span = am.span(3) if am.group(3) is not None else None
        attrs.append((am.group(1).lower(), am.span(), value_span))
        pos = am.end()
    return length, attrs


class HtmlDocument:
    """
    Mutable view of one HTML file.

    Parsing is delegated to BeautifulSoup (html.parser backend, lenient on broken
    markup). Serialization does not re-render the soup: it returns the original
    text with only the recorded attribute edits spliced into their start tags,
    so everything else survives byte-for-byte.
    """

    def __init__(self, text: str, soup: BeautifulSoup):
        self.text = text
        self.soup = soup
        self._edits: Dict[int, Tuple[Tag, Dict[str, str]]] = {}
        self._line_starts: Optional[List[int]] = None

    @classmethod
    def parse(cls, text: str) -> "HtmlDocument":
        # multi_valued_attributes=None keeps 'rel' and friends as raw strings.
        # A repeated attribute keeps its first value, as browsers do.
        soup = BeautifulSoup(
            text, "html.parser", multi_valued_attributes=None, on_duplicate_attribute="ignore"
        )
        return cls(text, soup)

    # --- Queries ---

    def candidates(self) -> List[CandidateElement]:
        """All `script[src]` and `link[href]` elements, in document order."""
        found: List[CandidateElement] = []
        for tag in self.soup.find_all(True):
            kind = ElementKind.from_tag(tag.name)
            attr = kind.reference_attribute
            if attr is None:
                continue
            # Markup inside title and textarea is text to a browser.
            if tag.find_parent(TEXT_ONLY_ELEMENTS):
                continue
            value = tag.get(attr)
            if isinstance(value, str) and value.strip():
                found.append(CandidateElement(self, tag, kind))
        return found

    # --- Mutation ---

    def record_edit(self, tag: Tag, name: str, value: str) -> None:
        _, attrs = self._edits.setdefault(id(tag), (tag, {}))
        attrs[name.lower()] = value

    @property
    def is_modified(self) -> bool:
        return bool(self._edits)

    # --- Serialization ---

    def serialize(self) -> str:
        if not self._edits:
            return self.text

        splices: List[Tuple[int, int, str]] = []
        for tag, attrs in self._edits.values():
            start = self._offset_of(tag)
            if start is None:
                logger.warning(f"Could not locate <{tag.name}> in source; edit dropped.")
                continue
            end, spans = scan_start_tag(self.text, start)
            new_tag_text = self._rewrite_start_tag(start, end, spans, attrs)
            splices.append((start, end, new_tag_text))

        out = self.text
        for start, end, replacement in sorted(splices, key=lambda s: s[0], reverse=True):
            out = out[:start] + replacement + out[end:]
        return out

    def _offset_of(self, tag: Tag) -> Optional[int]:
        if tag.sourceline is None or tag.sourcepos is None:
            return None
        if self._line_starts is None:
            self._line_starts = [0] + [m.end() for m in _LINE_BREAK_RE.finditer(self.text)]
        line_index = tag.sourceline - 1
        if not 0 <= line_index < len(self._line_starts):
            return None
        offset = self._line_starts[line_index] + tag.sourcepos

        m = _TAG_OPEN_RE.match(self.text, offset)
        if not m or m.group(1).lower() != tag.name.lower():
            return None
        return offset

    def _rewrite_start_tag(
            self, start: int, end: int, spans: List[AttrSpan], attrs: Dict[str, str]
    ) -> str:
        tag_text = self.text[start:end]
        pending = dict(attrs)
        replacements: List[Tuple[int, int, str]] = []

        for name, (a_start, a_end), value_span in spans:
            if name not in attrs:
                continue
            pending.pop(name, None)
            quoted = f'"{escape(attrs[name], quote=True)}"'
            if value_span is not None:
                replacements.append((value_span[0] - start, value_span[1] - start, quoted))
            else:
                # Bare attribute ('<script integrity src=...>') gains a value.
                replacements.append((a_end - start, a_end - start, f"={quoted}"))

        for r_start, r_end, r_text in sorted(replacements, reverse=True):
            tag_text = tag_text[:r_start] + r_text + tag_text[r_end:]

        if pending:
            insert_at = self._insertion_point(tag_text)
            addition = "".join(f' {n}="{escape(v, quote=True)}"' for n, v in pending.items())
            tag_text = tag_text[:insert_at] + addition + tag_text[insert_at:]

        return tag_text

    @staticmethod
    def _insertion_point(tag_text: str) -> int:
        """Position right after the last attribute, before '>' / '/>' and trailing whitespace."""
        pos = len(tag_text)
        if tag_text.endswith(">"):
            pos -= 1
            # '/>' only closes when the slash is not the tail of an unquoted value.
            if tag_text[:pos].endswith("/") and (pos < 2 or tag_text[pos - 2] in " \t\r\n\f\"'"):
                pos -= 1
        while pos > 0 and tag_text[pos - 1].isspace():
            pos -= 1
        return pos
