from .core import CandidateElement, ElementKind
from .document import HtmlDocument

__all__ = ["CandidateElement", "ElementKind", "HtmlDocument"]
