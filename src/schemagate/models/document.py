"""Documents submitted for validation."""

import logging
from dataclasses import dataclass
from functools import cached_property
from xml.etree.ElementTree import ParseError

from defusedxml.ElementTree import DefusedXMLParser
from defusedxml.common import DefusedXmlException

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_ATTRIBUTE = "metadata"


@dataclass
class Document:
    """XML content to validate.

    ``namespace`` overrides the namespace read from the root element when the
    caller already knows it.
    """
    content: str | None
    namespace: str | None = None
    id: str | None = None
    content_attribute: str = DEFAULT_CONTENT_ATTRIBUTE

    @property
    def is_empty(self) -> bool:
        return not self.content

    @cached_property
    def root_namespace(self) -> str | None:
        """Namespace URI of the root element, or None if absent or unparseable."""
        if self.namespace is not None:
            return self.namespace
        if self.is_empty:
            return None
        return get_root_namespace(self.content)

    @classmethod
    def from_file(cls, path, **kwargs) -> "Document":
        """Read a document from disk, using the path as its id by default."""
        with open(path, encoding="utf-8") as f:
            content = f.read()
        kwargs.setdefault("id", str(path))
        return cls(content, **kwargs)


def get_root_namespace(content: str) -> str | None:
    """Return the namespace URI of the root element of an XML string."""
    try:
        # Content is already text, so the parser encoding overrides any declaration
        parser = DefusedXMLParser(encoding="utf-8")
        parser.feed(content.encode("utf-8"))
        root = parser.close()
    except (ParseError, DefusedXmlException, UnicodeError) as e:
        logger.debug(f"Unable to read root namespace: {e}")
        return None

    tag = root.tag
    if isinstance(tag, str) and tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return None
