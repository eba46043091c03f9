"""
Feed document parser producing a generic nested structure.

Attributes are exposed as ``@name`` keys and element text as ``#text`` when
the element also carries attributes. Repeated child elements become lists.
"""
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from alert_feed.core.exceptions import ParseError

ATTRIBUTE_PREFIX = "@"
TEXT_KEY = "#text"


class FeedDocumentParser:
    """
    XML parser for Atom and RSS documents.
    
    Uses BeautifulSoup's XML tree builder (lxml) and converts the tree into
    plain dicts, lists and strings.
    """
    
    def __init__(self, features: str = "xml"):
        self.features = features
    
    def parse(self, text: Optional[str]) -> Dict[str, Any]:
        """
        Parse a feed document.
        
        Args:
            text: Raw feed text
            
        Returns:
            Mapping of the root element name to its converted value
            
        Raises:
            ParseError: If the text is empty or contains no XML element
        """
        if not text or not text.strip():
            raise ParseError("Feed document is empty")
        
        try:
            soup = BeautifulSoup(text, self.features)
        except ParserRejectedMarkup as e:
            raise ParseError(f"Feed document could not be parsed: {e}") from e
        
        root = next((c for c in soup.children if isinstance(c, Tag)), None)
        if root is None:
            raise ParseError("Feed document has no root element")
        
        return {self._tag_name(root): self._convert(root)}
    
    def _tag_name(self, element: Tag) -> str:
        """Element name including its namespace prefix, if any."""
        if element.prefix:
            return f"{element.prefix}:{element.name}"
        return element.name
    
    def _convert(self, element: Tag) -> Any:
        """Convert an element into a string or a dict."""
        children: List[Tag] = [c for c in element.children if isinstance(c, Tag)]
        attributes = {
            f"{ATTRIBUTE_PREFIX}{name}": value
            for name, value in element.attrs.items()
        }
        
        if not children:
            text = element.get_text().strip()
            if not attributes:
                return text
            if text:
                attributes[TEXT_KEY] = text
            return attributes
        
        node: Dict[str, Any] = dict(attributes)
        
        # Mixed content keeps its direct text alongside the children
        direct_text = "".join(
            str(s) for s in element.find_all(string=True, recursive=False)
        ).strip()
        if direct_text:
            node[TEXT_KEY] = direct_text
        
        for child in children:
            name = self._tag_name(child)
            value = self._convert(child)
            if name not in node:
                node[name] = value
            elif isinstance(node[name], list):
                node[name].append(value)
            else:
                node[name] = [node[name], value]
        
        return node
