"""
Markup stripping and entity decoding for feed titles and content.
"""
import html
import re
from typing import Optional, Pattern

_TAG_PATTERN: Pattern = re.compile(r"<[^>]*>")


class TextSanitizer:
    """
    Converts feed markup to plain text.
    
    Tags are removed first and entities decoded afterwards, so escaped markup
    such as ``&lt;b&gt;`` survives as literal text.
    """
    
    def __init__(self, tag_pattern: Optional[Pattern] = None):
        self._tag_pattern = tag_pattern or _TAG_PATTERN
    
    def clean(self, text: Optional[str]) -> str:
        """
        Strip tags, decode HTML entities and trim surrounding whitespace.
        
        Args:
            text: Raw title or content
            
        Returns:
            Plain text, empty string for empty input
        """
        if not text:
            return ""
        
        without_tags = self._tag_pattern.sub("", str(text))
        return html.unescape(without_tags).strip()


_default_sanitizer = TextSanitizer()


def sanitize_text(text: Optional[str]) -> str:
    """Sanitize text with the default sanitizer."""
    return _default_sanitizer.clean(text)
