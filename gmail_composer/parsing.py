"""
Parsing module for email content.
Provides HTML to text conversion, header decoding and draft formatting.
"""

import re
import html
from email.header import decode_header, make_header
from email.errors import HeaderParseError


# =============================================================================
# HTML PARSING
# =============================================================================

def html_to_text(html_content: str) -> str:
    """
    Convert HTML to plain text.

    Args:
        html_content: HTML string to convert

    Returns:
        Plain text string with whitespace cleaned up
    """
    if not html_content:
        return ""

    text = html_content

    # Remove style tags and content
    text = re.sub(r'<style[^>]*>.*?</style>', '', text, flags=re.DOTALL | re.IGNORECASE)

    # Remove script tags and content
    text = re.sub(r'<script[^>]*>.*?</script>', '', text, flags=re.DOTALL | re.IGNORECASE)

    # Replace block elements with newlines
    text = re.sub(r'<(br|p|div|tr|li)[^>]*>', '\n', text, flags=re.IGNORECASE)

    # Remove all other HTML tags
    text = re.sub(r'<[^>]+>', '', text)

    # Decode HTML entities
    text = html.unescape(text)

    # Clean up whitespace
    text = re.sub(r'\n\s*\n', '\n\n', text)
    text = re.sub(r'[ \xa0]+', ' ', text)

    return text.strip()


# =============================================================================
# HEADERS
# =============================================================================

def decode_header_value(value: str) -> str:
    """
    Decode RFC 2047 encoded words in a header value.

    Values that are not encoded, or cannot be decoded, are returned as-is.
    """
    if not value or "=?" not in value:
        return value or ""
    try:
        return str(make_header(decode_header(value)))
    except (HeaderParseError, LookupError, UnicodeDecodeError):
        return value


# =============================================================================
# DRAFT FORMATTING
# =============================================================================

def format_draft_summary(draft) -> dict:
    """
    Format a draft for listing.

    Args:
        draft: Draft loaded with format=full

    Returns:
        Dict with id, to, subject and snippet; blank fields get placeholders
    """
    to = decode_header_value(draft.payload.header("To") or "")
    subject = decode_header_value(draft.payload.header("Subject") or "")
    return {
        "id": draft.id,
        "to": to or "[No Recipient]",
        "subject": subject or "[No Subject]",
        "snippet": html.unescape(draft.snippet or "")[:200],
    }
