"""
Wire codec for the Gmail "raw" message format.

Encodes a ComposedEmail into a multipart/mixed MIME message transported as
unpadded base64url, and decodes a provider draft tree back into an editable
ComposedEmail.
"""

import base64
import binascii
import itertools
import logging
import time
from email.header import Header
from typing import Optional

from .models import ComposedEmail, Draft, MessageTree
from .parsing import decode_header_value

logger = logging.getLogger(__name__)

CRLF = "\r\n"

# Shown in place of a body that cannot be decoded so the draft stays editable
UNDECODABLE_BODY = "<p>Could not decode email body.</p>"

_boundary_sequence = itertools.count(1)

_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


# =============================================================================
# BASE64URL
# =============================================================================

def b64url_encode(data: bytes) -> str:
    """Base64url encode without padding (RFC 4648 section 5)."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    """
    Inverse of b64url_encode; tolerates missing padding.

    Raises:
        binascii.Error: Data holds characters outside the base64url alphabet
    """
    data = data.strip().translate(_URLSAFE_TO_STANDARD)
    return base64.b64decode(data + "=" * (-len(data) % 4), validate=True)


# =============================================================================
# ENCODE
# =============================================================================

def new_boundary() -> str:
    """Return a boundary token distinct from every other one in this process."""
    return f"----={time.time_ns()}.{next(_boundary_sequence)}"


def _header_value(value: str) -> str:
    """Fold CR and LF to spaces so a value cannot start a new header line."""
    return " ".join(value.splitlines()) if value else ""


def _quoted(value: str) -> str:
    return _header_value(value).replace("\\", "\\\\").replace('"', '\\"')


def _encode_subject(subject: str) -> str:
    subject = _header_value(subject)
    if subject.isascii():
        return subject
    return Header(subject, "utf-8").encode(linesep=CRLF)


def _wrap_base64(data: bytes, width: int = 76) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return CRLF.join(encoded[i:i + width] for i in range(0, len(encoded), width))


def build_mime_text(email: ComposedEmail, boundary: Optional[str] = None) -> str:
    """
    Build the multipart/mixed MIME text for an email.

    The HTML body is written verbatim; attachments follow in input order as
    base64 parts.

    Args:
        email: Email to encode
        boundary: Boundary token (a fresh one is generated when omitted)

    Returns:
        MIME message text with CRLF line endings
    """
    boundary = boundary or new_boundary()

    lines = [
        f"To: {_header_value(email.recipient)}",
        f"Subject: {_encode_subject(email.subject)}",
        "MIME-Version: 1.0",
        f'Content-Type: multipart/mixed; boundary="{boundary}"',
        "",
        f"--{boundary}",
        'Content-Type: text/html; charset="UTF-8"',
        "",
        email.body_html,
    ]

    for attachment in email.attachments:
        lines.extend([
            f"--{boundary}",
            f'Content-Type: {_header_value(attachment.mime_type)}; name="{_quoted(attachment.filename)}"',
            f'Content-Disposition: attachment; filename="{_quoted(attachment.filename)}"',
            "Content-Transfer-Encoding: base64",
            "",
            _wrap_base64(attachment.data),
        ])

    lines.append(f"--{boundary}--")
    return CRLF.join(lines)


def encode_message(email: ComposedEmail) -> str:
    """
    Encode an email as a Gmail raw message.

    Args:
        email: Email to encode

    Returns:
        Unpadded base64url string of the UTF-8 MIME text
    """
    mime_text = build_mime_text(email)
    return b64url_encode(mime_text.encode("utf-8"))


# =============================================================================
# DECODE
# =============================================================================

def find_html_part(parts) -> Optional[MessageTree]:
    """Depth-first search for the first text/html node."""
    for part in parts:
        if part.mime_type == "text/html":
            return part
        if part.parts:
            nested = find_html_part(part.parts)
            if nested is not None:
                return nested
    return None


def decode_body(data: str) -> str:
    """
    Decode inline base64url body data as UTF-8.

    Returns:
        The HTML text, or UNDECODABLE_BODY when the data is malformed
    """
    try:
        return b64url_decode(data).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Error decoding base64 body: {e}")
        return UNDECODABLE_BODY


def decode_message(tree: MessageTree, draft_id: Optional[str] = None) -> ComposedEmail:
    """
    Decode a provider message tree into an editable email.

    Attachments are not reconstructed.

    Args:
        tree: Root payload node
        draft_id: Draft id to carry on the result

    Returns:
        ComposedEmail with recipient, subject and HTML body
    """
    recipient = decode_header_value(tree.header("To") or "")
    subject = decode_header_value(tree.header("Subject") or "")

    html_part = find_html_part(tree.parts) if tree.parts else tree

    body = ""
    if html_part is not None and html_part.body_data:
        body = decode_body(html_part.body_data)

    return ComposedEmail(
        id=draft_id,
        recipient=recipient,
        subject=subject,
        body_html=body,
    )


def decode_draft(draft: Draft) -> ComposedEmail:
    """Decode a draft loaded with format=full, keeping its id."""
    return decode_message(draft.payload, draft_id=draft.id)
