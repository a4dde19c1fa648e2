"""
Hybrid Order-X PDFs.

``embed_xml_in_pdf`` hands an order sheet and the order XML to ``factur-x``
with the ``order-x`` flavor and the document's profile level. The library
checks the XML against that profile's schema unless ``check_xsd`` is off.
An empty result is reported as ``EmbeddingError`` instead of being written.
"""
from __future__ import annotations

import logging

from orderx.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


def embed_xml_in_pdf(
    pdf_bytes: bytes,
    xml_bytes: bytes,
    *,
    level: str = "extended",
    lang: str = "de",
    check_xsd: bool = True,
    pdf_metadata: dict | None = None,
) -> bytes:
    """Embed Order-X XML into a PDF, producing a PDF/A-3 file.

    Args:
        pdf_bytes: The original PDF as bytes.
        xml_bytes: The Order-X XML as bytes (UTF-8).
        level: Profile level ('basic', 'comfort', 'extended').
        lang: PDF language tag (RFC 3066), e.g. 'de' for German.
        check_xsd: Let factur-x validate the XML against the Order-X schema.
        pdf_metadata: Optional dict with keys 'author', 'title', 'subject', 'keywords'.

    Returns:
        The Order-X PDF as bytes.

    Raises:
        ImportError: If the ``factur-x`` library is not installed.
        EmbeddingError: If the library returns no PDF.
    """
    try:
        from facturx import generate_from_binary
    except ImportError:
        raise ImportError(
            "The 'factur-x' library is required for Order-X PDF generation. "
            "Install it with: pip install factur-x"
        )

    logger.info("Embedding order-x XML (level=%s) into PDF/A-3", level)

    result_pdf = generate_from_binary(
        pdf_bytes,
        xml_bytes,
        flavor="order-x",
        level=level,
        check_xsd=check_xsd,
        pdf_metadata=pdf_metadata,
        lang=lang,
    )

    if not result_pdf:
        raise EmbeddingError("factur-x library returned empty PDF")

    logger.info("Successfully generated order-x PDF/A-3 (%d bytes)", len(result_pdf))
    return result_pdf
