"""
Document formatting for knowledge content.

Each content item becomes a single markdown document that is uploaded to the
provider and chunked there. Retrieval happens entirely on the provider side,
so the voice instructions below travel inside the document itself: it is the
only place the answering model is guaranteed to see them next to the facts.
"""

import logging
from typing import List

from app.features.knowledge.models import (
    CatalogContent,
    ContentType,
    Product,
    QAContent,
    TextContent,
    WebsiteContent,
)

logger = logging.getLogger("LinkAI.Knowledge.Formatter")


VOICE_INSTRUCTIONS = (
    "> Response guidelines: this document is our own business knowledge. "
    "When you use it, speak as the business in the first person plural "
    "(\"we\", \"our\", \"us\"). Never refer to \"the document\", \"the company\" "
    "or \"they\" when describing what we offer."
)

EMPTY_CATALOG_GUIDANCE = (
    "Our product catalog is currently empty. If a customer asks about products, "
    "prices or availability, let them know we are updating our catalog and offer "
    "to help with anything else or to take their contact details for a follow-up."
)

IMAGE_INSTRUCTIONS = (
    "Share this image URL only the first time you mention this product in a "
    "conversation. Do not repeat it afterwards unless the customer asks to see "
    "the product again."
)


def _document(heading: str, body_parts: List[str]) -> str:
    parts = [VOICE_INSTRUCTIONS, f"# {heading}"]
    parts.extend(p for p in body_parts if p)
    return "\n\n".join(parts) + "\n"


def format_text(item: TextContent) -> str:
    heading = item.title or "Text Content"
    return _document(heading, [item.content.strip()])


def format_qa(item: QAContent) -> str:
    return _document(
        "Question and Answer",
        [
            f"## Question\n{item.question.strip()}",
            f"## Answer\n{item.answer.strip()}",
        ],
    )


def format_website(item: WebsiteContent) -> str:
    heading = f"Website Content: {item.title}" if item.title else "Website Content"
    body = [f"URL: {item.url}"]
    if item.content and item.content.strip():
        body.append(item.content.strip())
    else:
        # Nothing scraped yet; point the model at the page itself
        body.append("Please refer to this website for information.")
    return _document(heading, body)


def _format_product(product: Product) -> str:
    lines = [f"### {product.title}"]
    if product.description:
        lines.append(product.description.strip())
    if product.price is not None:
        lines.append(f"- Price: ${product.price:.2f}")
    if product.tax_rate is not None:
        lines.append(f"- Tax Rate: {product.tax_rate * 100:.2f}%")
    if product.categories:
        lines.append(f"- Categories: {', '.join(product.categories)}")
    if product.image_url:
        lines.append(f"- Image URL: {product.image_url}")
        lines.append(f"- Image usage: {IMAGE_INSTRUCTIONS}")
    return "\n".join(lines)


def format_catalog(item: CatalogContent) -> str:
    body = []
    if item.instructions and item.instructions.strip():
        body.append(f"## Instructions\n{item.instructions.strip()}")

    if not item.products:
        logger.info(f"Catalog {item.id} has no products, emitting guidance stub")
        body.append(f"## Products\n{EMPTY_CATALOG_GUIDANCE}")
        return _document("Product Catalog", body)

    body.append("## Products")
    body.extend(_format_product(p) for p in item.products)
    return _document("Product Catalog", body)


_FORMATTERS = {
    ContentType.TEXT: format_text,
    ContentType.QA: format_qa,
    ContentType.CATALOG: format_catalog,
    ContentType.WEBSITE: format_website,
}


def format_content(item) -> str:
    """
    Build the canonical document for any content item.

    Args:
        item: A validated TextContent, QAContent, CatalogContent or WebsiteContent

    Returns:
        Markdown document, always starting with the voice instructions
    """
    return _FORMATTERS[item.content_type](item)


def document_filename(item) -> str:
    """Filename used for the uploaded document."""
    return f"{item.content_type.value}_content_{item.id}.md"
