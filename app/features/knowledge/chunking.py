"""
Chunking profiles for the vector store.

The provider splits each attached file itself; all we control is the static
(max size, overlap) policy, chosen per content type:

- qa: large chunks so a question is never split from its answer
- pdf: the widest overlap, to carry context across page breaks
- website: scraped pages are dense, so smaller chunks
- text: the default, also used for anything unrecognised (catalogs included)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from app.features.knowledge.models import ContentType


@dataclass(frozen=True)
class ChunkingProfile:
    max_chunk_tokens: int
    overlap_tokens: int

    def as_chunking_strategy(self) -> Dict[str, Any]:
        """Render as the provider's ``chunking_strategy`` parameter."""
        return {
            "type": "static",
            "static": {
                "max_chunk_size_tokens": self.max_chunk_tokens,
                "chunk_overlap_tokens": self.overlap_tokens,
            },
        }


DEFAULT_PROFILE = ChunkingProfile(max_chunk_tokens=800, overlap_tokens=300)

CHUNKING_PROFILES = {
    "text": DEFAULT_PROFILE,
    "qa": ChunkingProfile(max_chunk_tokens=1200, overlap_tokens=300),
    "pdf": ChunkingProfile(max_chunk_tokens=800, overlap_tokens=400),
    "website": ChunkingProfile(max_chunk_tokens=600, overlap_tokens=200),
}


def profile_for(content_type: Optional[Union[str, ContentType]]) -> ChunkingProfile:
    """Return the chunking profile for a content type, falling back to text."""
    if isinstance(content_type, ContentType):
        content_type = content_type.value
    return CHUNKING_PROFILES.get(content_type, DEFAULT_PROFILE)
