"""
Order-X (Cross Industry Order) document generation.

Builds order documents in the BASIC, COMFORT or EXTENDED profile, serialises
them to XML and optionally embeds them into a PDF/A-3.
"""
from orderx.builder import OrderDocumentBuilder
from orderx.config import get_settings
from orderx.embed import embed_xml_in_pdf
from orderx.exceptions import EmbeddingError, MissingCapabilityError, OrderXError
from orderx.profiles import Profile

# Registry of available profiles
PROFILES: dict[str, Profile] = {p.value: p for p in Profile}


def create_builder(profile: str | Profile | None = None) -> OrderDocumentBuilder:
    """Create a builder for a new document.

    Args:
        profile: Profile or profile name. Uses ``ORDERX_DEFAULT_PROFILE`` if None.

    Raises:
        ValueError: If the profile name is unknown.
    """
    profile = profile or get_settings().default_profile
    return OrderDocumentBuilder(Profile.from_name(profile))


__all__ = [
    "EmbeddingError",
    "MissingCapabilityError",
    "OrderDocumentBuilder",
    "OrderXError",
    "PROFILES",
    "Profile",
    "create_builder",
    "embed_xml_in_pdf",
]
