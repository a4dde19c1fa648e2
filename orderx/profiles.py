"""
Order-X profiles and the field shapes each profile allows.

A profile fixes, once per document, whether a profile-sensitive field is
missing from the schema, holds a single value, or holds a list. Builders
create their slots from this table when a new document is initialised.
Smaller details a profile's schema lacks (a contact's fax number, a
reference's issue date) are listed in ``ELEMENT_PROFILES`` and left out by
the writer.

References:
- Order-X: https://fnfe-mpe.org/factur-x/order-x/
- SCRDM CI D22B schema: UN/CEFACT SCRDMCCBDACIOMessageStructure
"""
from __future__ import annotations

from enum import Enum

from orderx.slots import Shape, Slot


class Profile(Enum):
    """Order-X conformance level."""

    BASIC = "basic"
    COMFORT = "comfort"
    EXTENDED = "extended"

    @property
    def guideline_id(self) -> str:
        return PROFILE_IDS[self]

    @property
    def facturx_level(self) -> str:
        """Level name understood by the ``factur-x`` library."""
        return self.value

    @classmethod
    def from_name(cls, name: "str | Profile") -> "Profile":
        if isinstance(name, Profile):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown Order-X profile '{name}'. "
                f"Options: {[p.value for p in cls]}"
            ) from None


# Guideline ID per profile
PROFILE_IDS = {
    Profile.BASIC: "urn:order-x.eu:1p0:basic",
    Profile.COMFORT: "urn:order-x.eu:1p0:comfort",
    Profile.EXTENDED: "urn:order-x.eu:1p0:extended",
}

_A = Shape.ABSENT
_S = Shape.SINGLE
_L = Shape.LIST

# field -> (BASIC, COMFORT, EXTENDED)
FIELD_SHAPES: dict[str, tuple[Shape, Shape, Shape]] = {
    # ── Header parties ──
    "seller_party": (_S, _S, _S),
    "buyer_party": (_S, _S, _S),
    "buyer_requisitioner_party": (_A, _S, _S),
    "ship_to_party": (_S, _S, _S),
    "ship_from_party": (_A, _S, _S),
    "invoicee_party": (_A, _S, _S),
    "trade_contact": (_S, _S, _L),
    # ── Header agreement references ──
    "seller_order_referenced_document": (_A, _S, _S),
    "contract_referenced_document": (_S, _S, _L),
    "requisition_referenced_document": (_A, _S, _L),
    "additional_referenced_document": (_A, _L, _L),
    "blanket_order_referenced_document": (_S, _S, _L),
    "previous_order_change_referenced_document": (_A, _S, _L),
    "previous_order_response_referenced_document": (_A, _S, _L),
    "procuring_project": (_A, _S, _S),
    # ── Header delivery / settlement ──
    "requested_delivery_event": (_S, _S, _L),
    "payment_means": (_A, _S, _S),
    "allowance_charge": (_A, _L, _L),
    "payment_terms": (_A, _S, _L),
    "receivable_accounting_account": (_A, _S, _S),
    # ── Line items ──
    "line_note": (_S, _L, _L),
    "product_characteristic": (_A, _L, _L),
    "product_classification": (_A, _L, _L),
    "product_instance": (_A, _S, _L),
    "product_packaging": (_A, _S, _S),
    "product_origin_country": (_A, _S, _S),
    "product_referenced_document": (_A, _S, _L),
    "line_quotation_referenced_document": (_A, _S, _S),
    "line_additional_referenced_document": (_A, _L, _L),
    "gross_price": (_A, _S, _S),
    "gross_price_allowance_charge": (_A, _L, _L),
    "catalogue_referenced_document": (_A, _S, _L),
    "line_package_quantity": (_A, _S, _S),
    "line_per_package_quantity": (_A, _S, _S),
    "line_requested_delivery_event": (_A, _S, _L),
    "line_tax": (_A, _S, _L),
    "line_allowance_charge": (_A, _L, _L),
    "line_receivable_accounting_account": (_A, _S, _S),
}

_COLUMN = {Profile.BASIC: 0, Profile.COMFORT: 1, Profile.EXTENDED: 2}

_C_E = frozenset({Profile.COMFORT, Profile.EXTENDED})
_E = frozenset({Profile.EXTENDED})

# Child elements that only some profiles define. The writer leaves them out
# elsewhere; every element not listed here exists in all profiles.
ELEMENT_PROFILES: dict[str, frozenset[Profile]] = {
    "document.language_id": _E,
    "document.effective_period": _C_E,
    "note.content_code": _E,
    "party.description": _C_E,
    "contact.type_code": _C_E,
    "contact.fax": _E,
    "delivery_terms.description": _C_E,
    "delivery_terms.location": _C_E,
    "reference.uri_id": _C_E,
    "reference.type_code": _C_E,
    "reference.name": _C_E,
    "reference.attachment": _C_E,
    "reference.reference_type_code": _C_E,
    "reference.issue_date": _E,
    "accounting_account.type_code": _C_E,
    "product.description": _C_E,
    "product.batch_id": _C_E,
    "product.brand_name": _C_E,
    "tax.calculated_amount": _E,
    "tax.exemption_reason": _E,
    "tax.exemption_reason_code": _E,
    "allowance_charge.basis_quantity": _E,
    "line_summation.total_allowance_charge_amount": _E,
}


def field_shape(profile: Profile, field: str) -> Shape:
    """Return the shape ``field`` takes in ``profile``."""
    try:
        shapes = FIELD_SHAPES[field]
    except KeyError:
        raise KeyError(f"'{field}' is not a profile-sensitive field") from None
    return shapes[_COLUMN[profile]]


def element_supported(profile: Profile, element: str) -> bool:
    """Whether the XML schema of ``profile`` has the child element ``element``."""
    profiles = ELEMENT_PROFILES.get(element)
    return profiles is None or profile in profiles


def new_slot(profile: Profile, field: str) -> Slot:
    """Create an empty slot for ``field`` shaped by ``profile``."""
    return Slot(field, field_shape(profile, field), profile=profile.name)
