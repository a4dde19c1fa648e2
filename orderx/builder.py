"""
Fluent builder for Order-X documents.

Every public operation mutates the document being built and returns the
builder, so calls can be chained::

    builder = OrderDocumentBuilder.create_new(Profile.EXTENDED)
    (builder
        .set_document_information("ORD-1", "220", date.today(), "EUR")
        .set_document_seller("Seller Inc")
        .set_document_buyer("Buyer Inc")
        .add_new_position("1")
        .set_document_position_product_details(name="Widget")
        .set_document_position_net_price(10)
        .set_document_position_line_summation(10))
    xml = builder.get_content()

Calls whose target does not exist yet (no party, no position, no product)
are ignored. Calls the profile does not support are ignored with a warning,
or raise ``MissingCapabilityError`` in strict mode.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Optional

from orderx import factory
from orderx.base import DecimalLike, LineItem, OrderDocument, PaymentTerms, Period, TradeParty, TradeProduct
from orderx.config import get_settings
from orderx.embed import embed_xml_in_pdf
from orderx.exceptions import MissingCapabilityError
from orderx.pdf import build_order_pdf
from orderx.profiles import Profile, field_shape
from orderx.slots import Shape, Slot
from orderx.writer import OrderXmlWriter

logger = logging.getLogger(__name__)

# Role -> party slot on a document
_PARTY_SLOTS: dict[str, Callable[[OrderDocument], Slot]] = {
    "seller": lambda d: d.transaction.agreement.seller_party,
    "buyer": lambda d: d.transaction.agreement.buyer_party,
    "buyer_requisitioner": lambda d: d.transaction.agreement.buyer_requisitioner_party,
    "ship_to": lambda d: d.transaction.delivery.ship_to_party,
    "ship_from": lambda d: d.transaction.delivery.ship_from_party,
    "invoicee": lambda d: d.transaction.settlement.invoicee_party,
}


class OrderDocumentBuilder:
    """Assembles one Order-X document for a fixed profile."""

    def __init__(self, profile: Profile | str, strict: Optional[bool] = None):
        settings = get_settings()
        self._profile = Profile.from_name(profile)
        self.strict = settings.strict_capabilities if strict is None else strict
        self._writer = OrderXmlWriter(pretty_print=settings.pretty_print)
        self._pdf_lang = settings.pdf_lang
        self._document: OrderDocument
        self._current_position: Optional[LineItem] = None
        self._current_payment_terms: Optional[PaymentTerms] = None
        self.init_new_document()

    @classmethod
    def create_new(cls, profile: Profile | str, strict: Optional[bool] = None) -> "OrderDocumentBuilder":
        return cls(profile, strict=strict)

    # ── State ───────────────────────────────────────────────────
    @property
    def profile(self) -> Profile:
        return self._profile

    @property
    def document(self) -> OrderDocument:
        return self._document

    @property
    def current_position(self) -> Optional[LineItem]:
        """The line added last; line-scoped operations target it."""
        return self._current_position

    @property
    def current_payment_terms(self) -> Optional[PaymentTerms]:
        return self._current_payment_terms

    def init_new_document(self) -> "OrderDocumentBuilder":
        """Start a fresh document, discarding the current one."""
        self._document = factory.new_document(self._profile)
        self._current_position = None
        self._current_payment_terms = None
        logger.info("New Order-X document (%s profile)", self._profile.name)
        return self

    # ── Internal helpers ────────────────────────────────────────
    def _refuse(self, exc: MissingCapabilityError) -> bool:
        if self.strict:
            raise exc
        logger.warning("%s, call ignored", exc)
        return False

    def _apply(self, mutator: Callable[[Any], None], value: Any) -> bool:
        """Run a slot mutator; unsupported calls are logged or raised."""
        try:
            mutator(value)
        except MissingCapabilityError as exc:
            return self._refuse(exc)
        return True

    def _check(self, field: str) -> bool:
        """Whether the profile carries the single-valued ``field``."""
        if field_shape(self._profile, field) is Shape.ABSENT:
            return self._refuse(MissingCapabilityError(field, "set", self._profile.name))
        return True

    def _skip(self, target: str) -> "OrderDocumentBuilder":
        logger.debug("No %s yet, call ignored", target)
        return self

    def _party_slot(self, role: str) -> Slot:
        return _PARTY_SLOTS[role](self._document)

    def _party(self, role: str) -> Optional[TradeParty]:
        return self._party_slot(role).first()

    def _product(self) -> Optional[TradeProduct]:
        if self._current_position is None:
            return None
        return self._current_position.product

    # ── Document information ────────────────────────────────────
    def set_document_information(self, document_no: str, document_type_code: str, document_date: date,
                                 order_currency: str, document_name: Optional[str] = None,
                                 document_language: Optional[str] = None,
                                 effective_specified_period: Optional[date] = None,
                                 purpose_code: Optional[str] = None,
                                 requested_response_type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        """Set the main document data and the order currency.

        ``document_type_code``: 220 = order, 230 = order change, 231 = order response.
        ``purpose_code``: 7 = duplicate, 9 = original, 35 = retransmission.
        ``requested_response_type_code``: AC requests an order response.
        """
        info = self._document.document
        info.id = document_no
        info.type_code = document_type_code
        info.issue_date = document_date
        if document_name is not None:
            info.name = document_name
        if document_language is not None:
            info.language_ids = [document_language]
        if effective_specified_period is not None:
            info.effective_period = Period(effective_specified_period, effective_specified_period)
        if purpose_code is not None:
            info.purpose_code = purpose_code
        if requested_response_type_code is not None:
            info.requested_response_type_code = requested_response_type_code
        self._document.transaction.settlement.order_currency_code = order_currency
        return self

    def set_document_business_process_specified_document_context_parameter(
            self, business_process: str) -> "OrderDocumentBuilder":
        self._document.context.business_process_id = business_process
        return self

    def set_is_document_copy(self, is_document_copy: Optional[bool] = None) -> "OrderDocumentBuilder":
        self._document.document.copy_indicator = True if is_document_copy is None else is_document_copy
        return self

    def set_is_test_document(self, is_test_document: Optional[bool] = None) -> "OrderDocumentBuilder":
        self._document.context.test_indicator = True if is_test_document is None else is_test_document
        return self

    def add_document_note(self, content: str, subject_code: Optional[str] = None) -> "OrderDocumentBuilder":
        """Add a free-text note; ``subject_code`` is from UNTDID 4451 (e.g. AAI, REG)."""
        self._document.document.notes.append(factory.note(content, subject_code=subject_code))
        return self

    def set_document_summation(self, grand_total_amount: DecimalLike,
                               line_total_amount: Optional[DecimalLike] = None,
                               charge_total_amount: Optional[DecimalLike] = None,
                               allowance_total_amount: Optional[DecimalLike] = None,
                               tax_basis_total_amount: Optional[DecimalLike] = None,
                               tax_total_amount: Optional[DecimalLike] = None) -> "OrderDocumentBuilder":
        """Set the document totals.

        Tax totals carry the order currency as set by ``set_document_information``
        at the time of this call, so call that first.
        """
        settlement = self._document.transaction.settlement
        summation = factory.header_monetary_summation(
            grand_total_amount, line_total_amount, charge_total_amount,
            allowance_total_amount, tax_basis_total_amount, tax_total_amount,
        )
        currency = settlement.order_currency_code
        if currency is None and summation.tax_total_amounts:
            logger.warning("Order currency not set, tax total written without currency")
        for amount in summation.tax_total_amounts:
            amount.currency_id = currency
        settlement.monetary_summation = summation
        return self

    def set_document_buyer_reference(self, buyer_reference: str) -> "OrderDocumentBuilder":
        self._document.transaction.agreement.buyer_reference = buyer_reference
        return self

    # ── Trade parties (shared) ──────────────────────────────────
    def _set_party(self, role: str, name: str, id: Optional[str],
                   description: Optional[str]) -> "OrderDocumentBuilder":
        self._apply(self._party_slot(role).set, factory.trade_party(self._profile, name, id, description))
        return self

    def _add_party_global_id(self, role: str, global_id: str, global_id_type: str) -> "OrderDocumentBuilder":
        party = self._party(role)
        if party is None:
            return self._skip(f"{role} party")
        party.global_ids.append(factory.identifier(global_id, global_id_type))
        return self

    def _add_party_tax_registration(self, role: str, tax_reg_type: str, tax_reg_id: str) -> "OrderDocumentBuilder":
        party = self._party(role)
        if party is None:
            return self._skip(f"{role} party")
        party.tax_registrations.append(factory.tax_registration(tax_reg_type, tax_reg_id))
        return self

    def _set_party_address(self, role: str, *address) -> "OrderDocumentBuilder":
        party = self._party(role)
        if party is None:
            return self._skip(f"{role} party")
        party.postal_address = factory.trade_address(*address)
        return self

    def _set_party_legal_organisation(self, role: str, legal_org_id: Optional[str],
                                      legal_org_type: Optional[str],
                                      legal_org_name: Optional[str]) -> "OrderDocumentBuilder":
        party = self._party(role)
        if party is None:
            return self._skip(f"{role} party")
        party.legal_organization = factory.legal_organization(legal_org_id, legal_org_type, legal_org_name)
        return self

    def _set_party_contact(self, role: str, *contact) -> "OrderDocumentBuilder":
        party = self._party(role)
        if party is None:
            return self._skip(f"{role} party")
        self._apply(party.contacts.set_first, factory.trade_contact(*contact))
        return self

    def _add_party_contact(self, role: str, *contact) -> "OrderDocumentBuilder":
        party = self._party(role)
        if party is None:
            return self._skip(f"{role} party")
        self._apply(party.contacts.add, factory.trade_contact(*contact))
        return self

    def _set_party_universal_communication(self, role: str, uri_type: Optional[str],
                                           uri_id: Optional[str]) -> "OrderDocumentBuilder":
        party = self._party(role)
        if party is None:
            return self._skip(f"{role} party")
        party.uri_communication = factory.universal_communication(uri_type, uri_id)
        return self

    # ── Seller ──────────────────────────────────────────────────
    def set_document_seller(self, name: str, id: Optional[str] = None,
                            description: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party("seller", name, id, description)

    def add_document_seller_global_id(self, global_id: str, global_id_type: str) -> "OrderDocumentBuilder":
        """Add a global id; ``global_id_type`` is an ISO 6523 scheme, e.g. 0088 for GLN."""
        return self._add_party_global_id("seller", global_id, global_id_type)

    def add_document_seller_tax_registration(self, tax_reg_type: str, tax_reg_id: str) -> "OrderDocumentBuilder":
        """Add a tax registration; ``tax_reg_type`` is VA (VAT id) or FC (tax number)."""
        return self._add_party_tax_registration("seller", tax_reg_type, tax_reg_id)

    def set_document_seller_address(self, line_one: Optional[str] = None, line_two: Optional[str] = None,
                                    line_three: Optional[str] = None, postcode: Optional[str] = None,
                                    city: Optional[str] = None, country: Optional[str] = None,
                                    subdivision: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_address("seller", line_one, line_two, line_three, postcode, city, country, subdivision)

    def set_document_seller_legal_organisation(self, legal_org_id: Optional[str] = None,
                                               legal_org_type: Optional[str] = None,
                                               legal_org_name: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_legal_organisation("seller", legal_org_id, legal_org_type, legal_org_name)

    def set_document_seller_contact(self, person_name: Optional[str] = None, department_name: Optional[str] = None,
                                    phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                    email: Optional[str] = None,
                                    type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_contact("seller", person_name, department_name, phone_no, fax_no, email, type_code)

    def add_document_seller_contact(self, person_name: Optional[str] = None, department_name: Optional[str] = None,
                                    phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                    email: Optional[str] = None,
                                    type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._add_party_contact("seller", person_name, department_name, phone_no, fax_no, email, type_code)

    def set_document_seller_universal_communication(self, uri_type: Optional[str] = None,
                                                    uri_id: Optional[str] = None) -> "OrderDocumentBuilder":
        """Set the electronic address; ``uri_type`` is an EAS code, e.g. EM for e-mail."""
        return self._set_party_universal_communication("seller", uri_type, uri_id)

    # ── Buyer ───────────────────────────────────────────────────
    def set_document_buyer(self, name: str, id: Optional[str] = None,
                           description: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party("buyer", name, id, description)

    def add_document_buyer_global_id(self, global_id: str, global_id_type: str) -> "OrderDocumentBuilder":
        return self._add_party_global_id("buyer", global_id, global_id_type)

    def add_document_buyer_tax_registration(self, tax_reg_type: str, tax_reg_id: str) -> "OrderDocumentBuilder":
        return self._add_party_tax_registration("buyer", tax_reg_type, tax_reg_id)

    def set_document_buyer_address(self, line_one: Optional[str] = None, line_two: Optional[str] = None,
                                   line_three: Optional[str] = None, postcode: Optional[str] = None,
                                   city: Optional[str] = None, country: Optional[str] = None,
                                   subdivision: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_address("buyer", line_one, line_two, line_three, postcode, city, country, subdivision)

    def set_document_buyer_legal_organisation(self, legal_org_id: Optional[str] = None,
                                              legal_org_type: Optional[str] = None,
                                              legal_org_name: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_legal_organisation("buyer", legal_org_id, legal_org_type, legal_org_name)

    def set_document_buyer_contact(self, person_name: Optional[str] = None, department_name: Optional[str] = None,
                                   phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                   email: Optional[str] = None,
                                   type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_contact("buyer", person_name, department_name, phone_no, fax_no, email, type_code)

    def add_document_buyer_contact(self, person_name: Optional[str] = None, department_name: Optional[str] = None,
                                   phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                   email: Optional[str] = None,
                                   type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._add_party_contact("buyer", person_name, department_name, phone_no, fax_no, email, type_code)

    def set_document_buyer_universal_communication(self, uri_type: Optional[str] = None,
                                                   uri_id: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_universal_communication("buyer", uri_type, uri_id)

    # ── Buyer requisitioner ─────────────────────────────────────
    def set_document_buyer_requisitioner(self, name: str, id: Optional[str] = None,
                                         description: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party("buyer_requisitioner", name, id, description)

    def add_document_buyer_requisitioner_global_id(self, global_id: str,
                                                   global_id_type: str) -> "OrderDocumentBuilder":
        return self._add_party_global_id("buyer_requisitioner", global_id, global_id_type)

    def add_document_buyer_requisitioner_tax_registration(self, tax_reg_type: str,
                                                          tax_reg_id: str) -> "OrderDocumentBuilder":
        return self._add_party_tax_registration("buyer_requisitioner", tax_reg_type, tax_reg_id)

    def set_document_buyer_requisitioner_address(self, line_one: Optional[str] = None,
                                                 line_two: Optional[str] = None,
                                                 line_three: Optional[str] = None,
                                                 postcode: Optional[str] = None, city: Optional[str] = None,
                                                 country: Optional[str] = None,
                                                 subdivision: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_address("buyer_requisitioner", line_one, line_two, line_three,
                                       postcode, city, country, subdivision)

    def set_document_buyer_requisitioner_legal_organisation(
            self, legal_org_id: Optional[str] = None, legal_org_type: Optional[str] = None,
            legal_org_name: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_legal_organisation("buyer_requisitioner", legal_org_id, legal_org_type, legal_org_name)

    def set_document_buyer_requisitioner_contact(self, person_name: Optional[str] = None,
                                                 department_name: Optional[str] = None,
                                                 phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                                 email: Optional[str] = None,
                                                 type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_contact("buyer_requisitioner", person_name, department_name,
                                       phone_no, fax_no, email, type_code)

    def add_document_buyer_requisitioner_contact(self, person_name: Optional[str] = None,
                                                 department_name: Optional[str] = None,
                                                 phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                                 email: Optional[str] = None,
                                                 type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._add_party_contact("buyer_requisitioner", person_name, department_name,
                                       phone_no, fax_no, email, type_code)

    def set_document_buyer_requisitioner_universal_communication(
            self, uri_type: Optional[str] = None, uri_id: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_universal_communication("buyer_requisitioner", uri_type, uri_id)

    # ── Ship-to ─────────────────────────────────────────────────
    def set_document_ship_to(self, name: str, id: Optional[str] = None,
                             description: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party("ship_to", name, id, description)

    def add_document_ship_to_global_id(self, global_id: str, global_id_type: str) -> "OrderDocumentBuilder":
        return self._add_party_global_id("ship_to", global_id, global_id_type)

    def add_document_ship_to_tax_registration(self, tax_reg_type: str, tax_reg_id: str) -> "OrderDocumentBuilder":
        return self._add_party_tax_registration("ship_to", tax_reg_type, tax_reg_id)

    def set_document_ship_to_address(self, line_one: Optional[str] = None, line_two: Optional[str] = None,
                                     line_three: Optional[str] = None, postcode: Optional[str] = None,
                                     city: Optional[str] = None, country: Optional[str] = None,
                                     subdivision: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_address("ship_to", line_one, line_two, line_three, postcode, city, country, subdivision)

    def set_document_ship_to_legal_organisation(self, legal_org_id: Optional[str] = None,
                                                legal_org_type: Optional[str] = None,
                                                legal_org_name: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_legal_organisation("ship_to", legal_org_id, legal_org_type, legal_org_name)

    def set_document_ship_to_contact(self, person_name: Optional[str] = None, department_name: Optional[str] = None,
                                     phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                     email: Optional[str] = None,
                                     type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_contact("ship_to", person_name, department_name, phone_no, fax_no, email, type_code)

    def add_document_ship_to_contact(self, person_name: Optional[str] = None, department_name: Optional[str] = None,
                                     phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                     email: Optional[str] = None,
                                     type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._add_party_contact("ship_to", person_name, department_name, phone_no, fax_no, email, type_code)

    def set_document_ship_to_universal_communication(self, uri_type: Optional[str] = None,
                                                     uri_id: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_universal_communication("ship_to", uri_type, uri_id)

    # ── Ship-from ───────────────────────────────────────────────
    def set_document_ship_from(self, name: str, id: Optional[str] = None,
                               description: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party("ship_from", name, id, description)

    def add_document_ship_from_global_id(self, global_id: str, global_id_type: str) -> "OrderDocumentBuilder":
        return self._add_party_global_id("ship_from", global_id, global_id_type)

    def add_document_ship_from_tax_registration(self, tax_reg_type: str,
                                                tax_reg_id: str) -> "OrderDocumentBuilder":
        return self._add_party_tax_registration("ship_from", tax_reg_type, tax_reg_id)

    def set_document_ship_from_address(self, line_one: Optional[str] = None, line_two: Optional[str] = None,
                                       line_three: Optional[str] = None, postcode: Optional[str] = None,
                                       city: Optional[str] = None, country: Optional[str] = None,
                                       subdivision: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_address("ship_from", line_one, line_two, line_three,
                                       postcode, city, country, subdivision)

    def set_document_ship_from_legal_organisation(self, legal_org_id: Optional[str] = None,
                                                  legal_org_type: Optional[str] = None,
                                                  legal_org_name: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_legal_organisation("ship_from", legal_org_id, legal_org_type, legal_org_name)

    def set_document_ship_from_contact(self, person_name: Optional[str] = None,
                                       department_name: Optional[str] = None,
                                       phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                       email: Optional[str] = None,
                                       type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_contact("ship_from", person_name, department_name, phone_no, fax_no, email, type_code)

    def add_document_ship_from_contact(self, person_name: Optional[str] = None,
                                       department_name: Optional[str] = None,
                                       phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                       email: Optional[str] = None,
                                       type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._add_party_contact("ship_from", person_name, department_name, phone_no, fax_no, email, type_code)

    def set_document_ship_from_universal_communication(self, uri_type: Optional[str] = None,
                                                       uri_id: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_universal_communication("ship_from", uri_type, uri_id)

    # ── Invoicee ────────────────────────────────────────────────
    def set_document_invoicee(self, name: str, id: Optional[str] = None,
                              description: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party("invoicee", name, id, description)

    def add_document_invoicee_global_id(self, global_id: str, global_id_type: str) -> "OrderDocumentBuilder":
        return self._add_party_global_id("invoicee", global_id, global_id_type)

    def add_document_invoicee_tax_registration(self, tax_reg_type: str,
                                               tax_reg_id: str) -> "OrderDocumentBuilder":
        return self._add_party_tax_registration("invoicee", tax_reg_type, tax_reg_id)

    def set_document_invoicee_address(self, line_one: Optional[str] = None, line_two: Optional[str] = None,
                                      line_three: Optional[str] = None, postcode: Optional[str] = None,
                                      city: Optional[str] = None, country: Optional[str] = None,
                                      subdivision: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_address("invoicee", line_one, line_two, line_three,
                                       postcode, city, country, subdivision)

    def set_document_invoicee_legal_organisation(self, legal_org_id: Optional[str] = None,
                                                 legal_org_type: Optional[str] = None,
                                                 legal_org_name: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_legal_organisation("invoicee", legal_org_id, legal_org_type, legal_org_name)

    def set_document_invoicee_contact(self, person_name: Optional[str] = None,
                                      department_name: Optional[str] = None,
                                      phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                      email: Optional[str] = None,
                                      type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_contact("invoicee", person_name, department_name, phone_no, fax_no, email, type_code)

    def add_document_invoicee_contact(self, person_name: Optional[str] = None,
                                      department_name: Optional[str] = None,
                                      phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                                      email: Optional[str] = None,
                                      type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._add_party_contact("invoicee", person_name, department_name, phone_no, fax_no, email, type_code)

    def set_document_invoicee_universal_communication(self, uri_type: Optional[str] = None,
                                                      uri_id: Optional[str] = None) -> "OrderDocumentBuilder":
        return self._set_party_universal_communication("invoicee", uri_type, uri_id)

    # ── Header agreement: terms, references, project ────────────
    def set_document_delivery_terms(self, code: Optional[str] = None, description: Optional[str] = None,
                                    function_code: Optional[str] = None,
                                    relevant_trade_location_id: Optional[str] = None,
                                    relevant_trade_location_name: Optional[str] = None) -> "OrderDocumentBuilder":
        """Set the delivery terms; ``code`` is an Incoterm (e.g. FCA, DAP)."""
        self._document.transaction.agreement.delivery_terms = factory.delivery_terms(
            code, description, function_code, relevant_trade_location_id, relevant_trade_location_name
        )
        return self

    def set_document_seller_order_referenced_document(self, seller_order_ref_id: str,
                                                      seller_order_ref_date: Optional[date] = None
                                                      ) -> "OrderDocumentBuilder":
        if not self._check("seller_order_referenced_document"):
            return self
        self._document.transaction.agreement.seller_order_referenced_document = factory.referenced_document(
            seller_order_ref_id, issue_date=seller_order_ref_date)
        return self

    def set_document_buyer_order_referenced_document(self, buyer_order_ref_id: str,
                                                     buyer_order_ref_date: Optional[date] = None
                                                     ) -> "OrderDocumentBuilder":
        self._document.transaction.agreement.buyer_order_referenced_document = factory.referenced_document(
            buyer_order_ref_id, issue_date=buyer_order_ref_date)
        return self

    def set_document_quotation_referenced_document(self, quotation_ref_id: str,
                                                   quotation_ref_date: Optional[date] = None
                                                   ) -> "OrderDocumentBuilder":
        self._document.transaction.agreement.quotation_referenced_document = factory.referenced_document(
            quotation_ref_id, issue_date=quotation_ref_date)
        return self

    def set_document_contract_referenced_document(self, contract_ref_id: str,
                                                  contract_ref_date: Optional[date] = None
                                                  ) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(contract_ref_id, issue_date=contract_ref_date)
        self._apply(self._document.transaction.agreement.contract_referenced_documents.set, ref)
        return self

    def add_document_contract_referenced_document(self, contract_ref_id: str,
                                                  contract_ref_date: Optional[date] = None
                                                  ) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(contract_ref_id, issue_date=contract_ref_date)
        self._apply(self._document.transaction.agreement.contract_referenced_documents.add, ref)
        return self

    def set_document_requisition_referenced_document(self, requisition_ref_id: str,
                                                     requisition_ref_date: Optional[date] = None
                                                     ) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(requisition_ref_id, issue_date=requisition_ref_date)
        self._apply(self._document.transaction.agreement.requisition_referenced_documents.set, ref)
        return self

    def add_document_requisition_referenced_document(self, requisition_ref_id: str,
                                                     requisition_ref_date: Optional[date] = None
                                                     ) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(requisition_ref_id, issue_date=requisition_ref_date)
        self._apply(self._document.transaction.agreement.requisition_referenced_documents.add, ref)
        return self

    def add_document_additional_referenced_document(self, additional_ref_type_code: str,
                                                    additional_ref_id: Optional[str],
                                                    additional_ref_uri_id: Optional[str] = None,
                                                    additional_ref_name: Optional[str] = None,
                                                    additional_ref_ref_type_code: Optional[str] = None,
                                                    additional_ref_date: Optional[date] = None,
                                                    binary_data_filename: Optional[str] = None
                                                    ) -> "OrderDocumentBuilder":
        """Add an additional reference.

        ``additional_ref_type_code``: 50 = tender or lot, 130 = invoiced object,
        916 = supporting document. ``binary_data_filename`` embeds the file.
        """
        ref = factory.referenced_document(
            additional_ref_id, additional_ref_uri_id, None, additional_ref_type_code,
            additional_ref_name, additional_ref_ref_type_code, additional_ref_date, binary_data_filename,
        )
        self._apply(self._document.transaction.agreement.additional_referenced_documents.add, ref)
        return self

    def set_document_blanket_order_referenced_document(self, blanket_order_ref_id: str) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(blanket_order_ref_id)
        self._apply(self._document.transaction.agreement.blanket_order_referenced_documents.set, ref)
        return self

    def add_document_blanket_order_referenced_document(self, blanket_order_ref_id: str) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(blanket_order_ref_id)
        self._apply(self._document.transaction.agreement.blanket_order_referenced_documents.add, ref)
        return self

    def set_document_previous_order_change_referenced_document(self, prev_order_change_ref_id: str,
                                                               prev_order_change_ref_date: Optional[date] = None
                                                               ) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(prev_order_change_ref_id, issue_date=prev_order_change_ref_date)
        self._apply(self._document.transaction.agreement.previous_order_change_referenced_documents.set, ref)
        return self

    def add_document_previous_order_change_referenced_document(self, prev_order_change_ref_id: str,
                                                               prev_order_change_ref_date: Optional[date] = None
                                                               ) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(prev_order_change_ref_id, issue_date=prev_order_change_ref_date)
        self._apply(self._document.transaction.agreement.previous_order_change_referenced_documents.add, ref)
        return self

    def set_document_previous_order_response_referenced_document(self, prev_order_response_ref_id: str,
                                                                 prev_order_response_ref_date: Optional[date] = None
                                                                 ) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(prev_order_response_ref_id, issue_date=prev_order_response_ref_date)
        self._apply(self._document.transaction.agreement.previous_order_response_referenced_documents.set, ref)
        return self

    def add_document_previous_order_response_referenced_document(self, prev_order_response_ref_id: str,
                                                                 prev_order_response_ref_date: Optional[date] = None
                                                                 ) -> "OrderDocumentBuilder":
        ref = factory.referenced_document(prev_order_response_ref_id, issue_date=prev_order_response_ref_date)
        self._apply(self._document.transaction.agreement.previous_order_response_referenced_documents.add, ref)
        return self

    def set_document_procuring_project(self, project_id: str, project_name: str) -> "OrderDocumentBuilder":
        self._apply(self._document.transaction.agreement.procuring_project.set,
                    factory.procuring_project(project_id, project_name))
        return self

    # ── Header delivery and settlement ──────────────────────────
    def set_document_requested_delivery_supply_chain_event(self, occurrence: Optional[date] = None,
                                                           start: Optional[date] = None,
                                                           end: Optional[date] = None) -> "OrderDocumentBuilder":
        """Set the requested delivery date, or a delivery period via ``start``/``end``."""
        event = factory.supply_chain_event(occurrence, start, end)
        self._apply(self._document.transaction.delivery.requested_delivery_events.set, event)
        return self

    def set_document_payment_mean(self, payment_means_code: str,
                                  payment_means_information: Optional[str] = None) -> "OrderDocumentBuilder":
        """Set the payment means; the code is from UNTDID 4461 (e.g. 58 = SEPA credit transfer)."""
        if not self._check("payment_means"):
            return self
        self._document.transaction.settlement.payment_means = factory.payment_means(
            payment_means_code, payment_means_information)
        return self

    def add_document_payment_term(self, payment_terms_description: str) -> "OrderDocumentBuilder":
        terms = factory.payment_terms(payment_terms_description)
        if self._apply(self._document.transaction.settlement.payment_terms.set, terms):
            self._current_payment_terms = terms
        return self

    def add_document_allowance_charge(self, actual_amount: DecimalLike, is_charge: bool,
                                      tax_category_code: Optional[str] = None,
                                      tax_type_code: Optional[str] = None,
                                      rate_applicable_percent: Optional[DecimalLike] = None,
                                      sequence: Optional[DecimalLike] = None,
                                      calculation_percent: Optional[DecimalLike] = None,
                                      basis_amount: Optional[DecimalLike] = None,
                                      basis_quantity: Optional[DecimalLike] = None,
                                      basis_quantity_unit_code: Optional[str] = None,
                                      reason_code: Optional[str] = None,
                                      reason: Optional[str] = None) -> "OrderDocumentBuilder":
        """Add a document level allowance (``is_charge=False``) or charge."""
        charge = factory.trade_allowance_charge(
            actual_amount, is_charge, tax_category_code, tax_type_code, rate_applicable_percent, sequence,
            calculation_percent, basis_amount, basis_quantity, basis_quantity_unit_code, reason_code, reason,
        )
        self._apply(self._document.transaction.settlement.allowance_charges.add, charge)
        return self

    def set_document_receivable_specified_trade_accounting_account(self, account_id: str,
                                                                   type_code: Optional[str] = None
                                                                   ) -> "OrderDocumentBuilder":
        self._apply(self._document.transaction.settlement.accounting_account.set,
                    factory.accounting_account(account_id, type_code))
        return self

    # ── Positions ───────────────────────────────────────────────
    def add_new_position(self, line_id: str, line_status_code: Optional[str] = None) -> "OrderDocumentBuilder":
        """Append a line; the following position calls apply to it."""
        item = factory.line_item(self._profile, line_id, line_status_code)
        self._document.transaction.line_items.append(item)
        self._current_position = item
        return self

    def set_document_position_note(self, content: Optional[str] = None, content_code: Optional[str] = None,
                                   subject_code: Optional[str] = None) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._apply(self._current_position.document.notes.set, factory.note(content, content_code, subject_code))
        return self

    def set_document_position_product_details(self, name: Optional[str] = None, description: Optional[str] = None,
                                              seller_assigned_id: Optional[str] = None,
                                              buyer_assigned_id: Optional[str] = None,
                                              global_id_type: Optional[str] = None,
                                              global_id: Optional[str] = None,
                                              batch_id: Optional[str] = None,
                                              brand_name: Optional[str] = None) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._current_position.product = factory.trade_product(
            self._profile, name, description, seller_assigned_id, buyer_assigned_id,
            global_id_type, global_id, batch_id, brand_name,
        )
        return self

    def set_document_position_product_characteristic(self, description: str, value: str,
                                                     type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        self._apply(product.characteristics.set, factory.product_characteristic(description, value, type_code))
        return self

    def add_document_position_product_characteristic(self, description: str, value: str,
                                                     type_code: Optional[str] = None) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        self._apply(product.characteristics.add, factory.product_characteristic(description, value, type_code))
        return self

    def set_document_position_product_classification(self, class_code: str, class_name: Optional[str] = None,
                                                     list_id: Optional[str] = None,
                                                     list_version_id: Optional[str] = None
                                                     ) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        self._apply(product.classifications.set,
                    factory.product_classification(class_code, class_name, list_id, list_version_id))
        return self

    def add_document_position_product_classification(self, class_code: str, class_name: Optional[str] = None,
                                                     list_id: Optional[str] = None,
                                                     list_version_id: Optional[str] = None
                                                     ) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        self._apply(product.classifications.add,
                    factory.product_classification(class_code, class_name, list_id, list_version_id))
        return self

    def set_document_position_product_instance(self, batch_id: Optional[str] = None,
                                               serial_id: Optional[str] = None) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        self._apply(product.instances.set, factory.product_instance(batch_id, serial_id))
        return self

    def add_document_position_product_instance(self, batch_id: Optional[str] = None,
                                               serial_id: Optional[str] = None) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        self._apply(product.instances.add, factory.product_instance(batch_id, serial_id))
        return self

    def set_document_position_applicable_supply_chain_packaging(
            self, type_code: Optional[str] = None,
            width: Optional[DecimalLike] = None, width_unit_code: Optional[str] = None,
            length: Optional[DecimalLike] = None, length_unit_code: Optional[str] = None,
            height: Optional[DecimalLike] = None, height_unit_code: Optional[str] = None) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        packaging = factory.supply_chain_packaging(type_code, width, width_unit_code, length, length_unit_code,
                                                   height, height_unit_code)
        self._apply(product.packaging.set, packaging)
        return self

    def set_document_position_product_origin_trade_country(self, country: str) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        if not self._check("product_origin_country"):
            return self
        product.origin_country = country
        return self

    def set_document_position_product_referenced_document(
            self, issuer_assigned_id: Optional[str] = None, type_code: Optional[str] = None,
            uri_id: Optional[str] = None, line_id: Optional[str] = None, name: Optional[str] = None,
            ref_type_code: Optional[str] = None, issue_date: Optional[date] = None,
            binary_data_filename: Optional[str] = None) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        ref = factory.referenced_document(issuer_assigned_id, uri_id, line_id, type_code, name,
                                          ref_type_code, issue_date, binary_data_filename)
        self._apply(product.referenced_documents.set, ref)
        return self

    def add_document_position_product_referenced_document(
            self, issuer_assigned_id: Optional[str] = None, type_code: Optional[str] = None,
            uri_id: Optional[str] = None, line_id: Optional[str] = None, name: Optional[str] = None,
            ref_type_code: Optional[str] = None, issue_date: Optional[date] = None,
            binary_data_filename: Optional[str] = None) -> "OrderDocumentBuilder":
        product = self._product()
        if product is None:
            return self._skip("product")
        ref = factory.referenced_document(issuer_assigned_id, uri_id, line_id, type_code, name,
                                          ref_type_code, issue_date, binary_data_filename)
        self._apply(product.referenced_documents.add, ref)
        return self

    def add_document_position_additional_referenced_document(
            self, issuer_assigned_id: Optional[str] = None, type_code: Optional[str] = None,
            uri_id: Optional[str] = None, line_id: Optional[str] = None, name: Optional[str] = None,
            ref_type_code: Optional[str] = None, issue_date: Optional[date] = None,
            binary_data_filename: Optional[str] = None) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        ref = factory.referenced_document(issuer_assigned_id, uri_id, line_id, type_code, name,
                                          ref_type_code, issue_date, binary_data_filename)
        self._apply(self._current_position.agreement.additional_referenced_documents.add, ref)
        return self

    def set_document_position_buyer_order_referenced_document(self, buyer_order_ref_line_id: str
                                                              ) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._current_position.agreement.buyer_order_referenced_document = factory.referenced_document(
            line_id=buyer_order_ref_line_id)
        return self

    def set_document_position_quotation_referenced_document(self, quotation_ref_id: Optional[str] = None,
                                                            quotation_ref_line_id: Optional[str] = None
                                                            ) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        if not self._check("line_quotation_referenced_document"):
            return self
        self._current_position.agreement.quotation_referenced_document = factory.referenced_document(
            quotation_ref_id, line_id=quotation_ref_line_id)
        return self

    def set_document_position_gross_price(self, charge_amount: DecimalLike,
                                          basis_quantity: Optional[DecimalLike] = None,
                                          basis_quantity_unit_code: Optional[str] = None) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        if not self._check("gross_price"):
            return self
        self._current_position.agreement.gross_price = factory.trade_price(
            self._profile, charge_amount, basis_quantity, basis_quantity_unit_code)
        return self

    def add_document_position_gross_price_allowance_charge(self, actual_amount: DecimalLike, is_charge: bool,
                                                           reason: Optional[str] = None,
                                                           reason_code: Optional[str] = None
                                                           ) -> "OrderDocumentBuilder":
        """Add a discount or surcharge on the gross price; needs the gross price first."""
        if self._current_position is None:
            return self._skip("position")
        gross_price = self._current_position.agreement.gross_price
        if gross_price is None:
            return self._skip("gross price")
        charge = factory.trade_allowance_charge(actual_amount, is_charge, reason_code=reason_code, reason=reason)
        self._apply(gross_price.allowance_charges.set, charge)
        return self

    def set_document_position_net_price(self, charge_amount: DecimalLike,
                                        basis_quantity: Optional[DecimalLike] = None,
                                        basis_quantity_unit_code: Optional[str] = None) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._current_position.agreement.net_price = factory.trade_price(
            self._profile, charge_amount, basis_quantity, basis_quantity_unit_code)
        return self

    def set_document_position_catalogue_referenced_document(self, catalogue_ref_id: Optional[str] = None,
                                                            catalogue_ref_line_id: Optional[str] = None
                                                            ) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        ref = factory.referenced_document(catalogue_ref_id, line_id=catalogue_ref_line_id)
        self._apply(self._current_position.agreement.catalogue_referenced_documents.set, ref)
        return self

    def add_document_position_catalogue_referenced_document(self, catalogue_ref_id: Optional[str] = None,
                                                            catalogue_ref_line_id: Optional[str] = None
                                                            ) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        ref = factory.referenced_document(catalogue_ref_id, line_id=catalogue_ref_line_id)
        self._apply(self._current_position.agreement.catalogue_referenced_documents.add, ref)
        return self

    def set_document_position_blanket_order_referenced_document(self, blanket_order_ref_line_id: str
                                                                ) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._current_position.agreement.blanket_order_referenced_document = factory.referenced_document(
            line_id=blanket_order_ref_line_id)
        return self

    def set_document_position_partial_delivery(self, partial_delivery: bool = False) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._current_position.delivery.partial_delivery_allowed = partial_delivery
        return self

    def set_document_position_deliver_req_quantity(self, requested_quantity: DecimalLike,
                                                   unit_code: str) -> "OrderDocumentBuilder":
        """Set the ordered quantity; ``unit_code`` is UN/ECE Rec. 20 (C62 = piece, H87 = item)."""
        if self._current_position is None:
            return self._skip("position")
        self._current_position.delivery.requested_quantity = factory.quantity(requested_quantity, unit_code)
        return self

    def set_document_position_deliver_package_quantity(self, package_quantity: DecimalLike,
                                                       unit_code: str) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        if not self._check("line_package_quantity"):
            return self
        self._current_position.delivery.package_quantity = factory.quantity(package_quantity, unit_code)
        return self

    def set_document_position_deliver_per_package_quantity(self, per_package_quantity: DecimalLike,
                                                           unit_code: str) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        if not self._check("line_per_package_quantity"):
            return self
        self._current_position.delivery.per_package_unit_quantity = factory.quantity(per_package_quantity, unit_code)
        return self

    def set_document_position_deliver_agreed_quantity(self, agreed_quantity: DecimalLike,
                                                      unit_code: str) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._current_position.delivery.agreed_quantity = factory.quantity(agreed_quantity, unit_code)
        return self

    def add_document_position_requested_delivery_supply_chain_event(self, occurrence: Optional[date] = None,
                                                                    start: Optional[date] = None,
                                                                    end: Optional[date] = None
                                                                    ) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._apply(self._current_position.delivery.requested_delivery_events.set,
                    factory.supply_chain_event(occurrence, start, end))
        return self

    def add_document_position_tax(self, category_code: str, type_code: str,
                                  rate_applicable_percent: DecimalLike,
                                  calculated_amount: Optional[DecimalLike] = None,
                                  exemption_reason: Optional[str] = None,
                                  exemption_reason_code: Optional[str] = None) -> "OrderDocumentBuilder":
        """Add a line tax; ``category_code`` S = standard rate, ``type_code`` VAT, rate in whole percent."""
        if self._current_position is None:
            return self._skip("position")
        tax = factory.trade_tax(category_code, type_code, rate_applicable_percent, calculated_amount,
                                exemption_reason, exemption_reason_code)
        self._apply(self._current_position.settlement.taxes.set, tax)
        return self

    def add_document_position_allowance_charge(self, actual_amount: DecimalLike, is_charge: bool,
                                               calculation_percent: Optional[DecimalLike] = None,
                                               basis_amount: Optional[DecimalLike] = None,
                                               reason_code: Optional[str] = None,
                                               reason: Optional[str] = None) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        charge = factory.trade_allowance_charge(
            actual_amount, is_charge, calculation_percent=calculation_percent, basis_amount=basis_amount,
            reason_code=reason_code, reason=reason,
        )
        self._apply(self._current_position.settlement.allowance_charges.add, charge)
        return self

    def set_document_position_line_summation(self, line_total_amount: DecimalLike,
                                             total_allowance_charge_amount: Optional[DecimalLike] = None
                                             ) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._current_position.settlement.monetary_summation = factory.line_monetary_summation(
            line_total_amount, total_allowance_charge_amount)
        return self

    def set_document_position_receivable_trade_accounting_account(self, account_id: str,
                                                                  type_code: Optional[str] = None
                                                                  ) -> "OrderDocumentBuilder":
        if self._current_position is None:
            return self._skip("position")
        self._apply(self._current_position.settlement.accounting_account.set,
                    factory.accounting_account(account_id, type_code))
        return self

    # ── Output ──────────────────────────────────────────────────
    def on_before_get_content(self) -> None:
        """Hook run before every serialisation. Subclasses may complete the document here."""

    def get_content_bytes(self) -> bytes:
        self.on_before_get_content()
        return self._writer.generate_xml(self._document)

    def get_content(self) -> str:
        """Return the document as XML text."""
        return self.get_content_bytes().decode("utf-8")

    def write_file(self, path: str) -> "OrderDocumentBuilder":
        """Write the XML to ``path``, replacing an existing file."""
        content = self.get_content_bytes()
        with open(path, "wb") as f:
            f.write(content)
        logger.info("Order-X XML written to %s (%d bytes)", path, len(content))
        return self

    def write_pdf(self, path: str, pdf_bytes: Optional[bytes] = None) -> "OrderDocumentBuilder":
        """Write a PDF/A-3 with the XML embedded.

        Without ``pdf_bytes`` a plain order sheet is rendered from the document.
        """
        if pdf_bytes is None:
            pdf_bytes = build_order_pdf(self._document)
        result = embed_xml_in_pdf(pdf_bytes, self.get_content_bytes(),
                                  level=self._profile.facturx_level, lang=self._pdf_lang)
        with open(path, "wb") as f:
            f.write(result)
        logger.info("Order-X PDF written to %s", path)
        return self
