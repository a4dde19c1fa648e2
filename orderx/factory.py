"""
Constructors for document entities from primitive inputs.

The functions here are pure apart from ``binary_object``, which reads the
attached file. Entities carrying profile-shaped fields take the profile as
their first argument so their slots get the right shape.
"""
from __future__ import annotations

import base64
import logging
import mimetypes
import os
from datetime import date
from typing import Optional

from orderx.base import (
    AccountingAccount,
    Amount,
    BinaryObject,
    DecimalLike,
    DeliveryTerms,
    ExchangedDocumentContext,
    HeaderMonetarySummation,
    HeaderTradeAgreement,
    HeaderTradeDelivery,
    HeaderTradeSettlement,
    Identifier,
    LegalOrganization,
    LineDocument,
    LineItem,
    LineMonetarySummation,
    LineTradeAgreement,
    LineTradeDelivery,
    LineTradeSettlement,
    Note,
    OrderDocument,
    PaymentMeans,
    PaymentTerms,
    Period,
    ProcuringProject,
    ProductCharacteristic,
    ProductClassification,
    ProductInstance,
    Quantity,
    ReferencedDocument,
    SupplyChainEvent,
    SupplyChainPackaging,
    SupplyChainTradeTransaction,
    TaxRegistration,
    TradeAddress,
    TradeAllowanceCharge,
    TradeContact,
    TradeParty,
    TradePrice,
    TradeProduct,
    TradeTax,
    UniversalCommunication,
    to_decimal,
)
from orderx.profiles import Profile, new_slot

logger = logging.getLogger(__name__)


def _decimal(value: Optional[DecimalLike]):
    return None if value is None else to_decimal(value)


# ── Document skeleton ───────────────────────────────────────────
def new_document(profile: Profile) -> OrderDocument:
    """Create an empty document with every container shaped for ``profile``."""
    agreement = HeaderTradeAgreement(
        seller_party=new_slot(profile, "seller_party"),
        buyer_party=new_slot(profile, "buyer_party"),
        buyer_requisitioner_party=new_slot(profile, "buyer_requisitioner_party"),
        contract_referenced_documents=new_slot(profile, "contract_referenced_document"),
        requisition_referenced_documents=new_slot(profile, "requisition_referenced_document"),
        blanket_order_referenced_documents=new_slot(profile, "blanket_order_referenced_document"),
        previous_order_change_referenced_documents=new_slot(
            profile, "previous_order_change_referenced_document"),
        additional_referenced_documents=new_slot(profile, "additional_referenced_document"),
        previous_order_response_referenced_documents=new_slot(
            profile, "previous_order_response_referenced_document"),
        procuring_project=new_slot(profile, "procuring_project"),
    )
    delivery = HeaderTradeDelivery(
        ship_to_party=new_slot(profile, "ship_to_party"),
        ship_from_party=new_slot(profile, "ship_from_party"),
        requested_delivery_events=new_slot(profile, "requested_delivery_event"),
    )
    settlement = HeaderTradeSettlement(
        invoicee_party=new_slot(profile, "invoicee_party"),
        allowance_charges=new_slot(profile, "allowance_charge"),
        payment_terms=new_slot(profile, "payment_terms"),
        accounting_account=new_slot(profile, "receivable_accounting_account"),
    )
    return OrderDocument(
        profile=profile,
        context=ExchangedDocumentContext(guideline_id=profile.guideline_id),
        transaction=SupplyChainTradeTransaction(
            agreement=agreement, delivery=delivery, settlement=settlement
        ),
    )


# ── Primitive values ────────────────────────────────────────────
def identifier(value: Optional[str], scheme_id: Optional[str] = None) -> Optional[Identifier]:
    if value is None:
        return None
    return Identifier(value, scheme_id)


def quantity(value: Optional[DecimalLike], unit_code: Optional[str] = None) -> Optional[Quantity]:
    if value is None:
        return None
    return Quantity(to_decimal(value), unit_code)


def period(start: Optional[date] = None, end: Optional[date] = None) -> Optional[Period]:
    if start is None and end is None:
        return None
    return Period(start, end)


def note(content: Optional[str] = None, content_code: Optional[str] = None,
         subject_code: Optional[str] = None) -> Note:
    return Note(content, content_code, subject_code)


# ── Trade party ─────────────────────────────────────────────────
def trade_party(profile: Profile, name: str, id: Optional[str] = None,
                description: Optional[str] = None) -> TradeParty:
    return TradeParty(
        name=name,
        id=identifier(id),
        description=description,
        contacts=new_slot(profile, "trade_contact"),
    )


def trade_address(line_one: Optional[str] = None, line_two: Optional[str] = None,
                  line_three: Optional[str] = None, postcode: Optional[str] = None,
                  city: Optional[str] = None, country: Optional[str] = None,
                  subdivision: Optional[str] = None) -> TradeAddress:
    return TradeAddress(line_one, line_two, line_three, postcode, city, country, subdivision)


def legal_organization(legal_org_id: Optional[str] = None, legal_org_type: Optional[str] = None,
                       legal_org_name: Optional[str] = None) -> LegalOrganization:
    return LegalOrganization(identifier(legal_org_id, legal_org_type), legal_org_name)


def trade_contact(person_name: Optional[str] = None, department_name: Optional[str] = None,
                  phone_no: Optional[str] = None, fax_no: Optional[str] = None,
                  email: Optional[str] = None, type_code: Optional[str] = None) -> TradeContact:
    return TradeContact(
        person_name=person_name,
        department_name=department_name,
        type_code=type_code,
        telephone=phone_no,
        fax=fax_no,
        email=email,
    )


def tax_registration(tax_reg_type: str, tax_reg_id: str) -> TaxRegistration:
    """Tax registration; the type becomes the scheme (``VA`` = VAT id, ``FC`` = tax number)."""
    return TaxRegistration(Identifier(tax_reg_id, tax_reg_type))


def universal_communication(uri_type: Optional[str] = None,
                            uri_id: Optional[str] = None) -> Optional[UniversalCommunication]:
    if uri_id is None:
        return None
    return UniversalCommunication(Identifier(uri_id, uri_type))


# ── References ──────────────────────────────────────────────────
def binary_object(filename: str) -> Optional[BinaryObject]:
    """Read ``filename`` into a base64 attachment, or ``None`` if it does not exist."""
    if not os.path.isfile(filename):
        logger.warning("Attachment %s not found, reference written without it", filename)
        return None
    with open(filename, "rb") as f:
        content = base64.b64encode(f.read()).decode("ascii")
    mime = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return BinaryObject(os.path.basename(filename), mime, content)


def referenced_document(issuer_assigned_id: Optional[str] = None, uri_id: Optional[str] = None,
                        line_id: Optional[str] = None, type_code: Optional[str] = None,
                        name: Optional[str] = None, reference_type_code: Optional[str] = None,
                        issue_date: Optional[date] = None,
                        binary_data_filename: Optional[str] = None) -> ReferencedDocument:
    attachment = binary_object(binary_data_filename) if binary_data_filename else None
    return ReferencedDocument(
        issuer_assigned_id=issuer_assigned_id,
        uri_id=uri_id,
        line_id=line_id,
        type_code=type_code,
        name=name,
        reference_type_code=reference_type_code,
        issue_date=issue_date,
        attachment=attachment,
    )


def delivery_terms(code: Optional[str] = None, description: Optional[str] = None,
                   function_code: Optional[str] = None, location_id: Optional[str] = None,
                   location_name: Optional[str] = None) -> DeliveryTerms:
    return DeliveryTerms(code, description, function_code, location_id, location_name)


def procuring_project(project_id: str, project_name: str) -> ProcuringProject:
    return ProcuringProject(project_id, project_name)


def supply_chain_event(occurrence: Optional[date] = None, start: Optional[date] = None,
                       end: Optional[date] = None) -> SupplyChainEvent:
    return SupplyChainEvent(occurrence, period(start, end))


# ── Settlement ──────────────────────────────────────────────────
def payment_means(type_code: str, information: Optional[str] = None) -> PaymentMeans:
    return PaymentMeans(type_code, information)


def payment_terms(description: str) -> PaymentTerms:
    return PaymentTerms(description)


def accounting_account(account_id: str, type_code: Optional[str] = None) -> AccountingAccount:
    return AccountingAccount(account_id, type_code)


def trade_tax(category_code: Optional[str], type_code: Optional[str],
              rate_applicable_percent: Optional[DecimalLike],
              calculated_amount: Optional[DecimalLike] = None,
              exemption_reason: Optional[str] = None,
              exemption_reason_code: Optional[str] = None) -> TradeTax:
    """Tax entry; the rate is whole percent and kept unscaled."""
    return TradeTax(
        calculated_amount=_decimal(calculated_amount),
        type_code=type_code,
        exemption_reason=exemption_reason,
        category_code=category_code,
        exemption_reason_code=exemption_reason_code,
        rate_applicable_percent=_decimal(rate_applicable_percent),
    )


def trade_allowance_charge(actual_amount: DecimalLike, is_charge: bool,
                           tax_category_code: Optional[str] = None,
                           tax_type_code: Optional[str] = None,
                           rate_applicable_percent: Optional[DecimalLike] = None,
                           sequence: Optional[DecimalLike] = None,
                           calculation_percent: Optional[DecimalLike] = None,
                           basis_amount: Optional[DecimalLike] = None,
                           basis_quantity: Optional[DecimalLike] = None,
                           basis_quantity_unit_code: Optional[str] = None,
                           reason_code: Optional[str] = None,
                           reason: Optional[str] = None) -> TradeAllowanceCharge:
    """Allowance (``is_charge=False``) or charge; the amount is never re-signed."""
    category_tax = None
    if tax_category_code is not None or tax_type_code is not None or rate_applicable_percent is not None:
        category_tax = trade_tax(tax_category_code, tax_type_code, rate_applicable_percent)
    return TradeAllowanceCharge(
        charge_indicator=bool(is_charge),
        actual_amount=to_decimal(actual_amount),
        sequence=_decimal(sequence),
        calculation_percent=_decimal(calculation_percent),
        basis_amount=_decimal(basis_amount),
        basis_quantity=quantity(basis_quantity, basis_quantity_unit_code),
        reason_code=reason_code,
        reason=reason,
        category_trade_tax=category_tax,
    )


def header_monetary_summation(grand_total_amount: DecimalLike,
                              line_total_amount: Optional[DecimalLike] = None,
                              charge_total_amount: Optional[DecimalLike] = None,
                              allowance_total_amount: Optional[DecimalLike] = None,
                              tax_basis_total_amount: Optional[DecimalLike] = None,
                              tax_total_amount: Optional[DecimalLike] = None) -> HeaderMonetarySummation:
    tax_totals = [] if tax_total_amount is None else [Amount(to_decimal(tax_total_amount))]
    return HeaderMonetarySummation(
        grand_total_amount=to_decimal(grand_total_amount),
        line_total_amount=_decimal(line_total_amount),
        charge_total_amount=_decimal(charge_total_amount),
        allowance_total_amount=_decimal(allowance_total_amount),
        tax_basis_total_amount=_decimal(tax_basis_total_amount),
        tax_total_amounts=tax_totals,
    )


def line_monetary_summation(line_total_amount: DecimalLike,
                            total_allowance_charge_amount: Optional[DecimalLike] = None) -> LineMonetarySummation:
    return LineMonetarySummation(to_decimal(line_total_amount), _decimal(total_allowance_charge_amount))


# ── Line items ──────────────────────────────────────────────────
def line_item(profile: Profile, line_id: str, status_code: Optional[str] = None) -> LineItem:
    return LineItem(
        document=LineDocument(line_id, status_code, notes=new_slot(profile, "line_note")),
        agreement=LineTradeAgreement(
            additional_referenced_documents=new_slot(profile, "line_additional_referenced_document"),
            catalogue_referenced_documents=new_slot(profile, "catalogue_referenced_document"),
        ),
        delivery=LineTradeDelivery(
            requested_delivery_events=new_slot(profile, "line_requested_delivery_event"),
        ),
        settlement=LineTradeSettlement(
            taxes=new_slot(profile, "line_tax"),
            allowance_charges=new_slot(profile, "line_allowance_charge"),
            accounting_account=new_slot(profile, "line_receivable_accounting_account"),
        ),
    )


def trade_product(profile: Profile, name: Optional[str] = None, description: Optional[str] = None,
                  seller_assigned_id: Optional[str] = None, buyer_assigned_id: Optional[str] = None,
                  global_id_type: Optional[str] = None, global_id: Optional[str] = None,
                  batch_id: Optional[str] = None, brand_name: Optional[str] = None) -> TradeProduct:
    return TradeProduct(
        name=name,
        description=description,
        seller_assigned_id=seller_assigned_id,
        buyer_assigned_id=buyer_assigned_id,
        global_id=identifier(global_id, global_id_type),
        batch_id=batch_id,
        brand_name=brand_name,
        characteristics=new_slot(profile, "product_characteristic"),
        classifications=new_slot(profile, "product_classification"),
        instances=new_slot(profile, "product_instance"),
        packaging=new_slot(profile, "product_packaging"),
        referenced_documents=new_slot(profile, "product_referenced_document"),
    )


def product_characteristic(description: str, value: str,
                           type_code: Optional[str] = None) -> ProductCharacteristic:
    return ProductCharacteristic(description, value, type_code)


def product_classification(class_code: str, class_name: Optional[str] = None,
                           list_id: Optional[str] = None,
                           list_version_id: Optional[str] = None) -> ProductClassification:
    return ProductClassification(class_code, class_name, list_id, list_version_id)


def product_instance(batch_id: Optional[str] = None, serial_id: Optional[str] = None) -> ProductInstance:
    return ProductInstance(batch_id, serial_id)


def supply_chain_packaging(type_code: Optional[str] = None,
                           width: Optional[DecimalLike] = None, width_unit_code: Optional[str] = None,
                           length: Optional[DecimalLike] = None, length_unit_code: Optional[str] = None,
                           height: Optional[DecimalLike] = None,
                           height_unit_code: Optional[str] = None) -> SupplyChainPackaging:
    return SupplyChainPackaging(
        type_code=type_code,
        width=quantity(width, width_unit_code),
        length=quantity(length, length_unit_code),
        height=quantity(height, height_unit_code),
    )


def trade_price(profile: Profile, charge_amount: DecimalLike,
                basis_quantity: Optional[DecimalLike] = None,
                basis_quantity_unit_code: Optional[str] = None) -> TradePrice:
    return TradePrice(
        charge_amount=to_decimal(charge_amount),
        basis_quantity=quantity(basis_quantity, basis_quantity_unit_code),
        allowance_charges=new_slot(profile, "gross_price_allowance_charge"),
    )
