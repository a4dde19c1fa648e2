"""
Data structures for an Order-X document tree.

Every entity is a node owned by exactly one parent. Fields whose cardinality
depends on the profile are ``Slot`` objects; they have no usable default and
must be created through ``orderx.factory`` with the document's profile.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from orderx.profiles import Profile
from orderx.slots import Slot


DecimalLike = Decimal | str | int | float


def to_decimal(value: DecimalLike) -> Decimal:
    """Convert input to ``Decimal``; floats go through ``str`` first."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not decimal values")
    if isinstance(value, (int, str, float)):
        return Decimal(str(value))
    raise TypeError(f"Unsupported decimal input: {type(value)!r}")


def quantize_money(amount: DecimalLike) -> Decimal:
    """Round amounts to two decimals (ROUND_HALF_UP)."""
    return to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _slot(name: str):
    def unshaped() -> Slot:
        raise TypeError(f"'{name}' has no profile shape; build it with orderx.factory")
    return field(default_factory=unshaped)


# ── Primitive value types ───────────────────────────────────────
@dataclass
class Identifier:
    value: str
    scheme_id: Optional[str] = None


@dataclass
class Amount:
    value: Decimal
    currency_id: Optional[str] = None


@dataclass
class Quantity:
    value: Decimal
    unit_code: Optional[str] = None


@dataclass
class Period:
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass
class Note:
    content: Optional[str] = None
    content_code: Optional[str] = None
    subject_code: Optional[str] = None


@dataclass
class BinaryObject:
    """Base64 payload of an attached file."""
    filename: str
    mime_code: str
    content: str


# ── Trade party ─────────────────────────────────────────────────
@dataclass
class TradeAddress:
    line_one: Optional[str] = None
    line_two: Optional[str] = None
    line_three: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    country_id: Optional[str] = None
    subdivision: Optional[str] = None


@dataclass
class LegalOrganization:
    id: Optional[Identifier] = None
    trading_business_name: Optional[str] = None


@dataclass
class TradeContact:
    person_name: Optional[str] = None
    department_name: Optional[str] = None
    type_code: Optional[str] = None
    telephone: Optional[str] = None
    fax: Optional[str] = None
    email: Optional[str] = None


@dataclass
class TaxRegistration:
    id: Identifier


@dataclass
class UniversalCommunication:
    uri_id: Identifier  # scheme = URI type, e.g. EM for e-mail


@dataclass
class TradeParty:
    name: str
    id: Optional[Identifier] = None
    global_ids: list[Identifier] = field(default_factory=list)
    description: Optional[str] = None
    legal_organization: Optional[LegalOrganization] = None
    contacts: Slot = _slot("trade_contact")
    postal_address: Optional[TradeAddress] = None
    uri_communication: Optional[UniversalCommunication] = None
    tax_registrations: list[TaxRegistration] = field(default_factory=list)


# ── References, terms, events ───────────────────────────────────
@dataclass
class ReferencedDocument:
    issuer_assigned_id: Optional[str] = None
    uri_id: Optional[str] = None
    line_id: Optional[str] = None
    type_code: Optional[str] = None
    name: Optional[str] = None
    reference_type_code: Optional[str] = None
    issue_date: Optional[date] = None
    attachment: Optional[BinaryObject] = None


@dataclass
class DeliveryTerms:
    type_code: Optional[str] = None
    description: Optional[str] = None
    function_code: Optional[str] = None
    location_id: Optional[str] = None
    location_name: Optional[str] = None


@dataclass
class ProcuringProject:
    id: str
    name: str


@dataclass
class SupplyChainEvent:
    occurrence: Optional[date] = None
    period: Optional[Period] = None


@dataclass
class PaymentMeans:
    type_code: str
    information: Optional[str] = None


@dataclass
class PaymentTerms:
    description: str


@dataclass
class AccountingAccount:
    id: str
    type_code: Optional[str] = None


# ── Tax, allowances, summations ─────────────────────────────────
@dataclass
class TradeTax:
    calculated_amount: Optional[Decimal] = None
    type_code: Optional[str] = None
    exemption_reason: Optional[str] = None
    category_code: Optional[str] = None
    exemption_reason_code: Optional[str] = None
    rate_applicable_percent: Optional[Decimal] = None  # whole percent, 19 = 19 %


@dataclass
class TradeAllowanceCharge:
    charge_indicator: bool  # True = charge, False = allowance
    actual_amount: Decimal
    sequence: Optional[Decimal] = None
    calculation_percent: Optional[Decimal] = None
    basis_amount: Optional[Decimal] = None
    basis_quantity: Optional[Quantity] = None
    reason_code: Optional[str] = None
    reason: Optional[str] = None
    category_trade_tax: Optional[TradeTax] = None


@dataclass
class HeaderMonetarySummation:
    grand_total_amount: Decimal
    line_total_amount: Optional[Decimal] = None
    charge_total_amount: Optional[Decimal] = None
    allowance_total_amount: Optional[Decimal] = None
    tax_basis_total_amount: Optional[Decimal] = None
    tax_total_amounts: list[Amount] = field(default_factory=list)


@dataclass
class LineMonetarySummation:
    line_total_amount: Decimal
    total_allowance_charge_amount: Optional[Decimal] = None


# ── Line items ──────────────────────────────────────────────────
@dataclass
class ProductCharacteristic:
    description: str
    value: str
    type_code: Optional[str] = None


@dataclass
class ProductClassification:
    class_code: str
    class_name: Optional[str] = None
    list_id: Optional[str] = None
    list_version_id: Optional[str] = None


@dataclass
class ProductInstance:
    batch_id: Optional[str] = None
    serial_id: Optional[str] = None


@dataclass
class SupplyChainPackaging:
    type_code: Optional[str] = None
    width: Optional[Quantity] = None
    length: Optional[Quantity] = None
    height: Optional[Quantity] = None


@dataclass
class TradeProduct:
    name: Optional[str] = None
    description: Optional[str] = None
    seller_assigned_id: Optional[str] = None
    buyer_assigned_id: Optional[str] = None
    global_id: Optional[Identifier] = None
    batch_id: Optional[str] = None
    brand_name: Optional[str] = None
    characteristics: Slot = _slot("product_characteristic")
    classifications: Slot = _slot("product_classification")
    instances: Slot = _slot("product_instance")
    packaging: Slot = _slot("product_packaging")
    origin_country: Optional[str] = None
    referenced_documents: Slot = _slot("product_referenced_document")


@dataclass
class TradePrice:
    charge_amount: Decimal
    basis_quantity: Optional[Quantity] = None
    allowance_charges: Slot = _slot("gross_price_allowance_charge")


@dataclass
class LineDocument:
    line_id: str
    status_code: Optional[str] = None
    notes: Slot = _slot("line_note")


@dataclass
class LineTradeAgreement:
    buyer_order_referenced_document: Optional[ReferencedDocument] = None
    quotation_referenced_document: Optional[ReferencedDocument] = None
    blanket_order_referenced_document: Optional[ReferencedDocument] = None
    additional_referenced_documents: Slot = _slot("line_additional_referenced_document")
    gross_price: Optional[TradePrice] = None
    net_price: Optional[TradePrice] = None
    catalogue_referenced_documents: Slot = _slot("catalogue_referenced_document")


@dataclass
class LineTradeDelivery:
    partial_delivery_allowed: Optional[bool] = None
    requested_quantity: Optional[Quantity] = None
    agreed_quantity: Optional[Quantity] = None
    package_quantity: Optional[Quantity] = None
    per_package_unit_quantity: Optional[Quantity] = None
    requested_delivery_events: Slot = _slot("line_requested_delivery_event")


@dataclass
class LineTradeSettlement:
    taxes: Slot = _slot("line_tax")
    allowance_charges: Slot = _slot("line_allowance_charge")
    monetary_summation: Optional[LineMonetarySummation] = None
    accounting_account: Slot = _slot("line_receivable_accounting_account")


@dataclass
class LineItem:
    """A single order line (position)."""
    document: LineDocument
    product: Optional[TradeProduct] = None
    agreement: LineTradeAgreement = field(default_factory=LineTradeAgreement)
    delivery: LineTradeDelivery = field(default_factory=LineTradeDelivery)
    settlement: LineTradeSettlement = field(default_factory=LineTradeSettlement)

    @property
    def line_id(self) -> str:
        return self.document.line_id


# ── Header containers ───────────────────────────────────────────
@dataclass
class HeaderTradeAgreement:
    buyer_reference: Optional[str] = None
    seller_party: Slot = _slot("seller_party")
    buyer_party: Slot = _slot("buyer_party")
    buyer_requisitioner_party: Slot = _slot("buyer_requisitioner_party")
    delivery_terms: Optional[DeliveryTerms] = None
    seller_order_referenced_document: Optional[ReferencedDocument] = None
    buyer_order_referenced_document: Optional[ReferencedDocument] = None
    quotation_referenced_document: Optional[ReferencedDocument] = None
    contract_referenced_documents: Slot = _slot("contract_referenced_document")
    requisition_referenced_documents: Slot = _slot("requisition_referenced_document")
    additional_referenced_documents: Slot = _slot("additional_referenced_document")
    blanket_order_referenced_documents: Slot = _slot("blanket_order_referenced_document")
    previous_order_change_referenced_documents: Slot = _slot("previous_order_change_referenced_document")
    previous_order_response_referenced_documents: Slot = _slot("previous_order_response_referenced_document")
    procuring_project: Slot = _slot("procuring_project")


@dataclass
class HeaderTradeDelivery:
    ship_to_party: Slot = _slot("ship_to_party")
    ship_from_party: Slot = _slot("ship_from_party")
    requested_delivery_events: Slot = _slot("requested_delivery_event")


@dataclass
class HeaderTradeSettlement:
    order_currency_code: Optional[str] = None
    invoicee_party: Slot = _slot("invoicee_party")
    payment_means: Optional[PaymentMeans] = None
    allowance_charges: Slot = _slot("allowance_charge")
    payment_terms: Slot = _slot("payment_terms")
    monetary_summation: Optional[HeaderMonetarySummation] = None
    accounting_account: Slot = _slot("receivable_accounting_account")


@dataclass
class SupplyChainTradeTransaction:
    agreement: HeaderTradeAgreement = field(default_factory=HeaderTradeAgreement)
    delivery: HeaderTradeDelivery = field(default_factory=HeaderTradeDelivery)
    settlement: HeaderTradeSettlement = field(default_factory=HeaderTradeSettlement)
    line_items: list[LineItem] = field(default_factory=list)


@dataclass
class ExchangedDocumentContext:
    guideline_id: str
    test_indicator: Optional[bool] = None
    business_process_id: Optional[str] = None


@dataclass
class ExchangedDocument:
    id: Optional[str] = None
    name: Optional[str] = None
    type_code: Optional[str] = None
    issue_date: Optional[date] = None
    copy_indicator: Optional[bool] = None
    purpose_code: Optional[str] = None
    language_ids: list[str] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    effective_period: Optional[Period] = None
    requested_response_type_code: Optional[str] = None


@dataclass
class OrderDocument:
    """Root of the tree: context, header document and trade transaction."""
    profile: Profile
    context: ExchangedDocumentContext
    document: ExchangedDocument = field(default_factory=ExchangedDocument)
    transaction: SupplyChainTradeTransaction = field(default_factory=SupplyChainTradeTransaction)
