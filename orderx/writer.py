"""
Order-X XML serialisation.

Turns an ``OrderDocument`` tree into UN/CEFACT SCRDM Cross Industry Order
XML. Elements are written in schema sequence order; unset values and empty
slots produce no element, and neither do details the document's profile
does not define (see ``orderx.profiles.ELEMENT_PROFILES``).

References:
- Order-X: https://fnfe-mpe.org/factur-x/order-x/
- SCRDM CI D22B schema: UN/CEFACT SCRDMCCBDACIOMessageStructure
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from lxml import etree

from orderx.base import (
    HeaderTradeAgreement,
    HeaderTradeDelivery,
    HeaderTradeSettlement,
    LineItem,
    Note,
    OrderDocument,
    Period,
    Quantity,
    ReferencedDocument,
    SupplyChainEvent,
    TradeAllowanceCharge,
    TradeParty,
    TradePrice,
    TradeProduct,
    TradeTax,
    quantize_money,
)
from orderx.profiles import Profile, element_supported

# ── XML Namespaces (SCRDM CI D22B) ──────────────────────────────
NS = {
    "rsm": "urn:un:unece:uncefact:data:SCRDMCCBDACIOMessageStructure:100",
    "ram": "urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:128",
    "qdt": "urn:un:unece:uncefact:data:standard:QualifiedDataType:128",
    "udt": "urn:un:unece:uncefact:data:standard:UnqualifiedDataType:128",
    "xsi": "http://www.w3.org/2001/XMLSchema-instance",
}

ROOT_TAG = "SCRDMCCBDACIOMessageStructure"


def _el(parent: etree._Element, tag: str, text: str | None = None, **attribs) -> etree._Element:
    """Create a sub-element with optional text and attributes (``None`` attributes are skipped)."""
    ns_prefix, local = tag.split(":", 1) if ":" in tag else ("ram", tag)
    ns_uri = NS[ns_prefix]
    elem = etree.SubElement(parent, f"{{{ns_uri}}}{local}")
    if text is not None:
        elem.text = str(text)
    for k, v in attribs.items():
        if v is not None:
            elem.set(k, str(v))
    return elem


def _opt(parent: etree._Element, tag: str, text, **attribs) -> etree._Element | None:
    """Like ``_el`` but writes nothing when ``text`` is ``None``."""
    if text is None:
        return None
    return _el(parent, tag, text, **attribs)


def _fmt_date(d: date) -> str:
    """Format date as YYYYMMDD (format 102)."""
    return d.strftime("%Y%m%d")


def _fmt_amount(value: Decimal) -> str:
    """Format monetary amount: 2 decimals, half-up, no thousands separator."""
    return f"{quantize_money(value):f}"


def _fmt_decimal(value: Decimal) -> str:
    """Format prices, quantities and percentages exactly, with at least 2 decimals."""
    text = f"{value:f}"
    whole, _, frac = text.partition(".")
    return f"{whole}.{frac.rstrip('0').ljust(2, '0')}"


def _fmt_bool(value: bool) -> str:
    return "true" if value else "false"


class OrderXmlWriter:
    """Serialise an ``OrderDocument`` to Order-X XML bytes."""

    def __init__(self, pretty_print: bool = True):
        self.pretty_print = pretty_print
        self._profile = Profile.EXTENDED

    # ── Public API ──────────────────────────────────────────────
    def generate_xml(self, document: OrderDocument) -> bytes:
        root = self.build_root(document)
        return etree.tostring(
            root, pretty_print=self.pretty_print, xml_declaration=True, encoding="UTF-8"
        )

    def build_root(self, document: OrderDocument) -> etree._Element:
        nsmap = {k: v for k, v in NS.items()}
        root = etree.Element(f"{{{NS['rsm']}}}{ROOT_TAG}", nsmap=nsmap)
        self._profile = document.profile

        self._add_context(root, document)
        self._add_document(root, document)
        self._add_transaction(root, document)

        return root

    def _has(self, element: str) -> bool:
        return element_supported(self._profile, element)

    # ── XML tree builders ───────────────────────────────────────
    def _add_context(self, root: etree._Element, d: OrderDocument) -> None:
        ctx = _el(root, "rsm:ExchangedDocumentContext")
        if d.context.test_indicator is not None:
            ind = _el(ctx, "ram:TestIndicator")
            _el(ind, "udt:Indicator", _fmt_bool(d.context.test_indicator))
        if d.context.business_process_id is not None:
            param = _el(ctx, "ram:BusinessProcessSpecifiedDocumentContextParameter")
            _el(param, "ram:ID", d.context.business_process_id)
        param = _el(ctx, "ram:GuidelineSpecifiedDocumentContextParameter")
        _el(param, "ram:ID", d.context.guideline_id)

    def _add_document(self, root: etree._Element, d: OrderDocument) -> None:
        info = d.document
        doc = _el(root, "rsm:ExchangedDocument")
        _opt(doc, "ram:ID", info.id)
        _opt(doc, "ram:Name", info.name)
        _opt(doc, "ram:TypeCode", info.type_code)
        if info.issue_date is not None:
            dt = _el(doc, "ram:IssueDateTime")
            _el(dt, "udt:DateTimeString", _fmt_date(info.issue_date), format="102")
        if info.copy_indicator is not None:
            ind = _el(doc, "ram:CopyIndicator")
            _el(ind, "udt:Indicator", _fmt_bool(info.copy_indicator))
        if self._has("document.language_id"):
            for language_id in info.language_ids:
                _el(doc, "ram:LanguageID", language_id)
        _opt(doc, "ram:PurposeCode", info.purpose_code)
        _opt(doc, "ram:RequestedResponseTypeCode", info.requested_response_type_code)
        for note in info.notes:
            self._add_note(doc, note)
        if info.effective_period is not None and self._has("document.effective_period"):
            self._add_period(doc, "ram:EffectiveSpecifiedPeriod", info.effective_period)

    def _add_transaction(self, root: etree._Element, d: OrderDocument) -> None:
        tx = _el(root, "rsm:SupplyChainTradeTransaction")
        for item in d.transaction.line_items:
            self._add_line_item(tx, item)
        self._add_agreement(tx, d.transaction.agreement)
        self._add_delivery(tx, d.transaction.delivery)
        self._add_settlement(tx, d.transaction.settlement)

    # ── Line items ──────────────────────────────────────────────
    def _add_line_item(self, tx: etree._Element, item: LineItem) -> None:
        line = _el(tx, "ram:IncludedSupplyChainTradeLineItem")

        doc = _el(line, "ram:AssociatedDocumentLineDocument")
        _el(doc, "ram:LineID", item.document.line_id)
        _opt(doc, "ram:LineStatusCode", item.document.status_code)
        for note in item.document.notes:
            self._add_note(doc, note)

        if item.product is not None:
            self._add_product(line, item.product)

        # Agreement
        ag = item.agreement
        agr = _el(line, "ram:SpecifiedLineTradeAgreement")
        self._add_reference(agr, "ram:BuyerOrderReferencedDocument", ag.buyer_order_referenced_document)
        self._add_reference(agr, "ram:QuotationReferencedDocument", ag.quotation_referenced_document)
        for ref in ag.additional_referenced_documents:
            self._add_reference(agr, "ram:AdditionalReferencedDocument", ref)
        self._add_price(agr, "ram:GrossPriceProductTradePrice", ag.gross_price)
        self._add_price(agr, "ram:NetPriceProductTradePrice", ag.net_price)
        for ref in ag.catalogue_referenced_documents:
            self._add_reference(agr, "ram:CatalogueReferencedDocument", ref)
        self._add_reference(agr, "ram:BlanketOrderReferencedDocument", ag.blanket_order_referenced_document)

        # Delivery
        dl = item.delivery
        dlv = _el(line, "ram:SpecifiedLineTradeDelivery")
        if dl.partial_delivery_allowed is not None:
            ind = _el(dlv, "ram:PartialDeliveryAllowedIndicator")
            _el(ind, "udt:Indicator", _fmt_bool(dl.partial_delivery_allowed))
        self._add_quantity(dlv, "ram:RequestedQuantity", dl.requested_quantity)
        self._add_quantity(dlv, "ram:AgreedQuantity", dl.agreed_quantity)
        self._add_quantity(dlv, "ram:PackageQuantity", dl.package_quantity)
        self._add_quantity(dlv, "ram:PerPackageUnitQuantity", dl.per_package_unit_quantity)
        for event in dl.requested_delivery_events:
            self._add_event(dlv, "ram:RequestedDeliverySupplyChainEvent", event)

        # Settlement
        st = item.settlement
        stl = _el(line, "ram:SpecifiedLineTradeSettlement")
        for tax in st.taxes:
            self._add_tax(stl, "ram:ApplicableTradeTax", tax)
        for ac in st.allowance_charges:
            self._add_allowance_charge(stl, "ram:SpecifiedTradeAllowanceCharge", ac)
        if st.monetary_summation is not None:
            summ = _el(stl, "ram:SpecifiedTradeSettlementLineMonetarySummation")
            _el(summ, "ram:LineTotalAmount", _fmt_amount(st.monetary_summation.line_total_amount))
            if (st.monetary_summation.total_allowance_charge_amount is not None
                    and self._has("line_summation.total_allowance_charge_amount")):
                _el(summ, "ram:TotalAllowanceChargeAmount",
                    _fmt_amount(st.monetary_summation.total_allowance_charge_amount))
        for account in st.accounting_account:
            acc = _el(stl, "ram:ReceivableSpecifiedTradeAccountingAccount")
            _el(acc, "ram:ID", account.id)
            self._opt_if(acc, "accounting_account.type_code", "ram:TypeCode", account.type_code)

    def _add_product(self, line: etree._Element, p: TradeProduct) -> None:
        prod = _el(line, "ram:SpecifiedTradeProduct")
        if p.global_id is not None:
            _el(prod, "ram:GlobalID", p.global_id.value, schemeID=p.global_id.scheme_id)
        _opt(prod, "ram:SellerAssignedID", p.seller_assigned_id)
        _opt(prod, "ram:BuyerAssignedID", p.buyer_assigned_id)
        _opt(prod, "ram:Name", p.name)
        self._opt_if(prod, "product.description", "ram:Description", p.description)
        self._opt_if(prod, "product.batch_id", "ram:BatchID", p.batch_id)
        self._opt_if(prod, "product.brand_name", "ram:BrandName", p.brand_name)
        for ch in p.characteristics:
            elem = _el(prod, "ram:ApplicableProductCharacteristic")
            _opt(elem, "ram:TypeCode", ch.type_code)
            _el(elem, "ram:Description", ch.description)
            _el(elem, "ram:Value", ch.value)
        for cl in p.classifications:
            elem = _el(prod, "ram:DesignatedProductClassification")
            _el(elem, "ram:ClassCode", cl.class_code, listID=cl.list_id, listVersionID=cl.list_version_id)
            _opt(elem, "ram:ClassName", cl.class_name)
        for inst in p.instances:
            elem = _el(prod, "ram:IndividualTradeProductInstance")
            _opt(elem, "ram:BatchID", inst.batch_id)
            _opt(elem, "ram:SerialID", inst.serial_id)
        for pack in p.packaging:
            elem = _el(prod, "ram:ApplicableSupplyChainPackaging")
            _opt(elem, "ram:TypeCode", pack.type_code)
            if any(m is not None for m in (pack.width, pack.length, pack.height)):
                dim = _el(elem, "ram:LinearSpatialDimension")
                self._add_quantity(dim, "ram:WidthMeasure", pack.width)
                self._add_quantity(dim, "ram:LengthMeasure", pack.length)
                self._add_quantity(dim, "ram:HeightMeasure", pack.height)
        if p.origin_country is not None:
            origin = _el(prod, "ram:OriginTradeCountry")
            _el(origin, "ram:ID", p.origin_country)
        for ref in p.referenced_documents:
            self._add_reference(prod, "ram:AdditionalReferenceReferencedDocument", ref)

    def _add_price(self, parent: etree._Element, tag: str, price: TradePrice | None) -> None:
        if price is None:
            return
        elem = _el(parent, tag)
        _el(elem, "ram:ChargeAmount", _fmt_decimal(price.charge_amount))
        self._add_quantity(elem, "ram:BasisQuantity", price.basis_quantity)
        for ac in price.allowance_charges:
            self._add_allowance_charge(elem, "ram:AppliedTradeAllowanceCharge", ac)

    # ── Header ──────────────────────────────────────────────────
    def _add_agreement(self, tx: etree._Element, ag: HeaderTradeAgreement) -> None:
        agr = _el(tx, "ram:ApplicableHeaderTradeAgreement")
        _opt(agr, "ram:BuyerReference", ag.buyer_reference)
        for party in ag.seller_party:
            self._add_party(agr, "ram:SellerTradeParty", party)
        for party in ag.buyer_party:
            self._add_party(agr, "ram:BuyerTradeParty", party)
        for party in ag.buyer_requisitioner_party:
            self._add_party(agr, "ram:BuyerRequisitionerTradeParty", party)
        if ag.delivery_terms is not None:
            t = ag.delivery_terms
            terms = _el(agr, "ram:ApplicableTradeDeliveryTerms")
            _opt(terms, "ram:DeliveryTypeCode", t.type_code)
            self._opt_if(terms, "delivery_terms.description", "ram:Description", t.description)
            _opt(terms, "ram:FunctionCode", t.function_code)
            has_location = t.location_id is not None or t.location_name is not None
            if has_location and self._has("delivery_terms.location"):
                loc = _el(terms, "ram:RelevantTradeLocation")
                _opt(loc, "ram:ID", t.location_id)
                _opt(loc, "ram:Name", t.location_name)
        self._add_reference(agr, "ram:SellerOrderReferencedDocument", ag.seller_order_referenced_document)
        self._add_reference(agr, "ram:BuyerOrderReferencedDocument", ag.buyer_order_referenced_document)
        self._add_reference(agr, "ram:QuotationReferencedDocument", ag.quotation_referenced_document)
        for ref in ag.contract_referenced_documents:
            self._add_reference(agr, "ram:ContractReferencedDocument", ref)
        for ref in ag.requisition_referenced_documents:
            self._add_reference(agr, "ram:RequisitionReferencedDocument", ref)
        for ref in ag.additional_referenced_documents:
            self._add_reference(agr, "ram:AdditionalReferencedDocument", ref)
        for ref in ag.blanket_order_referenced_documents:
            self._add_reference(agr, "ram:BlanketOrderReferencedDocument", ref)
        for ref in ag.previous_order_change_referenced_documents:
            self._add_reference(agr, "ram:PreviousOrderChangeReferencedDocument", ref)
        for ref in ag.previous_order_response_referenced_documents:
            self._add_reference(agr, "ram:PreviousOrderResponseReferencedDocument", ref)
        for project in ag.procuring_project:
            proj = _el(agr, "ram:SpecifiedProcuringProject")
            _el(proj, "ram:ID", project.id)
            _el(proj, "ram:Name", project.name)

    def _add_delivery(self, tx: etree._Element, dl: HeaderTradeDelivery) -> None:
        dlv = _el(tx, "ram:ApplicableHeaderTradeDelivery")
        for party in dl.ship_to_party:
            self._add_party(dlv, "ram:ShipToTradeParty", party)
        for party in dl.ship_from_party:
            self._add_party(dlv, "ram:ShipFromTradeParty", party)
        for event in dl.requested_delivery_events:
            self._add_event(dlv, "ram:RequestedDeliverySupplyChainEvent", event)

    def _add_settlement(self, tx: etree._Element, st: HeaderTradeSettlement) -> None:
        stl = _el(tx, "ram:ApplicableHeaderTradeSettlement")
        _opt(stl, "ram:OrderCurrencyCode", st.order_currency_code)
        for party in st.invoicee_party:
            self._add_party(stl, "ram:InvoiceeTradeParty", party)
        if st.payment_means is not None:
            pm = _el(stl, "ram:SpecifiedTradeSettlementPaymentMeans")
            _el(pm, "ram:TypeCode", st.payment_means.type_code)
            _opt(pm, "ram:Information", st.payment_means.information)
        for ac in st.allowance_charges:
            self._add_allowance_charge(stl, "ram:SpecifiedTradeAllowanceCharge", ac)
        for terms in st.payment_terms:
            pt = _el(stl, "ram:SpecifiedTradePaymentTerms")
            _el(pt, "ram:Description", terms.description)
        if st.monetary_summation is not None:
            s = st.monetary_summation
            summ = _el(stl, "ram:SpecifiedTradeSettlementHeaderMonetarySummation")
            for tag, value in (
                ("ram:LineTotalAmount", s.line_total_amount),
                ("ram:ChargeTotalAmount", s.charge_total_amount),
                ("ram:AllowanceTotalAmount", s.allowance_total_amount),
                ("ram:TaxBasisTotalAmount", s.tax_basis_total_amount),
            ):
                if value is not None:
                    _el(summ, tag, _fmt_amount(value))
            for amount in s.tax_total_amounts:
                _el(summ, "ram:TaxTotalAmount", _fmt_amount(amount.value), currencyID=amount.currency_id)
            _el(summ, "ram:GrandTotalAmount", _fmt_amount(s.grand_total_amount))
        for account in st.accounting_account:
            acc = _el(stl, "ram:ReceivableSpecifiedTradeAccountingAccount")
            _el(acc, "ram:ID", account.id)
            self._opt_if(acc, "accounting_account.type_code", "ram:TypeCode", account.type_code)

    # ── Shared fragments ────────────────────────────────────────
    def _add_party(self, parent: etree._Element, tag: str, party: TradeParty) -> None:
        p = _el(parent, tag)
        if party.id is not None:
            _el(p, "ram:ID", party.id.value)
        for gid in party.global_ids:
            _el(p, "ram:GlobalID", gid.value, schemeID=gid.scheme_id)
        _el(p, "ram:Name", party.name)
        self._opt_if(p, "party.description", "ram:Description", party.description)

        if party.legal_organization is not None:
            org = _el(p, "ram:SpecifiedLegalOrganization")
            if party.legal_organization.id is not None:
                _el(org, "ram:ID", party.legal_organization.id.value,
                    schemeID=party.legal_organization.id.scheme_id)
            _opt(org, "ram:TradingBusinessName", party.legal_organization.trading_business_name)

        for contact in party.contacts:
            c = _el(p, "ram:DefinedTradeContact")
            _opt(c, "ram:PersonName", contact.person_name)
            _opt(c, "ram:DepartmentName", contact.department_name)
            self._opt_if(c, "contact.type_code", "ram:TypeCode", contact.type_code)
            if contact.telephone is not None:
                tel = _el(c, "ram:TelephoneUniversalCommunication")
                _el(tel, "ram:CompleteNumber", contact.telephone)
            if contact.fax is not None and self._has("contact.fax"):
                fax = _el(c, "ram:FaxUniversalCommunication")
                _el(fax, "ram:CompleteNumber", contact.fax)
            if contact.email is not None:
                mail = _el(c, "ram:EmailURIUniversalCommunication")
                _el(mail, "ram:URIID", contact.email)

        if party.postal_address is not None:
            a = party.postal_address
            addr = _el(p, "ram:PostalTradeAddress")
            _opt(addr, "ram:PostcodeCode", a.postcode)
            _opt(addr, "ram:LineOne", a.line_one)
            _opt(addr, "ram:LineTwo", a.line_two)
            _opt(addr, "ram:LineThree", a.line_three)
            _opt(addr, "ram:CityName", a.city)
            _opt(addr, "ram:CountryID", a.country_id)
            _opt(addr, "ram:CountrySubDivisionName", a.subdivision)

        if party.uri_communication is not None:
            uri = _el(p, "ram:URIUniversalCommunication")
            _el(uri, "ram:URIID", party.uri_communication.uri_id.value,
                schemeID=party.uri_communication.uri_id.scheme_id)

        for reg in party.tax_registrations:
            tr = _el(p, "ram:SpecifiedTaxRegistration")
            _el(tr, "ram:ID", reg.id.value, schemeID=reg.id.scheme_id)

    def _add_reference(self, parent: etree._Element, tag: str, ref: ReferencedDocument | None) -> None:
        if ref is None:
            return
        elem = _el(parent, tag)
        _opt(elem, "ram:IssuerAssignedID", ref.issuer_assigned_id)
        self._opt_if(elem, "reference.uri_id", "ram:URIID", ref.uri_id)
        _opt(elem, "ram:LineID", ref.line_id)
        self._opt_if(elem, "reference.type_code", "ram:TypeCode", ref.type_code)
        self._opt_if(elem, "reference.name", "ram:Name", ref.name)
        if ref.attachment is not None and self._has("reference.attachment"):
            _el(elem, "ram:AttachmentBinaryObject", ref.attachment.content,
                mimeCode=ref.attachment.mime_code, filename=ref.attachment.filename)
        self._opt_if(elem, "reference.reference_type_code", "ram:ReferenceTypeCode", ref.reference_type_code)
        if ref.issue_date is not None and self._has("reference.issue_date"):
            dt = _el(elem, "ram:FormattedIssueDateTime")
            _el(dt, "qdt:DateTimeString", _fmt_date(ref.issue_date), format="102")

    def _add_tax(self, parent: etree._Element, tag: str, tax: TradeTax) -> None:
        t = _el(parent, tag)
        if tax.calculated_amount is not None and self._has("tax.calculated_amount"):
            _el(t, "ram:CalculatedAmount", _fmt_amount(tax.calculated_amount))
        _opt(t, "ram:TypeCode", tax.type_code)
        self._opt_if(t, "tax.exemption_reason", "ram:ExemptionReason", tax.exemption_reason)
        _opt(t, "ram:CategoryCode", tax.category_code)
        self._opt_if(t, "tax.exemption_reason_code", "ram:ExemptionReasonCode", tax.exemption_reason_code)
        if tax.rate_applicable_percent is not None:
            _el(t, "ram:RateApplicablePercent", _fmt_decimal(tax.rate_applicable_percent))

    def _add_allowance_charge(self, parent: etree._Element, tag: str, ac: TradeAllowanceCharge) -> None:
        elem = _el(parent, tag)
        ind = _el(elem, "ram:ChargeIndicator")
        _el(ind, "udt:Indicator", _fmt_bool(ac.charge_indicator))
        if ac.sequence is not None:
            _el(elem, "ram:SequenceNumeric", f"{ac.sequence:f}")
        if ac.calculation_percent is not None:
            _el(elem, "ram:CalculationPercent", _fmt_decimal(ac.calculation_percent))
        if ac.basis_amount is not None:
            _el(elem, "ram:BasisAmount", _fmt_amount(ac.basis_amount))
        if self._has("allowance_charge.basis_quantity"):
            self._add_quantity(elem, "ram:BasisQuantity", ac.basis_quantity)
        _el(elem, "ram:ActualAmount", _fmt_amount(ac.actual_amount))
        _opt(elem, "ram:ReasonCode", ac.reason_code)
        _opt(elem, "ram:Reason", ac.reason)
        if ac.category_trade_tax is not None:
            self._add_tax(elem, "ram:CategoryTradeTax", ac.category_trade_tax)

    def _add_note(self, parent: etree._Element, note: Note) -> None:
        elem = _el(parent, "ram:IncludedNote")
        self._opt_if(elem, "note.content_code", "ram:ContentCode", note.content_code)
        _opt(elem, "ram:Content", note.content)
        _opt(elem, "ram:SubjectCode", note.subject_code)

    def _opt_if(self, parent: etree._Element, element: str, tag: str, text) -> None:
        """``_opt`` for a child that only some profiles define."""
        if self._has(element):
            _opt(parent, tag, text)

    def _add_event(self, parent: etree._Element, tag: str, event: SupplyChainEvent) -> None:
        elem = _el(parent, tag)
        if event.occurrence is not None:
            occ = _el(elem, "ram:OccurrenceDateTime")
            _el(occ, "udt:DateTimeString", _fmt_date(event.occurrence), format="102")
        if event.period is not None:
            self._add_period(elem, "ram:OccurrenceSpecifiedPeriod", event.period)

    def _add_period(self, parent: etree._Element, tag: str, period: Period) -> None:
        elem = _el(parent, tag)
        for child, value in (("ram:StartDateTime", period.start), ("ram:EndDateTime", period.end)):
            if value is not None:
                dt = _el(elem, child)
                _el(dt, "udt:DateTimeString", _fmt_date(value), format="102")

    def _add_quantity(self, parent: etree._Element, tag: str, qty: Quantity | None) -> None:
        if qty is None:
            return
        _el(parent, tag, _fmt_decimal(qty.value), unitCode=qty.unit_code)
