from __future__ import annotations

import logging
from datetime import date

import pytest

from conftest import LINE, parse, text, xpath
from orderx.builder import OrderDocumentBuilder
from orderx.exceptions import MissingCapabilityError
from orderx.profiles import Profile


def line(root, line_id: str):
    found = xpath(root, f"{LINE}[ram:AssociatedDocumentLineDocument/ram:LineID='{line_id}']")
    assert len(found) == 1
    return found[0]


def children(elem) -> list[str]:
    return [c.tag.split("}", 1)[1] for c in elem]


def test_net_price_targets_last_position(extended):
    extended.add_new_position("1").add_new_position("2")
    extended.set_document_position_net_price(9.99)
    root = parse(extended)
    assert xpath(line(root, "1"), ".//ram:NetPriceProductTradePrice") == []
    assert text(line(root, "2"), "ram:SpecifiedLineTradeAgreement/ram:NetPriceProductTradePrice"
                                 "/ram:ChargeAmount") == "9.99"
    assert extended.current_position.line_id == "2"


def test_line_calls_without_position_are_ignored(extended):
    assert extended.set_document_position_net_price(1) is extended
    extended.set_document_position_note("note")
    extended.set_document_position_product_details(name="Widget")
    extended.add_document_position_tax("S", "VAT", 19)
    extended.set_document_position_line_summation(10)
    extended.set_document_position_deliver_req_quantity(1, "C62")
    assert xpath(parse(extended), LINE) == []


def test_lines_keep_insertion_order_and_duplicate_ids(extended):
    extended.add_new_position("1", "ADD").add_new_position("3").add_new_position("1")
    root = parse(extended)
    assert [e.text for e in xpath(root, f"{LINE}/ram:AssociatedDocumentLineDocument/ram:LineID")] \
        == ["1", "3", "1"]
    assert text(root, f"{LINE}[1]/ram:AssociatedDocumentLineDocument/ram:LineStatusCode") == "ADD"


def test_line_notes_set_or_add(extended, basic):
    for builder in (extended, basic):
        builder.add_new_position("1")
        builder.set_document_position_note("first", subject_code="AAI")
        builder.set_document_position_note("second", "C1")
    notes = xpath(parse(extended), f"{LINE}/ram:AssociatedDocumentLineDocument/ram:IncludedNote")
    assert [text(n, "ram:Content") for n in notes] == ["first", "second"]
    assert children(notes[1]) == ["ContentCode", "Content"]
    notes = xpath(parse(basic), f"{LINE}/ram:AssociatedDocumentLineDocument/ram:IncludedNote")
    assert [text(n, "ram:Content") for n in notes] == ["second"]
    assert children(notes[0]) == ["Content"]


def test_product_details(extended):
    extended.add_new_position("1")
    extended.set_document_position_product_details(
        "Widget", "Blue widget", "S-1", "B-1", "0160", "4012345000016", "BATCH-7", "Acme")
    extended.set_document_position_product_origin_trade_country("DE")
    product = xpath(parse(extended), f"{LINE}/ram:SpecifiedTradeProduct")[0]
    assert children(product) == [
        "GlobalID", "SellerAssignedID", "BuyerAssignedID", "Name", "Description", "BatchID", "BrandName",
        "OriginTradeCountry",
    ]
    assert xpath(product, "ram:GlobalID")[0].get("schemeID") == "0160"
    assert text(product, "ram:OriginTradeCountry/ram:ID") == "DE"


def test_product_details_in_basic(basic, caplog):
    basic.add_new_position("1")
    basic.set_document_position_product_details(
        "Widget", "Blue widget", "S-1", "B-1", "0160", "4012345000016", "BATCH-7", "Acme")
    with caplog.at_level(logging.WARNING, logger="orderx.builder"):
        basic.set_document_position_product_origin_trade_country("DE")
    assert "product_origin_country" in caplog.text
    product = xpath(parse(basic), f"{LINE}/ram:SpecifiedTradeProduct")[0]
    assert children(product) == ["GlobalID", "SellerAssignedID", "BuyerAssignedID", "Name"]


def test_product_sub_structures_need_product(extended):
    extended.add_new_position("1")
    extended.add_document_position_product_characteristic("Colour", "Blue")
    extended.set_document_position_product_origin_trade_country("DE")
    extended.set_document_position_product_referenced_document("R1")
    assert xpath(parse(extended), f"{LINE}/ram:SpecifiedTradeProduct") == []


def test_product_collections_in_extended(extended):
    extended.add_new_position("1").set_document_position_product_details(name="Widget")
    extended.set_document_position_product_characteristic("Colour", "Blue", "C")
    extended.add_document_position_product_characteristic("Weight", "2 kg")
    extended.set_document_position_product_classification("44121600", "Paper", "TST", "19.05.01")
    extended.add_document_position_product_classification("44121700")
    extended.set_document_position_product_instance("B1", "S1")
    extended.add_document_position_product_instance(serial_id="S2")
    extended.set_document_position_applicable_supply_chain_packaging("7B", 10, "CMT", 20, "CMT")
    extended.set_document_position_product_referenced_document("R1", "6")
    extended.add_document_position_product_referenced_document("R2")
    product = xpath(parse(extended), f"{LINE}/ram:SpecifiedTradeProduct")[0]
    assert [e.text for e in xpath(product, "ram:ApplicableProductCharacteristic/ram:Description")] \
        == ["Colour", "Weight"]
    classes = xpath(product, "ram:DesignatedProductClassification/ram:ClassCode")
    assert [c.text for c in classes] == ["44121600", "44121700"]
    assert classes[0].get("listID") == "TST"
    assert classes[0].get("listVersionID") == "19.05.01"
    assert classes[1].get("listID") is None
    assert [e.text for e in xpath(product, "ram:IndividualTradeProductInstance/ram:SerialID")] == ["S1", "S2"]
    width = xpath(product, "ram:ApplicableSupplyChainPackaging/ram:LinearSpatialDimension/ram:WidthMeasure")[0]
    assert (width.text, width.get("unitCode")) == ("10.00", "CMT")
    assert xpath(product, "ram:ApplicableSupplyChainPackaging/ram:LinearSpatialDimension/ram:HeightMeasure") == []
    refs = xpath(product, "ram:AdditionalReferenceReferencedDocument")
    assert [text(r, "ram:IssuerAssignedID") for r in refs] == ["R1", "R2"]
    assert text(refs[0], "ram:TypeCode") == "6"


def test_product_collections_in_comfort(comfort):
    comfort.add_new_position("1").set_document_position_product_details(name="Widget")
    comfort.set_document_position_product_characteristic("Colour", "Blue")
    comfort.add_document_position_product_characteristic("Weight", "2 kg")
    comfort.set_document_position_product_instance("B1")
    comfort.set_document_position_product_instance("B2")
    comfort.set_document_position_applicable_supply_chain_packaging("7B")
    comfort.set_document_position_product_referenced_document("R1", uri_id="https://example.com/r1")
    product = xpath(parse(comfort), f"{LINE}/ram:SpecifiedTradeProduct")[0]
    assert [e.text for e in xpath(product, "ram:ApplicableProductCharacteristic/ram:Description")] \
        == ["Colour", "Weight"]
    assert [e.text for e in xpath(product, "ram:IndividualTradeProductInstance/ram:BatchID")] == ["B2"]
    assert text(product, "ram:ApplicableSupplyChainPackaging/ram:TypeCode") == "7B"
    assert text(product, "ram:AdditionalReferenceReferencedDocument/ram:URIID") == "https://example.com/r1"


def test_product_collections_absent_in_basic(basic, caplog):
    basic.add_new_position("1").set_document_position_product_details(name="Widget")
    with caplog.at_level(logging.WARNING, logger="orderx.builder"):
        basic.set_document_position_product_characteristic("Colour", "Blue")
        basic.add_document_position_product_classification("44121600")
        basic.set_document_position_product_instance("B1")
        basic.set_document_position_applicable_supply_chain_packaging("7B")
        basic.set_document_position_product_referenced_document("R1")
    assert "product_characteristic" in caplog.text
    product = xpath(parse(basic), f"{LINE}/ram:SpecifiedTradeProduct")[0]
    assert children(product) == ["Name"]


def test_line_agreement_references(extended):
    extended.add_new_position("1")
    extended.set_document_position_buyer_order_referenced_document("10")
    extended.set_document_position_quotation_referenced_document("Q-1", "3")
    extended.set_document_position_blanket_order_referenced_document("7")
    extended.set_document_position_catalogue_referenced_document("CAT-1", "100")
    extended.add_document_position_catalogue_referenced_document("CAT-2")
    extended.add_document_position_additional_referenced_document("A-1", "130")
    agreement = xpath(parse(extended), f"{LINE}/ram:SpecifiedLineTradeAgreement")[0]
    assert children(agreement) == [
        "BuyerOrderReferencedDocument", "QuotationReferencedDocument", "AdditionalReferencedDocument",
        "CatalogueReferencedDocument", "CatalogueReferencedDocument", "BlanketOrderReferencedDocument",
    ]
    assert [text(c, "ram:IssuerAssignedID") for c in xpath(agreement, "ram:CatalogueReferencedDocument")] \
        == ["CAT-1", "CAT-2"]
    assert text(agreement, "ram:BuyerOrderReferencedDocument/ram:LineID") == "10"
    assert xpath(agreement, "ram:BuyerOrderReferencedDocument/ram:IssuerAssignedID") == []
    assert text(agreement, "ram:QuotationReferencedDocument/ram:IssuerAssignedID") == "Q-1"
    assert text(agreement, "ram:AdditionalReferencedDocument/ram:TypeCode") == "130"


def test_blanket_order_follows_prices_and_catalogue(extended):
    extended.add_new_position("1")
    extended.set_document_position_blanket_order_referenced_document("7")
    extended.set_document_position_gross_price(12)
    extended.set_document_position_net_price(10)
    agreement = xpath(parse(extended), f"{LINE}/ram:SpecifiedLineTradeAgreement")[0]
    assert children(agreement) == [
        "GrossPriceProductTradePrice", "NetPriceProductTradePrice", "BlanketOrderReferencedDocument"]


def test_catalogue_is_single_in_comfort():
    builder = OrderDocumentBuilder(Profile.COMFORT, strict=True)
    builder.add_new_position("1").set_document_position_catalogue_referenced_document("CAT-1")
    builder.set_document_position_catalogue_referenced_document("CAT-2")
    with pytest.raises(MissingCapabilityError):
        builder.add_document_position_catalogue_referenced_document("CAT-3")
    refs = xpath(parse(builder), f"{LINE}//ram:CatalogueReferencedDocument/ram:IssuerAssignedID")
    assert [r.text for r in refs] == ["CAT-2"]


def test_catalogue_raises_in_strict_basic():
    builder = OrderDocumentBuilder(Profile.BASIC, strict=True)
    builder.add_new_position("1")
    with pytest.raises(MissingCapabilityError):
        builder.set_document_position_catalogue_referenced_document("CAT-1")


def test_prices_and_gross_allowances(extended):
    extended.add_new_position("1")
    extended.add_document_position_gross_price_allowance_charge(1, False)
    extended.set_document_position_gross_price(12.5, 1, "C62")
    extended.add_document_position_gross_price_allowance_charge(1, False, "Discount", "95")
    extended.add_document_position_gross_price_allowance_charge(0.5, True)
    extended.set_document_position_net_price("12.0000", 1, "C62")
    agreement = f"{LINE}/ram:SpecifiedLineTradeAgreement"
    root = parse(extended)
    gross = xpath(root, f"{agreement}/ram:GrossPriceProductTradePrice")[0]
    assert text(gross, "ram:ChargeAmount") == "12.50"
    basis = xpath(gross, "ram:BasisQuantity")[0]
    assert (basis.text, basis.get("unitCode")) == ("1.00", "C62")
    charges = xpath(gross, "ram:AppliedTradeAllowanceCharge")
    assert len(charges) == 2
    assert text(charges[0], "ram:ChargeIndicator/udt:Indicator") == "false"
    assert text(charges[0], "ram:Reason") == "Discount"
    assert text(charges[0], "ram:ReasonCode") == "95"
    assert text(charges[1], "ram:ChargeIndicator/udt:Indicator") == "true"
    assert text(root, f"{agreement}/ram:NetPriceProductTradePrice/ram:ChargeAmount") == "12.00"


def test_gross_price_absent_in_basic(basic, caplog):
    basic.add_new_position("1")
    with caplog.at_level(logging.WARNING, logger="orderx.builder"):
        basic.set_document_position_gross_price(10)
        basic.set_document_position_quotation_referenced_document("Q-1")
    assert "gross_price" in caplog.text
    assert "line_quotation_referenced_document" in caplog.text
    basic.add_document_position_gross_price_allowance_charge(1, False)
    basic.set_document_position_net_price(9)
    agreement = xpath(parse(basic), f"{LINE}/ram:SpecifiedLineTradeAgreement")[0]
    assert children(agreement) == ["NetPriceProductTradePrice"]


def test_gross_price_raises_in_strict_basic():
    builder = OrderDocumentBuilder(Profile.BASIC, strict=True)
    builder.add_new_position("1")
    with pytest.raises(MissingCapabilityError):
        builder.set_document_position_gross_price(10)


def test_price_keeps_every_decimal(extended):
    extended.add_new_position("1").set_document_position_net_price("0.12345")
    extended.set_document_position_deliver_req_quantity("1.000001", "KGM")
    root = parse(extended)
    assert text(root, f"{LINE}//ram:NetPriceProductTradePrice/ram:ChargeAmount") == "0.12345"
    assert text(root, f"{LINE}//ram:RequestedQuantity") == "1.000001"


def test_delivery(extended):
    extended.add_new_position("1")
    extended.set_document_position_partial_delivery(True)
    extended.set_document_position_deliver_req_quantity(5, "C62")
    extended.set_document_position_deliver_agreed_quantity(4, "C62")
    extended.set_document_position_deliver_package_quantity(2, "XPK")
    extended.set_document_position_deliver_per_package_quantity("2.5", "C62")
    extended.add_document_position_requested_delivery_supply_chain_event(date(2024, 5, 1))
    extended.add_document_position_requested_delivery_supply_chain_event(
        start=date(2024, 6, 1), end=date(2024, 6, 2))
    delivery = xpath(parse(extended), f"{LINE}/ram:SpecifiedLineTradeDelivery")[0]
    assert children(delivery) == [
        "PartialDeliveryAllowedIndicator", "RequestedQuantity", "AgreedQuantity", "PackageQuantity",
        "PerPackageUnitQuantity", "RequestedDeliverySupplyChainEvent", "RequestedDeliverySupplyChainEvent",
    ]
    assert text(delivery, "ram:PartialDeliveryAllowedIndicator/udt:Indicator") == "true"
    requested = xpath(delivery, "ram:RequestedQuantity")[0]
    assert (requested.text, requested.get("unitCode")) == ("5.00", "C62")
    assert text(delivery, "ram:PerPackageUnitQuantity") == "2.50"
    assert text(delivery, "ram:RequestedDeliverySupplyChainEvent[1]/ram:OccurrenceDateTime"
                          "/udt:DateTimeString") == "20240501"


def test_delivery_in_comfort_and_basic(comfort, basic, caplog):
    for builder in (comfort, basic):
        builder.add_new_position("1")
        builder.set_document_position_deliver_req_quantity(5, "C62")
        builder.add_document_position_requested_delivery_supply_chain_event(date(2024, 5, 1))
        builder.add_document_position_requested_delivery_supply_chain_event(date(2024, 5, 2))
    dates = xpath(parse(comfort), f"{LINE}//ram:RequestedDeliverySupplyChainEvent//udt:DateTimeString")
    assert [d.text for d in dates] == ["20240502"]
    with caplog.at_level(logging.WARNING, logger="orderx.builder"):
        basic.set_document_position_deliver_package_quantity(2, "XPK")
        basic.set_document_position_deliver_per_package_quantity(1, "C62")
    assert "line_package_quantity" in caplog.text
    assert "line_per_package_quantity" in caplog.text
    delivery = xpath(parse(basic), f"{LINE}/ram:SpecifiedLineTradeDelivery")[0]
    assert children(delivery) == ["RequestedQuantity"]


def test_line_tax_set_or_add(extended, comfort):
    for builder in (extended, comfort):
        builder.add_new_position("1")
        builder.add_document_position_tax("S", "VAT", 19, 1.9)
        builder.add_document_position_tax("E", "VAT", 0, exemption_reason="Exempt", exemption_reason_code="VATEX-EU-O")
    taxes = xpath(parse(extended), f"{LINE}/ram:SpecifiedLineTradeSettlement/ram:ApplicableTradeTax")
    assert [text(t, "ram:CategoryCode") for t in taxes] == ["S", "E"]
    assert text(taxes[0], "ram:RateApplicablePercent") == "19.00"
    assert text(taxes[0], "ram:CalculatedAmount") == "1.90"
    assert children(taxes[1]) == [
        "TypeCode", "ExemptionReason", "CategoryCode", "ExemptionReasonCode", "RateApplicablePercent"]
    taxes = xpath(parse(comfort), f"{LINE}/ram:SpecifiedLineTradeSettlement/ram:ApplicableTradeTax")
    assert len(taxes) == 1
    assert text(taxes[0], "ram:CategoryCode") == "E"
    assert children(taxes[0]) == ["TypeCode", "CategoryCode", "RateApplicablePercent"]


def test_line_tax_absent_in_basic(basic, caplog):
    basic.add_new_position("1")
    with caplog.at_level(logging.WARNING, logger="orderx.builder"):
        basic.add_document_position_tax("S", "VAT", 19)
        basic.add_document_position_allowance_charge(5, False)
    assert "line_tax" in caplog.text
    assert "line_allowance_charge" in caplog.text
    settlement = xpath(parse(basic), f"{LINE}/ram:SpecifiedLineTradeSettlement")[0]
    assert len(settlement) == 0


def test_line_settlement(comfort):
    comfort.add_new_position("1")
    comfort.add_document_position_allowance_charge(5, False, 10, 50, "95", "Discount")
    comfort.add_document_position_allowance_charge(2, True, reason="Packaging")
    comfort.set_document_position_line_summation(47, -3)
    comfort.set_document_position_receivable_trade_accounting_account("4400", "1")
    settlement = xpath(parse(comfort), f"{LINE}/ram:SpecifiedLineTradeSettlement")[0]
    charges = xpath(settlement, "ram:SpecifiedTradeAllowanceCharge")
    assert [text(c, "ram:ChargeIndicator/udt:Indicator") for c in charges] == ["false", "true"]
    assert text(charges[0], "ram:CalculationPercent") == "10.00"
    assert text(charges[0], "ram:BasisAmount") == "50.00"
    summ = "ram:SpecifiedTradeSettlementLineMonetarySummation"
    assert text(settlement, f"{summ}/ram:LineTotalAmount") == "47.00"
    assert xpath(settlement, f"{summ}/ram:TotalAllowanceChargeAmount") == []
    assert text(settlement, "ram:ReceivableSpecifiedTradeAccountingAccount/ram:ID") == "4400"
    assert text(settlement, "ram:ReceivableSpecifiedTradeAccountingAccount/ram:TypeCode") == "1"


def test_line_settlement_in_extended(extended):
    extended.add_new_position("1")
    extended.add_document_position_allowance_charge(5, False)
    extended.add_document_position_allowance_charge(2, True)
    extended.set_document_position_line_summation(47, -3)
    settlement = xpath(parse(extended), f"{LINE}/ram:SpecifiedLineTradeSettlement")[0]
    assert len(xpath(settlement, "ram:SpecifiedTradeAllowanceCharge")) == 2
    assert text(settlement, "ram:SpecifiedTradeSettlementLineMonetarySummation"
                            "/ram:TotalAllowanceChargeAmount") == "-3.00"


def test_line_accounting_account_absent_in_basic(basic):
    basic.add_new_position("1").set_document_position_receivable_trade_accounting_account("4400")
    assert xpath(parse(basic), f"{LINE}//ram:ReceivableSpecifiedTradeAccountingAccount") == []
