from __future__ import annotations

import logging
from datetime import date

import pytest

from conftest import AGREEMENT, DELIVERY, SETTLEMENT, TX, parse, text, xpath
from orderx.builder import OrderDocumentBuilder
from orderx.profiles import Profile
from orderx.writer import NS, ROOT_TAG


def test_root_and_context(extended):
    root = parse(extended)
    assert root.tag == f"{{{NS['rsm']}}}{ROOT_TAG}"
    assert text(root, "rsm:ExchangedDocumentContext/ram:GuidelineSpecifiedDocumentContextParameter/ram:ID") \
        == "urn:order-x.eu:1p0:extended"
    # Header containers are always present
    assert len(xpath(root, AGREEMENT)) == 1
    assert len(xpath(root, DELIVERY)) == 1
    assert len(xpath(root, SETTLEMENT)) == 1


def test_document_information(extended, order_date):
    extended.set_document_information(
        "ORD-1", "220", order_date, "EUR",
        document_name="Bestellung", document_language="de",
        effective_specified_period=date(2024, 4, 1), purpose_code="9",
        requested_response_type_code="AC",
    )
    root = parse(extended)
    doc = "rsm:ExchangedDocument"
    assert text(root, f"{doc}/ram:ID") == "ORD-1"
    assert text(root, f"{doc}/ram:Name") == "Bestellung"
    assert text(root, f"{doc}/ram:TypeCode") == "220"
    issue = xpath(root, f"{doc}/ram:IssueDateTime/udt:DateTimeString")[0]
    assert issue.text == "20240315"
    assert issue.get("format") == "102"
    assert text(root, f"{doc}/ram:LanguageID") == "de"
    assert text(root, f"{doc}/ram:PurposeCode") == "9"
    assert text(root, f"{doc}/ram:RequestedResponseTypeCode") == "AC"
    period = f"{doc}/ram:EffectiveSpecifiedPeriod"
    assert text(root, f"{period}/ram:StartDateTime/udt:DateTimeString") == "20240401"
    assert text(root, f"{period}/ram:EndDateTime/udt:DateTimeString") == "20240401"
    assert text(root, f"{SETTLEMENT}/ram:OrderCurrencyCode") == "EUR"


def test_document_information_leaves_optionals_unset(extended, order_date):
    extended.set_document_information("ORD-1", "220", order_date, "EUR")
    root = parse(extended)
    for tag in ("ram:Name", "ram:LanguageID", "ram:PurposeCode", "ram:EffectiveSpecifiedPeriod",
                "ram:RequestedResponseTypeCode", "ram:CopyIndicator"):
        assert xpath(root, f"rsm:ExchangedDocument/{tag}") == []


def test_indicators_default_to_true(extended):
    extended.set_is_document_copy().set_is_test_document()
    root = parse(extended)
    assert text(root, "rsm:ExchangedDocument/ram:CopyIndicator/udt:Indicator") == "true"
    assert text(root, "rsm:ExchangedDocumentContext/ram:TestIndicator/udt:Indicator") == "true"

    extended.set_is_document_copy(False)
    assert text(parse(extended), "rsm:ExchangedDocument/ram:CopyIndicator/udt:Indicator") == "false"


def test_business_process(extended):
    extended.set_document_business_process_specified_document_context_parameter("A1")
    root = parse(extended)
    assert text(root, "rsm:ExchangedDocumentContext/ram:BusinessProcessSpecifiedDocumentContextParameter/ram:ID") \
        == "A1"


def test_notes_accumulate_in_order(extended):
    extended.add_document_note("first").add_document_note("second", "AAI")
    notes = xpath(parse(extended), "rsm:ExchangedDocument/ram:IncludedNote")
    assert [n.findtext(f"{{{NS['ram']}}}Content") for n in notes] == ["first", "second"]
    assert notes[1].findtext(f"{{{NS['ram']}}}SubjectCode") == "AAI"


def test_summation_stamps_order_currency(extended, order_date):
    extended.set_document_information("ORD-1", "220", order_date, "EUR")
    extended.set_document_summation(grand_total_amount=119.0, tax_total_amount=19.0)
    root = parse(extended)
    summ = f"{SETTLEMENT}/ram:SpecifiedTradeSettlementHeaderMonetarySummation"
    tax_total = xpath(root, f"{summ}/ram:TaxTotalAmount")
    assert len(tax_total) == 1
    assert tax_total[0].text == "19.00"
    assert tax_total[0].get("currencyID") == "EUR"
    assert text(root, f"{summ}/ram:GrandTotalAmount") == "119.00"
    assert xpath(root, f"{summ}/ram:LineTotalAmount") == []


def test_summation_before_information_has_no_currency(extended, order_date, caplog):
    with caplog.at_level(logging.WARNING, logger="orderx.builder"):
        extended.set_document_summation(119, tax_total_amount=19)
    assert "currency" in caplog.text
    extended.set_document_information("ORD-1", "220", order_date, "EUR")
    tax_total = xpath(parse(extended), f"{SETTLEMENT}//ram:TaxTotalAmount")[0]
    assert tax_total.get("currencyID") is None


def test_summation_amounts_are_rounded_half_up(extended):
    extended.set_document_summation("100.005", line_total_amount="100", charge_total_amount=0,
                                    allowance_total_amount="0.004", tax_basis_total_amount=100)
    summ = f"{SETTLEMENT}/ram:SpecifiedTradeSettlementHeaderMonetarySummation"
    root = parse(extended)
    assert text(root, f"{summ}/ram:GrandTotalAmount") == "100.01"
    assert text(root, f"{summ}/ram:LineTotalAmount") == "100.00"
    assert text(root, f"{summ}/ram:AllowanceTotalAmount") == "0.00"
    children = [etree_local(c) for c in xpath(root, summ)[0]]
    assert children == ["LineTotalAmount", "ChargeTotalAmount", "AllowanceTotalAmount",
                        "TaxBasisTotalAmount", "GrandTotalAmount"]


def etree_local(elem) -> str:
    return elem.tag.split("}", 1)[1]


def test_buyer_reference_and_delivery_terms(extended):
    extended.set_document_buyer_reference("REF-42")
    extended.set_document_delivery_terms("FCA", "Free carrier", relevant_trade_location_id="DEHAM",
                                         relevant_trade_location_name="Hamburg")
    root = parse(extended)
    assert text(root, f"{AGREEMENT}/ram:BuyerReference") == "REF-42"
    terms = f"{AGREEMENT}/ram:ApplicableTradeDeliveryTerms"
    assert text(root, f"{terms}/ram:DeliveryTypeCode") == "FCA"
    assert text(root, f"{terms}/ram:RelevantTradeLocation/ram:ID") == "DEHAM"
    assert text(root, f"{terms}/ram:RelevantTradeLocation/ram:Name") == "Hamburg"


def test_payment_means_and_terms(extended):
    extended.set_document_payment_mean("58", "SEPA")
    extended.add_document_payment_term("30 days net").add_document_payment_term("2% within 10 days")
    root = parse(extended)
    assert text(root, f"{SETTLEMENT}/ram:SpecifiedTradeSettlementPaymentMeans/ram:TypeCode") == "58"
    terms = xpath(root, f"{SETTLEMENT}/ram:SpecifiedTradePaymentTerms/ram:Description")
    assert [t.text for t in terms] == ["30 days net", "2% within 10 days"]
    assert extended.current_payment_terms.description == "2% within 10 days"


def test_payment_terms_replace_in_comfort(comfort):
    comfort.add_document_payment_term("first").add_document_payment_term("second")
    terms = xpath(parse(comfort), f"{SETTLEMENT}/ram:SpecifiedTradePaymentTerms/ram:Description")
    assert [t.text for t in terms] == ["second"]
    assert comfort.current_payment_terms.description == "second"


def test_document_allowance_charge(extended):
    extended.add_document_allowance_charge(
        10, False, tax_category_code="S", tax_type_code="VAT", rate_applicable_percent=19,
        calculation_percent=5, basis_amount=200, reason_code="95", reason="Discount",
    )
    extended.add_document_allowance_charge(7.5, True, reason="Freight")
    charges = xpath(parse(extended), f"{SETTLEMENT}/ram:SpecifiedTradeAllowanceCharge")
    assert len(charges) == 2
    ram = NS["ram"]
    udt = NS["udt"]
    assert charges[0].findtext(f"{{{ram}}}ChargeIndicator/{{{udt}}}Indicator") == "false"
    assert charges[0].findtext(f"{{{ram}}}ActualAmount") == "10.00"
    assert charges[0].findtext(f"{{{ram}}}CalculationPercent") == "5.00"
    assert charges[0].findtext(f"{{{ram}}}CategoryTradeTax/{{{ram}}}RateApplicablePercent") == "19.00"
    assert charges[1].findtext(f"{{{ram}}}ChargeIndicator/{{{udt}}}Indicator") == "true"
    assert charges[1].findtext(f"{{{ram}}}ActualAmount") == "7.50"
    assert charges[1].find(f"{{{ram}}}CategoryTradeTax") is None


def test_negative_amount_is_not_resigned(extended):
    extended.add_document_allowance_charge(-5, True)
    charge = xpath(parse(extended), f"{SETTLEMENT}/ram:SpecifiedTradeAllowanceCharge")[0]
    assert charge.findtext(f"{{{NS['ram']}}}ActualAmount") == "-5.00"


def test_requested_delivery_event(extended):
    extended.set_document_requested_delivery_supply_chain_event(date(2024, 5, 1))
    extended.set_document_requested_delivery_supply_chain_event(start=date(2024, 6, 1), end=date(2024, 6, 3))
    root = parse(extended)
    events = xpath(root, f"{DELIVERY}/ram:RequestedDeliverySupplyChainEvent")
    assert len(events) == 2
    assert text(root, f"{DELIVERY}/ram:RequestedDeliverySupplyChainEvent[2]"
                      f"/ram:OccurrenceSpecifiedPeriod/ram:EndDateTime/udt:DateTimeString") == "20240603"


def test_procuring_project_absent_in_basic(basic, caplog):
    with caplog.at_level(logging.WARNING, logger="orderx.builder"):
        result = basic.set_document_procuring_project("P1", "Project")
    assert result is basic
    assert "procuring_project" in caplog.text
    assert xpath(parse(basic), f"{AGREEMENT}/ram:SpecifiedProcuringProject") == []


def test_procuring_project_and_accounting_account(comfort):
    comfort.set_document_procuring_project("P1", "Project")
    comfort.set_document_receivable_specified_trade_accounting_account("4711", "1")
    root = parse(comfort)
    assert text(root, f"{AGREEMENT}/ram:SpecifiedProcuringProject/ram:Name") == "Project"
    assert text(root, f"{SETTLEMENT}/ram:ReceivableSpecifiedTradeAccountingAccount/ram:ID") == "4711"


def test_get_content_is_stable(extended, order_date):
    extended.set_document_information("ORD-1", "220", order_date, "EUR").set_document_seller("S")
    assert extended.get_content() == extended.get_content()
    assert extended.get_content_bytes().startswith(b"<?xml")


def test_transaction_children_order(extended):
    extended.add_new_position("1")
    tx = xpath(parse(extended), TX)[0]
    assert [etree_local(c) for c in tx] == [
        "IncludedSupplyChainTradeLineItem",
        "ApplicableHeaderTradeAgreement",
        "ApplicableHeaderTradeDelivery",
        "ApplicableHeaderTradeSettlement",
    ]


def test_init_new_document_discards_tree(extended, order_date):
    extended.set_document_information("ORD-1", "220", order_date, "EUR").add_new_position("1")
    extended.add_document_payment_term("net")
    extended.init_new_document()
    assert extended.current_position is None
    assert extended.current_payment_terms is None
    root = parse(extended)
    assert xpath(root, "rsm:ExchangedDocument/ram:ID") == []
    assert xpath(root, f"{TX}/ram:IncludedSupplyChainTradeLineItem") == []


def test_create_new_accepts_profile_name():
    builder = OrderDocumentBuilder.create_new("comfort")
    assert builder.profile is Profile.COMFORT
    assert builder.strict is False


def test_on_before_get_content_hook(order_date):
    class StampingBuilder(OrderDocumentBuilder):
        def on_before_get_content(self):
            self.add_document_note("generated")

    builder = StampingBuilder(Profile.BASIC)
    assert text(parse(builder), "rsm:ExchangedDocument/ram:IncludedNote/ram:Content") == "generated"


def test_write_file_overwrites(extended, order_date, tmp_path):
    target = tmp_path / "order-x.xml"
    target.write_text("stale")
    extended.set_document_information("ORD-1", "220", order_date, "EUR")
    assert extended.write_file(str(target)) is extended
    assert target.read_bytes() == extended.get_content_bytes()


def test_write_file_propagates_io_errors(extended, tmp_path):
    with pytest.raises(OSError):
        extended.write_file(str(tmp_path / "missing" / "order-x.xml"))


def full_information(builder: OrderDocumentBuilder, order_date: date) -> None:
    builder.set_document_information(
        "ORD-1", "220", order_date, "EUR", document_name="Order", document_language="de",
        effective_specified_period=date(2024, 4, 1), purpose_code="9", requested_response_type_code="AC",
    )
    builder.set_is_document_copy(False)
    builder.add_document_note("first", "AAI")


def test_document_children_follow_schema_order(extended, order_date):
    full_information(extended, order_date)
    doc = xpath(parse(extended), "rsm:ExchangedDocument")[0]
    assert [etree_local(c) for c in doc] == [
        "ID", "Name", "TypeCode", "IssueDateTime", "CopyIndicator", "LanguageID", "PurposeCode",
        "RequestedResponseTypeCode", "IncludedNote", "EffectiveSpecifiedPeriod",
    ]


@pytest.mark.parametrize("profile, expected", [
    (Profile.COMFORT, ["ID", "Name", "TypeCode", "IssueDateTime", "CopyIndicator", "PurposeCode",
                       "RequestedResponseTypeCode", "IncludedNote", "EffectiveSpecifiedPeriod"]),
    (Profile.BASIC, ["ID", "Name", "TypeCode", "IssueDateTime", "CopyIndicator", "PurposeCode",
                     "RequestedResponseTypeCode", "IncludedNote"]),
])
def test_document_children_per_profile(profile, expected, order_date):
    builder = OrderDocumentBuilder(profile)
    full_information(builder, order_date)
    doc = xpath(parse(builder), "rsm:ExchangedDocument")[0]
    assert [etree_local(c) for c in doc] == expected


def test_delivery_terms_in_basic(basic):
    basic.set_document_delivery_terms("FCA", "Free carrier", "1", "DEHAM", "Hamburg")
    terms = xpath(parse(basic), f"{AGREEMENT}/ram:ApplicableTradeDeliveryTerms")[0]
    assert [etree_local(c) for c in terms] == ["DeliveryTypeCode", "FunctionCode"]


def test_settlement_extras_absent_in_basic(basic, caplog):
    with caplog.at_level(logging.WARNING, logger="orderx.builder"):
        basic.set_document_payment_mean("58")
        basic.add_document_payment_term("net")
        basic.add_document_allowance_charge(10, False)
    assert "payment_means" in caplog.text
    assert "allowance_charge" in caplog.text
    assert basic.current_payment_terms is None
    basic.set_document_summation(100, line_total_amount=100, tax_basis_total_amount=100)
    settlement = xpath(parse(basic), SETTLEMENT)[0]
    assert [etree_local(c) for c in settlement] == ["SpecifiedTradeSettlementHeaderMonetarySummation"]
