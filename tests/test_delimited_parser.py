from __future__ import annotations

from datetime import date

from bank_import.ingest.adapters import ADAPTERS, select_adapter
from bank_import.ingest.adapters.base import BankAdapter
from bank_import.ingest.delimited import (
    UNSUPPORTED_FORMAT,
    decode_export,
    detect_delimiter,
    parse_delimited_export,
)
from bank_import.models import TransactionDraft

ING_HEADER = (
    '"Datum","Naam / Omschrijving","Rekening","Tegenrekening","Code","Af Bij",'
    '"Bedrag (EUR)","Mutatiesoort","Mededelingen"'
)
RABO_HEADER = (
    '"IBAN/BBAN","Munt","BIC","Volgnr","Datum","Rentedatum","Bedrag","Saldo na trn",'
    '"Tegenrekening IBAN/BBAN","Naam tegenpartij","Omschrijving-1","Omschrijving-2"'
)


def _ing_row(day: int, name: str, af_bij: str, amount: str, memo: str = "", iban: str = "") -> str:
    return (
        f'"202511{day:02d}","{name}","NL00INGB0001234567","{iban}","BA","{af_bij}",'
        f'"{amount}","Betaalautomaat","{memo}"'
    )


# ---- Adapter registry ----------------------------------------------------------


def test_registry_first_match_wins_on_overlapping_headers() -> None:
    def always(_headers) -> bool:
        return True

    def never_called(_row):  # pragma: no cover - adapter is never selected
        raise AssertionError("second adapter must not be used")

    first = BankAdapter(key="FIRST", detect=always, parse_row=lambda row: None)
    second = BankAdapter(key="SECOND", detect=always, parse_row=never_called)

    for _ in range(5):
        assert select_adapter(["A", "B"], (first, second)) is first
        assert select_adapter(["A", "B"], (second, first)) is second


def test_builtin_registry_prefers_earlier_registration() -> None:
    headers = [
        "Datum",
        "Naam / Omschrijving",
        "Rekening",
        "Tegenrekening",
        "Af Bij",
        "Bedrag (EUR)",
        "IBAN/BBAN",
        "Volgnr",
    ]
    adapter = select_adapter(headers)
    assert adapter is not None
    assert adapter.key == ADAPTERS[0].key == "ING_NL"


def test_detect_delimiter() -> None:
    assert detect_delimiter("a,b,c") == ","
    assert detect_delimiter("a;b;c,d") == ";"
    assert detect_delimiter("a\tb\tc") == "\t"
    assert detect_delimiter("single") == ","


# ---- ING export ------------------------------------------------------------------


def test_ing_export_maps_sign_description_and_counterparty() -> None:
    text = "\n".join(
        [
            ING_HEADER,
            _ing_row(17, "Albert Heijn 1585", "Af", "31,41", memo="Pasvolgnr: 001"),
            _ing_row(18, "Werkgever BV", "Bij", "2.500,00", iban="NL91ABNA0417164300"),
        ]
    )

    result = parse_delimited_export(text)

    assert result.document_error is None
    assert result.adapter_used == "ING_NL"
    assert result.warnings == []
    first, second = result.transactions
    assert first.date == date(2025, 11, 17)
    assert first.amount_cents == -3141
    assert first.description == "Pasvolgnr: 001"
    assert first.counterparty_name == "Albert Heijn 1585"
    assert first.counterparty_iban is None
    assert second.amount_cents == 250000
    # No Mededelingen: description falls back to the name column.
    assert second.description == "Werkgever BV"
    assert second.counterparty_iban == "NL91ABNA0417164300"


def test_line_level_isolation_one_bad_row_among_fifty() -> None:
    rows = [_ing_row(1 + (i % 28), f"Shop {i}", "Af", f"{i + 1},00") for i in range(50)]
    # Row 21 (physical line 22) has an unparseable date.
    rows[20] = rows[20].replace('"20251121"', '"2025-11-21"')
    text = "\n".join([ING_HEADER, *rows])

    result = parse_delimited_export(text)

    assert result.document_error is None
    assert len(result.transactions) == 49
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("line 22:")
    assert "Shop 20" not in {tx.counterparty_name for tx in result.transactions}


def test_bad_amount_is_a_line_warning_with_reason() -> None:
    text = "\n".join(
        [
            ING_HEADER,
            _ing_row(17, "Ok", "Af", "1,00"),
            _ing_row(17, "Broken", "Af", "twaalf"),
            _ing_row(18, "Ok too", "Af", "2,00"),
        ]
    )

    result = parse_delimited_export(text)

    assert [tx.counterparty_name for tx in result.transactions] == ["Ok", "Ok too"]
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("line 3:")
    assert "Invalid amount format" in result.warnings[0]


def test_output_preserves_input_row_order() -> None:
    names = [f"Merchant {i:03d}" for i in range(30)]
    text = "\n".join(
        [ING_HEADER, *(_ing_row(1 + (i % 28), n, "Af", "1,00") for i, n in enumerate(names))]
    )

    result = parse_delimited_export(text)

    assert [tx.counterparty_name for tx in result.transactions] == names


def test_bom_blank_lines_and_empty_rows_are_tolerated() -> None:
    text = "\ufeff\n\n" + "\n".join(
        [
            ING_HEADER,
            _ing_row(17, "Jumbo", "Af", "25,81"),
            ",,,,,,,,",
            "",
            _ing_row(99, "Bad date", "Af", "1,00"),
        ]
    )

    result = parse_delimited_export(text)

    assert result.adapter_used == "ING_NL"
    assert [tx.counterparty_name for tx in result.transactions] == ["Jumbo"]
    # Physical line numbers count the leading blank lines.
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("line 7:")


def test_reparse_yields_identical_fingerprints() -> None:
    text = "\n".join([ING_HEADER, _ing_row(17, "Jumbo", "Af", "25,81")])
    a = parse_delimited_export(text)
    b = parse_delimited_export(text)
    assert [t.import_hash for t in a.transactions] == [t.import_hash for t in b.transactions]


def test_windows_1252_export_decodes_to_the_same_records_as_utf8() -> None:
    row = _ing_row(17, "Caf\u00e9 No\u00ebl", "Af", "5,00", memo="\u20ac 5 fooi")
    text = "\n".join([ING_HEADER, row])

    from_cp1252 = parse_delimited_export(decode_export(text.encode("cp1252")))
    from_utf8 = parse_delimited_export(decode_export(text.encode("utf-8")))

    (tx,) = from_cp1252.transactions
    assert tx.counterparty_name == "Caf\u00e9 No\u00ebl"
    assert tx.description == "\u20ac 5 fooi"
    assert tx.import_hash == from_utf8.transactions[0].import_hash


def test_decode_export_never_replaces_bytes() -> None:
    # 0x81 is undefined in Windows-1252 and invalid as UTF-8.
    assert decode_export(b"a\x81b") == "a\x81b"
    assert "\ufffd" not in decode_export("Hoek \u00eb".encode("cp1252"))


# ---- Rabobank export ----------------------------------------------------------------


def test_rabobank_semicolon_export_with_signed_amounts() -> None:
    header = RABO_HEADER.replace(",", ";")
    rows = [
        '"NL00RABO0123456789";"EUR";"RABONL2U";"000000000000001";"2025-11-17";"2025-11-17";'
        '"-12,50";"+100,00";"NL91ABNA0417164300";"Sportschool";"Abonnement";"november"',
        '"NL00RABO0123456789";"EUR";"RABONL2U";"000000000000002";"18-11-2025";"18-11-2025";'
        '"+2.500,00";"+2600,00";"";"Werkgever BV";"Salaris";""',
    ]

    result = parse_delimited_export("\n".join([header, *rows]))

    assert result.adapter_used == "RABO_NL"
    assert result.warnings == []
    sub, salary = result.transactions
    assert sub.amount_cents == -1250
    assert sub.description == "Abonnement november"
    assert sub.counterparty_name == "Sportschool"
    assert sub.counterparty_iban == "NL91ABNA0417164300"
    assert salary.date == date(2025, 11, 18)
    assert salary.amount_cents == 250000
    assert salary.description == "Salaris"
    assert salary.counterparty_iban is None


def test_tab_separated_export_is_detected() -> None:
    header = "\t".join(
        ["Datum", "Naam / Omschrijving", "Rekening", "Tegenrekening", "Af Bij", "Bedrag (EUR)"]
    )
    row = "\t".join(["20251117", "NS Reizigers", "NL00INGB0001234567", "", "Af", "4,60"])

    result = parse_delimited_export(f"{header}\n{row}\n")

    assert result.adapter_used == "ING_NL"
    assert result.transactions[0].amount_cents == -460


# ---- Document-level outcomes ------------------------------------------------------------


def test_unsupported_header_is_a_document_error_not_an_exception() -> None:
    result = parse_delimited_export("Date,Description,Amount\n2025-11-17,Coffee,3.50\n")

    assert result.transactions == []
    assert result.adapter_used == "UNKNOWN"
    assert result.document_error == UNSUPPORTED_FORMAT


def test_empty_document() -> None:
    result = parse_delimited_export("\n \n")
    assert result.transactions == []
    assert result.document_error == "Document is empty."


def test_custom_registry_adapter_is_used() -> None:
    def detect(headers) -> bool:
        return "when" in headers and "what" in headers

    def parse_row(row) -> TransactionDraft:
        return TransactionDraft(
            date=date.fromisoformat(row["when"]), amount_cents=-100, description=row["what"]
        )

    custom = BankAdapter(key="CUSTOM", detect=detect, parse_row=parse_row)
    result = parse_delimited_export("when,what\n2025-11-17,thing\n", adapters=(custom,))

    assert result.adapter_used == "CUSTOM"
    assert result.transactions[0].description == "thing"
