from decimal import Decimal

import pytest

from rippler.config import BUILTIN_CONTACTS, ClientConfig, DEFAULT_URI, load_config
from rippler.contacts import AddressBook
from rippler.models import (
    Account,
    Ledger,
    Line,
    Transaction,
    format_account,
    format_ledger,
    format_line,
    format_transaction,
)
from rippler.money import Money, parse_money
from shared.message import ProtocolError, UnknownAccountError
from shared.utils import (
    drops_to_xrp,
    is_ripple_address,
    parse_command_line,
    parse_value,
    ripple_time_to_datetime,
)

from conftest import BITSTAMP, GENESIS


# ---- command line ----

def test_empty_command_line_defaults_to_account_info():
    assert parse_command_line([]) == ("account_info", {})


def test_command_line_pairs_and_lists():
    command, params = parse_command_line(
        ["subscribe", "streams:[ledger,transactions]", "id:3", "url:http://example.com:80", "accounts:[]"]
    )

    assert command == "subscribe"
    assert params == {
        "streams": ["ledger", "transactions"],
        "id": "3",
        "url": "http://example.com:80",
        "accounts": [],
    }


@pytest.mark.parametrize("word", ["account", ":value"])
def test_command_line_rejects_malformed_pairs(word):
    with pytest.raises(ValueError):
        parse_command_line(["account_info", word])


def test_parse_value():
    assert parse_value("[a, b]") == ["a", "b"]
    assert parse_value("plain") == "plain"


def test_address_check():
    assert is_ripple_address(GENESIS)
    assert is_ripple_address(BITSTAMP)
    assert not is_ripple_address("genesis")
    assert not is_ripple_address("r0OIl" + "1" * 25)


def test_unit_conversions():
    assert drops_to_xrp("1500000") == Decimal("1.5")
    assert ripple_time_to_datetime(86400).isoformat() == "2000-01-02T00:00:00+00:00"
    with pytest.raises(ValueError):
        drops_to_xrp("lots")


# ---- address book ----

def test_address_book_resolves_aliases_and_addresses():
    book = AddressBook(BUILTIN_CONTACTS)

    assert book.resolve("genesis") == GENESIS
    assert book.resolve(BITSTAMP) == BITSTAMP
    with pytest.raises(UnknownAccountError):
        book.resolve("stranger")


def test_address_book_rejects_non_string_accounts():
    with pytest.raises(UnknownAccountError):
        AddressBook(BUILTIN_CONTACTS).resolve(["genesis"])


# ---- money ----

def test_parse_money_forms():
    book = AddressBook(BUILTIN_CONTACTS)

    assert parse_money("10/usd/bitstamp", book) == Money(Decimal("10"), "USD", BITSTAMP)
    assert parse_money("USD/bitstamp", book).to_hash() == {"currency": "USD", "issuer": BITSTAMP}
    assert parse_money("XRP").to_hash() == {"currency": "XRP"}
    assert parse_money("0/XRP").to_hash() == {"currency": "XRP"}
    assert parse_money("0/USD/rXYZ").to_hash() == {"currency": "USD", "issuer": "rXYZ"}


def test_parse_money_is_idempotent_on_structured_input():
    once = parse_money("0/USD/rXYZ").to_hash()

    assert parse_money(once).to_hash() == once


@pytest.mark.parametrize("text", ["USD", "a/b/c/d", "x/USD/rXYZ", {"issuer": "rXYZ"}])
def test_parse_money_rejects_bad_input(text):
    with pytest.raises(ValueError):
        parse_money(text)


def test_money_from_protocol_amounts():
    assert str(Money.from_amount("2500000")) == "2.5 XRP"
    iou = Money.from_amount({"currency": "USD", "issuer": BITSTAMP, "value": "1.50"})
    assert str(iou) == f"1.5 USD/{BITSTAMP}"


# ---- models ----

def test_account_and_line_formatting():
    data = {"Account": GENESIS, "Balance": "100000000", "Sequence": 3}
    assert Account.from_data(data).balance == Decimal(100)
    assert format_account(data) == f"{GENESIS} balance: 100 XRP seq: 3"

    line = {"account": BITSTAMP, "currency": "USD", "balance": "-2.50", "limit": "0", "limit_peer": "10"}
    assert Line.from_dict(line).balance == Decimal("-2.5")
    assert format_line(line) == f"USD balance: -2.5 (limit 0) with {BITSTAMP}"


def test_ledger_from_event():
    ledger = Ledger.from_message({"ledger_index": 7, "ledger_hash": "F" * 64, "ledger_time": 60, "txn_count": 2})

    assert str(ledger) == "Ledger 7 [FFFFFFFF...] 2000-01-01 00:01:00 txns: 2"


def test_transaction_from_history_entry_and_stream_event():
    tx = {"TransactionType": "OfferCreate", "Account": GENESIS, "Fee": "10", "hash": "AB"}
    from_history = Transaction.from_message({"tx": tx, "meta": {"TransactionResult": "tecUNFUNDED"}})
    from_stream = Transaction.from_message({"type": "transaction", "transaction": tx, "engine_result": "tesSUCCESS"})

    assert from_history.result == "tecUNFUNDED"
    assert from_stream.result == "tesSUCCESS"
    assert from_stream.amount is None
    assert str(from_stream) == f"? OfferCreate {GENESIS} fee 0.00001 XRP tesSUCCESS [AB]"


def test_format_ledger_and_transaction():
    assert format_ledger({"ledger_index": 9, "ledger_hash": "AB", "ledger_time": 0}) == \
        "Ledger 9 [AB] 2000-01-01 00:00:00"

    entry = {
        "tx": {"TransactionType": "Payment", "Account": GENESIS, "Destination": BITSTAMP,
               "Amount": "1000000", "hash": "CD", "date": 3600},
        "meta": {"TransactionResult": "tesSUCCESS"},
    }
    assert format_transaction(entry) == \
        f"2000-01-01 01:00:00 Payment {GENESIS} -> {BITSTAMP} 1 XRP tesSUCCESS [CD]"


@pytest.mark.parametrize("build, data", [
    (Line.from_dict, {"currency": "USD", "balance": "n/a"}),
    (Account.from_data, {"Account": GENESIS, "Balance": "lots"}),
    (Ledger.from_message, {"ledger_index": 1, "txn_count": "many"}),
    (Transaction.from_message, "oops"),
    (Transaction.from_message, {"tx": {"TransactionType": "Payment", "Amount": {"value": "1"}}}),
    (Money.from_amount, {"value": "1"}),
])
def test_malformed_reply_fields_raise_protocol_error(build, data):
    with pytest.raises(ProtocolError):
        build(data)


# ---- config ----

def test_load_config_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("RIPPLER_URI", raising=False)
    monkeypatch.delenv("RIPPLER_ACCOUNT", raising=False)

    config = load_config(tmp_path / "missing.yaml")

    assert config == ClientConfig()
    assert config.uri == DEFAULT_URI
    assert config.open_timeout is None


def test_load_config_file_env_and_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(
        "uri: ws://file:6006\n"
        "default_account: me\n"
        "open_timeout: 5\n"
        "contacts:\n"
        f"  me: {BITSTAMP}\n"
    )
    monkeypatch.delenv("RIPPLER_URI", raising=False)
    monkeypatch.setenv("RIPPLER_ACCOUNT", "genesis")

    config = load_config(path)
    assert config.uri == "ws://file:6006"
    assert config.default_account == "genesis"
    assert config.open_timeout == 5
    assert config.contacts["me"] == BITSTAMP
    assert config.contacts["genesis"] == GENESIS

    monkeypatch.setenv("RIPPLER_URI", "ws://env:6006")
    assert load_config(path).uri == "ws://env:6006"
    assert load_config(path, uri="ws://cli:6006", open_timeout=None).uri == "ws://cli:6006"


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError):
        load_config(path)
