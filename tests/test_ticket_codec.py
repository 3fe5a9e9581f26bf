"""
Unit tests — Ticket token codec (services/ticket_codec.py, validators.py).

Covers:
  - encode: compact JSON in wire key order, unset fields omitted
  - decode: accepts well-formed tokens, ignores unknown keys
  - decode: every structural failure becomes a DecodeError, never an exception

All tests are synchronous; no database session required.
"""
from __future__ import annotations

import json
from datetime import date

import pytest

from ticketgate.services.outcomes import DecodeError, Outcome
from ticketgate.services.ticket_codec import decode, encode
from ticketgate.validators import Ticket

SAMPLE = (
    '{"ticketId":"TICK-1752052434284","eventTitle":"121212","date":"2025-07-22",'
    '"persons":7,"orderNumber":"ORD-1752052434284","status":"PENDING",'
    '"verificationCode":"VER-TICK-1752052434284-1753142400000"}'
)


def _ticket(**overrides) -> Ticket:
    fields = dict(
        ticket_id="TICK-1752052434284",
        event_title="121212",
        date=date(2025, 7, 22),
        persons=7,
        order_number="ORD-1752052434284",
        status="PENDING",
        verification_code="VER-TICK-1752052434284-1753142400000",
    )
    fields.update(overrides)
    return Ticket(**fields)


# ─────────────────────────────── encode ───────────────────────────────────────

class TestEncode:
    def test_wire_format_matches_issued_tokens(self) -> None:
        assert encode(_ticket()) == SAMPLE

    def test_unset_optional_fields_are_omitted(self) -> None:
        t = Ticket(ticket_id="TICK-1", verification_code="VER-TICK-1-0")
        assert json.loads(encode(t)) == {"ticketId": "TICK-1", "verificationCode": "VER-TICK-1-0"}

    def test_non_ascii_title_survives(self) -> None:
        t = _ticket(event_title="Сплав по реке 🛶")
        assert decode(encode(t)) == t


# ─────────────────────────────── decode ───────────────────────────────────────

class TestDecodeValid:
    def test_sample_token_decodes(self) -> None:
        t = decode(SAMPLE)
        assert isinstance(t, Ticket)
        assert t.ticket_id == "TICK-1752052434284"
        assert t.date == date(2025, 7, 22)
        assert t.persons == 7
        assert t.status == "PENDING"
        assert t.verification_code == "VER-TICK-1752052434284-1753142400000"

    def test_round_trip_full_ticket(self) -> None:
        t = _ticket(status="CONFIRMED")
        assert decode(encode(t)) == t

    def test_only_required_keys(self) -> None:
        t = decode('{"ticketId":"B1","verificationCode":"X"}')
        assert isinstance(t, Ticket)
        assert t.event_title is None
        assert t.persons is None

    def test_legacy_timestamp_key_ignored(self) -> None:
        data = json.loads(SAMPLE)
        data["timestamp"] = 1752052434284
        t = decode(json.dumps(data))
        assert isinstance(t, Ticket)
        assert t.ticket_id == "TICK-1752052434284"

    def test_surrounding_whitespace_tolerated(self) -> None:
        assert isinstance(decode("\n  " + SAMPLE + "  \n"), Ticket)


class TestDecodeMalformed:
    @pytest.mark.parametrize("raw", ["", "   ", None, 42, b"{}"])
    def test_empty_or_non_text(self, raw) -> None:
        result = decode(raw)
        assert isinstance(result, DecodeError)
        assert result.code == Outcome.MALFORMED_PAYLOAD

    @pytest.mark.parametrize("raw", ["not-json", "{ticketId: B1}", '{"ticketId":"B1"', "TICK-1"])
    def test_not_json(self, raw: str) -> None:
        result = decode(raw)
        assert isinstance(result, DecodeError)
        assert result.code == Outcome.MALFORMED_PAYLOAD
        assert result.detail == "not valid JSON"

    @pytest.mark.parametrize("raw", ["[1, 2]", '"TICK-1"', "7", "null", "true"])
    def test_json_but_not_object(self, raw: str) -> None:
        result = decode(raw)
        assert isinstance(result, DecodeError)
        assert result.code == Outcome.MALFORMED_PAYLOAD

    @pytest.mark.parametrize(
        "field, value",
        [
            ("persons", 0),
            ("persons", -3),
            ("persons", "7"),
            ("date", "2025-13-01"),
            ("date", "tomorrow"),
            ("status", "USED"),
            ("eventTitle", 123),
            ("date", 1753142400),
            ("date", "2025-07-22T10:00:00"),
            ("date", "22.07.2025"),
        ],
    )
    def test_bad_optional_field(self, field: str, value) -> None:
        data = json.loads(SAMPLE)
        data[field] = value
        result = decode(json.dumps(data))
        assert isinstance(result, DecodeError)
        assert result.code == Outcome.MALFORMED_PAYLOAD
        assert field in result.detail

    @pytest.mark.parametrize("field", ["ticketId", "verificationCode"])
    def test_unencodable_text_in_required_field(self, field: str) -> None:
        data = json.loads(SAMPLE)
        data[field] = "TICK-\ud800"          # lone surrogate survives json.loads
        result = decode(json.dumps(data))
        assert isinstance(result, DecodeError)
        assert result.code == Outcome.MALFORMED_PAYLOAD


class TestDecodeMissingRequired:
    def test_missing_ticket_id(self) -> None:
        result = decode('{"verificationCode":"VER-X-0"}')
        assert result == DecodeError(Outcome.MISSING_REQUIRED_FIELD, "ticketId")

    def test_missing_verification_code(self) -> None:
        result = decode('{"ticketId":"TICK-1","eventTitle":"Kayak"}')
        assert result == DecodeError(Outcome.MISSING_REQUIRED_FIELD, "verificationCode")

    def test_blank_values_count_as_missing(self) -> None:
        result = decode('{"ticketId":"  ","verificationCode":""}')
        assert isinstance(result, DecodeError)
        assert result.code == Outcome.MISSING_REQUIRED_FIELD
        assert result.detail == "ticketId, verificationCode"

    def test_empty_object(self) -> None:
        result = decode("{}")
        assert isinstance(result, DecodeError)
        assert result.code == Outcome.MISSING_REQUIRED_FIELD
