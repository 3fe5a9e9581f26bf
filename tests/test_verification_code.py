"""
Unit tests — Verification code generator (services/verification_code.py).

Covers the public ``VER-<id>-<bucketMs>`` scheme that already-issued tickets
carry, and the HMAC-signed scheme used when a ticket secret is configured.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

import pytest

from ticketgate.services import verification_code as vc

SCAN_TIME = datetime(2025, 7, 22, 15, 30, tzinfo=timezone.utc)
BUCKET = 1753142400000  # 2025-07-22T00:00:00Z
SECRET = b"unit-test-secret"


# ─────────────────────────────── buckets ──────────────────────────────────────

class TestBucketStart:
    def test_floors_to_utc_day(self) -> None:
        assert vc.bucket_start(SCAN_TIME) == BUCKET

    def test_midnight_is_its_own_bucket(self) -> None:
        assert vc.bucket_start(datetime(2025, 7, 22, tzinfo=timezone.utc)) == BUCKET

    def test_last_millisecond_of_day(self) -> None:
        end = datetime(2025, 7, 22, 23, 59, 59, 999000, tzinfo=timezone.utc)
        assert vc.bucket_start(end) == BUCKET

    def test_naive_datetime_treated_as_utc(self) -> None:
        assert vc.bucket_start(SCAN_TIME.replace(tzinfo=None)) == BUCKET

    def test_other_timezone_normalised(self) -> None:
        # 01:00 on the 23rd in UTC+3 is still the 22nd in UTC
        local = datetime(2025, 7, 23, 1, 0, tzinfo=timezone(timedelta(hours=3)))
        assert vc.bucket_start(local) == BUCKET

    def test_custom_bucket_size(self) -> None:
        assert vc.bucket_start(SCAN_TIME, bucket_seconds=3600) == BUCKET + 15 * 3600 * 1000


# ─────────────────────────────── public scheme ────────────────────────────────

class TestPublicScheme:
    def test_generate_format(self) -> None:
        assert vc.generate("TICK-1", SCAN_TIME) == f"VER-TICK-1-{BUCKET}"

    def test_generate_is_deterministic_within_bucket(self) -> None:
        later = SCAN_TIME + timedelta(hours=5)
        assert vc.generate("TICK-1", SCAN_TIME) == vc.generate("TICK-1", later)

    def test_generate_changes_across_buckets(self) -> None:
        tomorrow = SCAN_TIME + timedelta(days=1)
        assert vc.generate("TICK-1", SCAN_TIME) != vc.generate("TICK-1", tomorrow)

    def test_issued_sample_code_verifies(self) -> None:
        assert vc.verify("TICK-1752052434284", "VER-TICK-1752052434284-1753142400000")

    def test_verify_generated_code(self) -> None:
        code = vc.generate("TICK-1", SCAN_TIME)
        assert vc.verify("TICK-1", code)
        assert vc.verify("TICK-1", code, as_of=SCAN_TIME + timedelta(hours=8))

    def test_verify_pinned_to_other_bucket_fails(self) -> None:
        code = vc.generate("TICK-1", SCAN_TIME)
        assert not vc.verify("TICK-1", code, as_of=SCAN_TIME + timedelta(days=1))

    def test_code_for_other_ticket_rejected(self) -> None:
        code = vc.generate("TICK-1", SCAN_TIME)
        assert not vc.verify("TICK-2", code)

    def test_misaligned_bucket_rejected(self) -> None:
        assert not vc.verify("TICK-1", f"VER-TICK-1-{BUCKET + 1}")

    def test_anyone_can_mint_a_public_code(self) -> None:
        # Known weakness of the unsigned scheme: knowing the id is enough
        forged = f"VER-TICK-42-{BUCKET}"
        assert vc.verify("TICK-42", forged)

    @pytest.mark.parametrize(
        "code",
        [
            "",
            "VER-",
            "VER-TICK-1-",
            "VER-TICK-1-abc",
            "TICK-1-1753142400000",
            f"ver-TICK-1-{BUCKET}",
            "VER-TICK-1-\u00b2",                        # superscript two
            "VER-TICK-1-\u0661\u0667\u0665\u0663",      # Arabic-Indic digits
            "VER-TICK-1-\uff11\uff17\uff15\uff13",      # full-width digits
            f"VER-TICK-1-{BUCKET}\ud800",
            "VER-TICK-1-" + "9" * 16,
        ],
    )
    def test_garbage_codes_rejected(self, code: str) -> None:
        assert not vc.verify("TICK-1", code)

    @pytest.mark.parametrize("ticket_id, code", [(None, "VER-X-0"), ("TICK-1", None), ("", "VER--0"), (1, "x")])
    def test_wrong_types_rejected(self, ticket_id, code) -> None:
        assert vc.verify(ticket_id, code) is False


# ─────────────────────────────── signed scheme ────────────────────────────────

class TestSignedScheme:
    def test_signed_code_format(self) -> None:
        code = vc.generate("TICK-1", SCAN_TIME, secret=SECRET)
        assert re.fullmatch(rf"VER-TICK-1-{BUCKET}-[0-9a-f]{{32}}", code)

    def test_signed_code_verifies(self) -> None:
        code = vc.generate("TICK-1", SCAN_TIME, secret=SECRET)
        assert vc.verify("TICK-1", code, secret=SECRET)

    def test_public_forgery_rejected(self) -> None:
        assert not vc.verify("TICK-42", f"VER-TICK-42-{BUCKET}", secret=SECRET)

    def test_wrong_secret_rejected(self) -> None:
        code = vc.generate("TICK-1", SCAN_TIME, secret=b"other-secret")
        assert not vc.verify("TICK-1", code, secret=SECRET)

    def test_signature_bound_to_ticket(self) -> None:
        code = vc.generate("TICK-1", SCAN_TIME, secret=SECRET)
        swapped = code.replace("TICK-1", "TICK-2", 1)
        assert not vc.verify("TICK-2", swapped, secret=SECRET)

    def test_signature_bound_to_bucket(self) -> None:
        code = vc.generate("TICK-1", SCAN_TIME, secret=SECRET)
        shifted = code.replace(str(BUCKET), str(BUCKET + 86400000), 1)
        assert not vc.verify("TICK-1", shifted, secret=SECRET)

    def test_policy_signed_flag(self) -> None:
        assert vc.CodePolicy(secret=SECRET).signed
        assert not vc.CodePolicy().signed
        assert not vc.CodePolicy(secret=b"").signed


class TestDeclaredBucket:
    def test_parses_public_and_signed(self) -> None:
        assert vc.declared_bucket("TICK-1", f"VER-TICK-1-{BUCKET}") == BUCKET
        assert vc.declared_bucket("TICK-1", f"VER-TICK-1-{BUCKET}-abcdef") == BUCKET

    def test_prefix_must_match_ticket(self) -> None:
        assert vc.declared_bucket("TICK-2", f"VER-TICK-1-{BUCKET}") is None

    def test_non_ascii_digits_do_not_parse(self) -> None:
        assert vc.declared_bucket("TICK-1", "VER-TICK-1-\u00b2") is None
        assert vc.declared_bucket("TICK-1", "VER-TICK-1-\u0661\u0662") is None

    def test_oversized_bucket_does_not_parse(self) -> None:
        code = "VER-TICK-1-" + "9" * 5000
        assert vc.declared_bucket("TICK-1", code) is None
        assert vc.verify("TICK-1", code) is False
        assert vc.verify("TICK-1", code, secret=SECRET) is False
