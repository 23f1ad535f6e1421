"""
Tests for verification code generation and matching.
"""

from datetime import UTC, datetime, timedelta

from mosque_registry.modules.mosques import codes


class TestGenerate:
    def test_code_uses_unambiguous_alphabet(self):
        for _ in range(50):
            code = codes.generate_verification_code()
            assert len(code) == 12
            assert set(code) <= set(codes.CODE_ALPHABET)

    def test_alphabet_excludes_confusable_characters(self):
        for char in "0O1ILUV":
            assert char not in codes.CODE_ALPHABET

    def test_custom_length(self):
        assert len(codes.generate_verification_code(16)) == 16

    def test_expiry_defaults_to_thirty_days(self):
        now = datetime(2026, 3, 1, tzinfo=UTC)

        issued = codes.generate(now)

        assert issued.expires_at == now + timedelta(days=30)

    def test_expiry_override(self):
        now = datetime(2026, 3, 1, tzinfo=UTC)
        assert codes.calculate_code_expiry(now, 7) == now + timedelta(days=7)


class TestMatching:
    def test_presented_code_is_normalized(self):
        assert codes.codes_match("  abcd2345efgh ", "ABCD2345EFGH")

    def test_different_code_does_not_match(self):
        assert not codes.codes_match("ABCD2345EFGJ", "ABCD2345EFGH")

    def test_prefix_does_not_match(self):
        assert not codes.codes_match("ABCD2345", "ABCD2345EFGH")


class TestFingerprint:
    def test_fingerprint_hides_code(self):
        fingerprint = codes.code_fingerprint("ABCD2345EFGH")

        assert len(fingerprint) == 12
        assert "ABCD" not in fingerprint
        assert fingerprint == codes.code_fingerprint("ABCD2345EFGH")

    def test_missing_code_has_no_fingerprint(self):
        assert codes.code_fingerprint(None) is None
