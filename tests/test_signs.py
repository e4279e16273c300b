"""Tests for sign normalization."""

import logging
import pytest

from propledger.domain.entities import CategoryKind
from propledger.domain.errors import ValidationError
from propledger.domain.signs import SIGN_POLICY_ENV, SignPolicy, SignPolicyMode, expected_sign


def test_expected_sign():
    assert expected_sign(CategoryKind.INCOME, -500) == 500
    assert expected_sign(CategoryKind.INCOME, 500) == 500
    assert expected_sign(CategoryKind.EXPENSE, 500) == -500
    assert expected_sign(CategoryKind.EXPENSE, -500) == -500
    assert expected_sign(CategoryKind.TRANSFER, -500) == -500
    assert expected_sign(CategoryKind.TRANSFER, 500) == 500


class TestSignPolicy:
    """Tests for SignPolicy."""

    def test_correct_mode_flips_and_counts(self, caplog):
        policy = SignPolicy()
        with caplog.at_level(logging.WARNING, logger="propledger.domain.signs"):
            assert policy.normalize(CategoryKind.EXPENSE, 1200, "transaction 1") == -1200
        assert policy.corrections == 1
        assert "sign_corrected" in caplog.text

    def test_correct_sign_is_untouched(self):
        policy = SignPolicy()
        assert policy.normalize(CategoryKind.INCOME, 1200, "transaction 1") == 1200
        assert policy.normalize(CategoryKind.EXPENSE, -1200, "transaction 2") == -1200
        assert policy.normalize(CategoryKind.EXPENSE, 0, "transaction 3") == 0
        assert policy.corrections == 0

    def test_strict_mode_raises(self):
        policy = SignPolicy(SignPolicyMode.STRICT)
        with pytest.raises(ValidationError) as exc_info:
            policy.normalize(CategoryKind.INCOME, -50, "annual amount 7")
        assert exc_info.value.reason == "sign_mismatch"
        assert "annual amount 7" in str(exc_info.value)

    def test_fresh_keeps_mode_and_resets_count(self):
        policy = SignPolicy(SignPolicyMode.STRICT)
        policy.corrections = 3
        copy = policy.fresh()
        assert copy.mode == SignPolicyMode.STRICT
        assert copy.corrections == 0

    def test_from_env(self, monkeypatch):
        monkeypatch.delenv(SIGN_POLICY_ENV, raising=False)
        assert SignPolicy.from_env().mode == SignPolicyMode.CORRECT

        monkeypatch.setenv(SIGN_POLICY_ENV, "Strict")
        assert SignPolicy.from_env().mode == SignPolicyMode.STRICT

        # Explicit value wins over the environment
        assert SignPolicy.from_env("correct").mode == SignPolicyMode.CORRECT

    def test_from_env_rejects_unknown_mode(self):
        with pytest.raises(ValidationError) as exc_info:
            SignPolicy.from_env("lenient")
        assert exc_info.value.reason == "invalid_sign_policy"
