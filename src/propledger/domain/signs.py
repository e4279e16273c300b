"""Sign normalization for amounts entering the aggregator and the posting service.

Income-kind amounts are expected to be non-negative and expense-kind amounts
non-positive; transfers carry either sign. Source data does not always follow
that convention. The aggregator runs every amount it sums through one
``SignPolicy``; posting applies ``expected_sign`` to a recurring
definition's stored magnitude.
"""

import logging
import os
from enum import Enum
from typing import Optional

from propledger.domain.entities import CategoryKind
from propledger.domain.errors import ValidationError, sign_mismatch

logger = logging.getLogger(__name__)

SIGN_POLICY_ENV = "PROPLEDGER_SIGN_POLICY"


class SignPolicyMode(str, Enum):
    CORRECT = "correct"
    STRICT = "strict"


def expected_sign(kind: CategoryKind, amount_cents: int) -> int:
    """Amount with the sign its category kind requires."""
    if kind == CategoryKind.INCOME:
        return abs(amount_cents)
    if kind == CategoryKind.EXPENSE:
        return -abs(amount_cents)
    return amount_cents


class SignPolicy:
    """Applies the sign convention and keeps count of corrections.

    In ``correct`` mode a mismatched amount is flipped and a warning is
    logged; in ``strict`` mode it raises ``ValidationError`` with reason
    ``sign_mismatch``. A policy instance is cheap; create one per
    aggregation pass so ``corrections`` reflects that pass only.
    """

    def __init__(self, mode: SignPolicyMode = SignPolicyMode.CORRECT):
        self.mode = SignPolicyMode(mode)
        self.corrections = 0

    @classmethod
    def from_env(cls, value: Optional[str] = None) -> "SignPolicy":
        """Build a policy from an explicit value or ``PROPLEDGER_SIGN_POLICY``.

        Raises:
            ValidationError: If the configured mode is unknown
        """
        raw = value if value is not None else os.environ.get(SIGN_POLICY_ENV, SignPolicyMode.CORRECT.value)
        try:
            return cls(SignPolicyMode(raw.strip().lower()))
        except ValueError:
            raise ValidationError(
                f"Unknown sign policy '{raw}'. Supported: correct, strict", reason="invalid_sign_policy"
            )

    def fresh(self) -> "SignPolicy":
        """A new policy with the same mode and a zeroed correction count."""
        return SignPolicy(self.mode)

    def normalize(self, kind: CategoryKind, amount_cents: int, source: str) -> int:
        """Return ``amount_cents`` with the sign required by ``kind``.

        Args:
            kind: Category kind of the amount
            amount_cents: Signed amount as stored
            source: Human-readable origin, used in logs and errors

        Raises:
            ValidationError: In strict mode, when the sign is wrong
        """
        normalized = expected_sign(kind, amount_cents)
        if normalized == amount_cents:
            return amount_cents

        if self.mode == SignPolicyMode.STRICT:
            raise ValidationError(sign_mismatch(source, kind.value, amount_cents), reason="sign_mismatch")

        self.corrections += 1
        logger.warning(
            "sign_corrected source=%s kind=%s stored=%d normalized=%d",
            source,
            kind.value,
            amount_cents,
            normalized,
        )
        return normalized
