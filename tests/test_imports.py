"""Package import order tests.

Each case runs in a fresh interpreter so modules cached by the test session
do not hide a cycle.
"""

import subprocess
import sys

import pytest


@pytest.mark.parametrize(
    "first",
    [
        "propledger.utils.periods",
        "propledger.domain",
        "propledger.domain.errors",
        "propledger.database",
        "propledger.domain.reports",
        "propledger.cli.main",
    ],
)
def test_package_imports_in_any_order(first):
    code = (
        f"import {first}\n"
        "import propledger.database, propledger.domain, propledger.utils\n"
        "from propledger.domain import CategoryTreeIndex, SignPolicy, ValidationError, prorate\n"
    )
    result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True)
    assert result.returncode == 0, result.stderr


def test_periods_does_not_load_domain():
    code = (
        "import sys\n"
        "import propledger.utils.periods\n"
        "assert 'propledger.domain' not in sys.modules, sorted(m for m in sys.modules if m.startswith('propledger'))\n"
    )
    result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
