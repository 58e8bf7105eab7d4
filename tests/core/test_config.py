"""Tests for LedgerConfig."""

import pytest
from pydantic import ValidationError

from core.config import LedgerConfig


class TestLedgerConfigDefaults:

    def test_defaults(self):
        config = LedgerConfig()
        assert config.max_attempts == 3
        assert config.max_invoices_per_receipt == 10
        assert config.default_currency == "ILS"
        assert config.open_invoices_limit == 20
        assert config.lookup_timeout_seconds is None
        assert config.storage_path_template == "{customer_id}/{year}/{document_number}.pdf"


class TestLedgerConfigValidation:

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValidationError):
            LedgerConfig(max_attempts=0)

    def test_receipt_cap_cannot_exceed_ten(self):
        with pytest.raises(ValidationError):
            LedgerConfig(max_invoices_per_receipt=11)

    def test_rejects_unknown_timezone(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            LedgerConfig(business_timezone="Mars/Olympus")

    def test_accepts_other_timezone(self):
        config = LedgerConfig(business_timezone="Europe/Berlin")
        assert config.business_timezone == "Europe/Berlin"
