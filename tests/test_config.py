import pytest

import config


@pytest.mark.parametrize("raw, expected", [
     (None, "credit_for_future"),
     ("refund_to_payer", "refund_to_payer"),
     (" Credit_For_Future ", "credit_for_future"),
])
def test_refund_mode_accepts_known_values(monkeypatch, raw, expected):
     if raw is None:
          monkeypatch.delenv("DEFAULT_REFUND_MODE", raising=False)
     else:
          monkeypatch.setenv("DEFAULT_REFUND_MODE", raw)
     assert config._refund_mode() == expected


def test_unknown_refund_mode_is_refused_at_load(monkeypatch):
     monkeypatch.setenv("DEFAULT_REFUND_MODE", "cash_back")
     with pytest.raises(ValueError, match="DEFAULT_REFUND_MODE"):
          config._refund_mode()
