from hubpay.common.startup import log_startup_config


def test_secret_like_keys_are_redacted(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_12345")
    monkeypatch.setenv("CURRENCY", "AUD")
    monkeypatch.delenv("STRIPE_API_BASE", raising=False)

    config = log_startup_config("checkout", ["STRIPE_SECRET_KEY", "CURRENCY", "STRIPE_API_BASE"])

    assert config == {
        "service": "checkout",
        "STRIPE_SECRET_KEY": "<redacted>",
        "CURRENCY": "AUD",
        "STRIPE_API_BASE": "<unset>",
    }
