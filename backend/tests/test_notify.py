import logging

from settlement.utils import notify


def _email_records(caplog):
    return [r for r in caplog.records if r.getMessage().startswith("email to")]


def test_missing_api_key_is_skipped_quietly(app, caplog):
    caplog.set_level(logging.INFO, logger="settlement")

    res = notify.order_confirmation("buyer@example.com", "SOMA-ref_1", "Mogul Goods")

    assert res.ok is False
    assert res.skipped is True
    records = _email_records(caplog)
    assert [r.levelno for r in records] == [logging.INFO]
    assert "skipped" in records[0].getMessage()


def test_missing_recipient_is_skipped(app):
    app.config["RESEND_API_KEY"] = "re_test"
    res = notify.send_email(None, "subject", "body")
    assert (res.ok, res.skipped) == (False, True)


def test_delivery_failure_logged_as_error(app, caplog, monkeypatch):
    app.config["RESEND_API_KEY"] = "re_test"

    def down(*args, **kwargs):
        raise ConnectionError("resend unreachable")

    monkeypatch.setattr(notify.requests, "post", down)
    caplog.set_level(logging.INFO, logger="settlement")

    res = notify.order_confirmation("buyer@example.com", "SOMA-ref_1", "Mogul Goods")

    assert res.ok is False
    assert res.skipped is False
    assert [r.levelno for r in _email_records(caplog)] == [logging.ERROR]
