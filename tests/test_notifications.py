"""Email client, digest rendering and run notifications."""

from datetime import date

import httpx
import pytest

from api.services import email_service
from api.services.daily_digest import (
    DigestReport,
    FailedAutomation,
    LowBalanceContract,
    render_digest_html,
    render_digest_subject,
    render_digest_text,
)
from api.services.email_service import EmailService
from api.shared.exceptions import EmailDeliveryError
from config.settings import EmailSettings


class _Captured(list):
    """Captured requests plus the status code the mock API answers with."""

    status: dict


@pytest.fixture
def sent(monkeypatch):
    """Route the email client through a mock transport; returns the captured requests."""
    captured = _Captured()
    status = {"code": 201}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status["code"], json={"data": []})

    real_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(email_service.httpx, "AsyncClient", client_factory)
    captured.status = status
    return captured


@pytest.fixture
def configured():
    return EmailService(EmailSettings(api_key="test-key", from_address="brief@example.com"))


async def test_unconfigured_email_is_skipped():
    service = EmailService(EmailSettings(api_key=None))

    assert service.is_configured is False
    assert await service.send("admin@example.com", "Subject", "<p>Hi</p>") is False


async def test_send_posts_to_api(configured, sent):
    assert await configured.send("admin@example.com", "Daily brief", "<p>Hi</p>", "Hi") is True

    request = sent[0]
    assert request.headers["Authorization"] == "Zoho-enczapikey test-key"
    body = request.read().decode()
    assert '"address":"admin@example.com"' in body.replace(" ", "")
    assert '"textbody":"Hi"' in body.replace(" ", "")


async def test_rejected_message_raises(configured, sent):
    sent.status["code"] = 422

    with pytest.raises(EmailDeliveryError) as excinfo:
        await configured.send("admin@example.com", "Daily brief", "<p>Hi</p>")

    assert excinfo.value.recipient == "admin@example.com"
    assert excinfo.value.reason.startswith("422")


async def test_send_many_counts_deliveries(configured, sent):
    assert await configured.send_many(["a@example.com", "b@example.com"], "S", "<p>x</p>") == 2

    sent.status["code"] = 500
    assert await configured.send_many(["a@example.com"], "S", "<p>x</p>") == 0


def _report(**overrides) -> DigestReport:
    values = {
        "organization_name": "Sunrise Care",
        "timezone": "Australia/Sydney",
        "today": date(2026, 3, 16),
        "lookback_days": 1,
        "forward_days": 7,
        "transaction_count": 3,
        "residents_billed": 3,
        "total_billed": 1234.5,
        "total_houses": 2,
        "total_bedrooms": 8,
        "occupied_bedrooms": 6,
    }
    values.update(overrides)
    return DigestReport(**values)


def test_digest_subject():
    assert render_digest_subject(_report()) == "Haven Care Daily Brief: Mon 16 Mar 2026"


def test_digest_text_without_issues():
    text = render_digest_text(_report())

    assert text.startswith("Good morning, Sunrise Care.")
    assert "Billed $1,234.50 across 3 residents (3 transactions) in the last 1 day." in text
    assert "Occupancy: 6 of 8 bedrooms across 2 houses (2 vacant)." in text
    assert "Nothing needs your attention today." in text


def test_digest_html_lists_attention_items():
    report = _report(
        low_balance_contracts=[LowBalanceContract("Alex Morgan", 150.0, 3650.0, 4.1)],
        failed_automations=[FailedAutomation("Nightly <billing>", "2026-03-16T02:00:00", "boom")],
    )

    html = render_digest_html(report)

    assert report.needs_attention
    assert "<ul><li>Alex Morgan: $150.00 left (4.1% of contract)</li>" in html
    assert "Nightly &lt;billing&gt;" in html
    assert report.as_metrics()["lowBalanceContracts"] == 1
