import asyncio

import pytest

from projecthub.services.email_service import EmailService, EmailServiceConfig


@pytest.fixture
def email_service():
    return EmailService(EmailServiceConfig())


def test_config_validation(monkeypatch):
    monkeypatch.setenv("SMTP_USE_SSL", "true")
    monkeypatch.setenv("SMTP_USE_TLS", "true")
    errors = EmailServiceConfig().validate()
    assert "Cannot use both SSL and TLS simultaneously" in errors


def test_default_config_is_configured(monkeypatch):
    for name in ("SMTP_HOST", "SMTP_PORT", "FROM_EMAIL", "SMTP_USE_SSL"):
        monkeypatch.delenv(name, raising=False)
    config = EmailServiceConfig()
    assert config.is_configured()
    assert config.validate() == []


def test_render_eod_template(email_service):
    html, text = email_service.render_template(
        "eod_submitted",
        {
            "project_name": "Apollo",
            "user_name": "Dana Dev",
            "report_date": "2024-05-06",
            "actual_update": "Shipped <login> page",
            "client_update": None,
            "hours_spent": 6.5,
            "action_url": "http://localhost:3000/admin/eods",
        },
    )
    assert "Apollo" in html
    assert "&lt;login&gt;" in html
    assert "Hours spent: 6.5" in text
    assert "Shipped <login> page" in text
    assert "Client update" not in text
    assert "http://localhost:3000/admin/eods" in html


@pytest.mark.parametrize(
    "template_name, context",
    [
        ("memo_submitted", {"project_name": "Apollo", "user_name": "Dana", "report_date": "2024-05-06",
                            "memo_type": "short", "memo_content": "Starting on auth", "action_url": "/x"}),
        ("project_assigned", {"project_name": "Apollo", "user_name": "Dana", "assigned_by": "Ada",
                              "project_description": None, "action_url": "/x"}),
        ("project_created", {"project_name": "Apollo", "created_by": "Ada",
                             "project_description": "Moon", "action_url": "/x"}),
        ("test_notification", {"user_name": "Dana", "action_url": "/x"}),
    ],
)
def test_render_all_templates(email_service, template_name, context):
    html, text = email_service.render_template(template_name, context)
    assert "<html" in html
    assert text.strip()


def test_html_to_text(email_service):
    assert email_service._html_to_text("<p>Tom &amp; Jerry</p>\n<b>hi</b>") == "Tom & Jerry hi"


def test_send_email_unconfigured_returns_error(monkeypatch):
    config = EmailServiceConfig()
    config.smtp_host = ""
    service = EmailService(config)
    result = asyncio.run(service.send_email("a@example.com", "Hi", "<p>Hi</p>"))
    assert result == {"success": False, "error": "Email service not configured"}
