import pytest

from itad_portal.services.notification_templates import (
    NOTIFICATION_TYPES,
    NotificationContent,
    default_priority,
    get_email_html_content,
    get_notification_content,
)


@pytest.mark.parametrize("notification_type", NOTIFICATION_TYPES)
def test_every_type_renders_without_context(notification_type: str) -> None:
    content = get_notification_content(notification_type, {})

    assert content.title
    assert content.message
    assert "None" not in content.message


def test_quote_sent_links_to_the_request_page() -> None:
    content = get_notification_content("quote_sent", {"quote_number": "QTE-1", "entity_id": "req-42"})

    assert content.title == "Quote Ready for Review"
    assert content.message == "Your quote #QTE-1 is ready for review."
    assert content.action_url == "/requests/req-42"


def test_request_submitted_names_company() -> None:
    content = get_notification_content(
        "request_submitted",
        {"request_number": "REQ-7", "company_name": "Acme Corp"},
    )

    assert content.message == "A new pickup request #REQ-7 has been submitted by Acme Corp."
    assert content.action_url == "/admin/requests"


def test_unknown_type_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown notification type"):
        get_notification_content("quote_exploded", {})


@pytest.mark.parametrize(
    ("notification_type", "priority"),
    [
        ("quote_sent", "high"),
        ("quote_accepted", "high"),
        ("job_complete", "high"),
        ("pickup_complete", "low"),
        ("quote_declined", "normal"),
        ("request_submitted", "normal"),
    ],
)
def test_default_priorities(notification_type: str, priority: str) -> None:
    assert default_priority(notification_type) == priority


def test_email_body_escapes_content_and_links_to_app() -> None:
    html = get_email_html_content(
        NotificationContent(title="Quote <b>ready</b>", message="Tom & Jerry", action_url="/jobs/1"),
        "https://portal.example",
        sender_name="ITAD Ops",
    )

    assert "Quote &lt;b&gt;ready&lt;/b&gt;" in html
    assert "Tom &amp; Jerry" in html
    assert 'href="https://portal.example/jobs/1"' in html
    assert "ITAD Ops" in html
