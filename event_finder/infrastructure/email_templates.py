"""HTML and plain text bodies for notification emails."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

from event_finder.domain.entities import Notification, NotificationType

DEFAULT_RECIPIENT_NAME = "Event Finder User"
BRAND_NAME = "Local Event Finder"
FOOTER_REASON = "You're receiving this email because you have email notifications enabled."


@dataclass(frozen=True)
class TypeStyle:
    background: str
    icon: str


TYPE_STYLES: dict[NotificationType, TypeStyle] = {
    NotificationType.REMINDER: TypeStyle(background="#fef3c7", icon="\N{BELL}"),
    NotificationType.CONFIRMATION: TypeStyle(
        background="#d1fae5", icon="\N{WHITE HEAVY CHECK MARK}"
    ),
    NotificationType.UPDATE: TypeStyle(background="#dbeafe", icon="\N{MEMO}"),
    NotificationType.CANCELLATION: TypeStyle(background="#fee2e2", icon="\N{CROSS MARK}"),
}


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class EventCard:
    title: str
    date: str | None = None
    time: str | None = None
    location: str | None = None


_BASE_STYLES = """
    <style>
      body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 0; background-color: #f9fafb; }
      .container { max-width: 600px; margin: 0 auto; background-color: #ffffff; }
      .header { padding: 32px 24px; text-align: center; }
      .header h1 { color: #111827; margin: 0; font-size: 24px; }
      .content { padding: 32px 24px; }
      .event-card { background-color: #f9fafb; border-radius: 12px; padding: 20px; margin: 20px 0; }
      .event-title { font-size: 18px; font-weight: 600; color: #111827; margin: 0 0 12px 0; }
      .event-detail { margin: 8px 0; color: #6b7280; font-size: 14px; }
      .button { display: inline-block; background-color: #0d9488; color: #ffffff; text-decoration: none; padding: 12px 24px; border-radius: 8px; font-weight: 600; margin-top: 20px; }
      .footer { background-color: #f9fafb; padding: 24px; text-align: center; color: #9ca3af; font-size: 12px; }
    </style>
"""


def event_card_for(notification: Notification) -> EventCard | None:
    """Build the event summary shown under the message from the notification metadata."""

    metadata = notification.metadata
    title = getattr(metadata, "event_title", None)
    if not title:
        return None
    return EventCard(
        title=title,
        date=getattr(metadata, "event_date", None),
        time=getattr(metadata, "event_time", None),
        location=getattr(metadata, "location_name", None),
    )


def _render_event_card_html(card: EventCard | None) -> str:
    if card is None:
        return ""
    lines = [f'<p class="event-title">{escape(card.title)}</p>']
    if card.date:
        lines.append(f'<p class="event-detail">\N{CALENDAR} {escape(card.date)}</p>')
    if card.time:
        lines.append(f'<p class="event-detail">\N{CLOCK FACE ONE OCLOCK} {escape(card.time)}</p>')
    if card.location:
        lines.append(f'<p class="event-detail">\N{ROUND PUSHPIN} {escape(card.location)}</p>')
    return '<div class="event-card">' + "".join(lines) + "</div>"


def _render_event_card_text(card: EventCard | None) -> list[str]:
    if card is None:
        return []
    lines = [f"Event: {card.title}"]
    if card.date:
        lines.append(f"Date: {card.date}")
    if card.time:
        lines.append(f"Time: {card.time}")
    if card.location:
        lines.append(f"Location: {card.location}")
    return lines


def render_notification_email(
    notification: Notification,
    *,
    site_url: str,
    recipient_name: str | None = None,
    year: int,
) -> RenderedEmail:
    """Render the email for ``notification`` with links back to ``site_url``."""

    site = site_url.rstrip("/")
    notifications_url = f"{site}/notifications"
    settings_url = f"{site}/profile/settings"
    name = recipient_name or DEFAULT_RECIPIENT_NAME
    style = TYPE_STYLES[notification.type]
    card = event_card_for(notification)

    html = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  {_BASE_STYLES}
</head>
<body>
  <div class="container">
    <div class="header" style="background-color: {style.background};">
      <h1>{style.icon} {escape(notification.title)}</h1>
    </div>
    <div class="content">
      <p>Hi {escape(name)},</p>
      <p>{escape(notification.message)}</p>
      {_render_event_card_html(card)}
      <a href="{escape(notifications_url)}" class="button">View Notifications</a>
    </div>
    <div class="footer">
      <p>{FOOTER_REASON}</p>
      <p>To change your notification preferences, visit your <a href="{escape(settings_url)}">settings</a>.</p>
      <p>&copy; {year} {BRAND_NAME}</p>
    </div>
  </div>
</body>
</html>"""

    text_lines = [notification.title, "", f"Hi {name},", "", notification.message]
    card_lines = _render_event_card_text(card)
    if card_lines:
        text_lines.extend(["", *card_lines])
    text_lines.extend(
        [
            "",
            f"View all notifications: {notifications_url}",
            "",
            "---",
            FOOTER_REASON,
            f"To change your preferences, visit: {settings_url}",
        ]
    )

    return RenderedEmail(subject=notification.title, html=html, text="\n".join(text_lines))


__all__ = [
    "EventCard",
    "RenderedEmail",
    "TYPE_STYLES",
    "event_card_for",
    "render_notification_email",
]
