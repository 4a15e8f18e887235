"""
Email templates for delivered messages.

Both renderings are pure functions of subject, body, sender name and
delivery date, so the same inputs always produce the same email.
"""

from datetime import date
from html import escape

DEFAULT_BASE_URL = "https://futureme.app"


def format_delivery_date(delivered_on: date) -> str:
    return delivered_on.strftime("%B %d, %Y")


def render_message_html(
    subject: str,
    body: str,
    sender_name: str,
    delivered_on: date,
    base_url: str = DEFAULT_BASE_URL
) -> str:
    """
    Generate HTML email content for a delivered message.

    Args:
        subject: Decrypted subject line
        body: Decrypted message body (newlines become line breaks)
        sender_name: Display name of the message author
        delivered_on: Date shown in the header block
        base_url: Link target in the footer

    Returns:
        HTML string for email
    """
    base_url = base_url.rstrip('/')
    formatted_body = escape(body).replace('\r\n', '\n').replace('\n', '<br>')

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Message from Your Past Self</title>
</head>
<body style="margin: 0; padding: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #f5f5f5; color: #333;">
  <div style="max-width: 600px; margin: 20px auto; background: white; border-radius: 12px; overflow: hidden; box-shadow: 0 4px 25px rgba(0,0,0,0.1);">
    <!-- Header -->
    <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 40px 30px; text-align: center;">
      <h1 style="margin: 0 0 10px 0; font-size: 28px; font-weight: 600;">Message from Your Past Self</h1>
      <p style="margin: 0; font-size: 16px; opacity: 0.9;">You scheduled this message to arrive today!</p>
    </div>

    <!-- Message -->
    <div style="padding: 40px 30px;">
      <div style="background: #f8f9ff; border-left: 4px solid #667eea; padding: 15px 20px; margin-bottom: 30px; border-radius: 0 8px 8px 0;">
        <strong style="color: #667eea;">From:</strong> {escape(sender_name)}<br>
        <strong style="color: #667eea;">Delivered:</strong> {format_delivery_date(delivered_on)}
      </div>
      <h2 style="color: #333; margin: 0 0 20px 0; font-size: 22px;">{escape(subject)}</h2>
      <div style="background: #fafafa; padding: 25px; border-radius: 8px; margin: 25px 0; border: 1px solid #e1e5e9; font-size: 16px; line-height: 1.7;">{formatted_body}</div>
    </div>

    <!-- Footer -->
    <div style="background: #f8f9fa; padding: 25px 30px; text-align: center; font-size: 14px; color: #666; border-top: 1px solid #e1e5e9;">
      <p style="margin: 0;">This message was scheduled and delivered by <a href="{escape(base_url)}" style="color: #667eea; text-decoration: none;">FutureMe</a></p>
      <p style="margin: 10px 0 0 0; font-size: 12px;">Schedule your next message to the future</p>
    </div>
  </div>
</body>
</html>
'''


def render_message_text(
    subject: str,
    body: str,
    sender_name: str,
    delivered_on: date,
    base_url: str = DEFAULT_BASE_URL
) -> str:
    """Plain-text alternative to render_message_html."""
    return "\n".join([
        "MESSAGE FROM YOUR PAST SELF",
        "",
        f"From: {sender_name}",
        f"Delivered: {format_delivery_date(delivered_on)}",
        "",
        f"Subject: {subject}",
        "",
        body,
        "",
        "---",
        "This message was scheduled and delivered by FutureMe",
        f"Visit {base_url.rstrip('/')} to schedule your next message to the future",
    ])
