"""Terminal HTML pages rendered by the email verification route."""

from __future__ import annotations

import html

from fastapi.responses import HTMLResponse

from ..domain.account import Account

_BASE_STYLE = """
body { font-family: Arial, sans-serif; text-align: center; padding: 50px; background: #f5f5f5; }
.container { background: white; padding: 40px; border-radius: 10px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); max-width: 500px; margin: 0 auto; }
.error { color: #d32f2f; font-size: 18px; margin-bottom: 20px; }
.success { color: #388e3c; font-size: 18px; margin-bottom: 20px; }
.btn { background: #1976d2; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; display: inline-block; margin-top: 20px; }
.auto-redirect { color: #666; font-size: 14px; margin-top: 20px; }
.user-info { background: #f8f9fa; padding: 15px; border-radius: 8px; margin: 20px 0; border-left: 4px solid #1976d2; text-align: left; }
"""


def _layout(
    *,
    title: str,
    heading: str,
    heading_class: str,
    body: str,
    frontend_url: str,
    button_label: str = "Go to Website",
    redirect_seconds: int | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    home = html.escape(frontend_url, quote=True)
    redirect_script = ""
    redirect_note = ""
    if redirect_seconds:
        redirect_script = (
            "<script>setTimeout(function() { window.location.href = "
            f"'{home}'; }}, {redirect_seconds * 1000});</script>"
        )
        redirect_note = (
            f"<div class=\"auto-redirect\">Redirecting to website in {redirect_seconds} seconds...</div>"
        )
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head>
  <title>{html.escape(title)}</title>
  <style>{_BASE_STYLE}</style>
  {redirect_script}
</head>
<body>
  <div class="container">
    <div class="{heading_class}">{html.escape(heading)}</div>
    {body}
    <a href="{home}" class="btn">{html.escape(button_label)}</a>
    {redirect_note}
  </div>
</body>
</html>""",
        status_code=status_code,
    )


def failure_page(*, title: str, message: str, status_code: int, frontend_url: str) -> HTMLResponse:
    """Render a verification failure (bad link, unknown account or server error)."""
    return _layout(
        title=title,
        heading=title,
        heading_class="error",
        body=f"<p>{html.escape(message)}</p>",
        frontend_url=frontend_url,
        status_code=status_code,
    )


def already_verified_page(frontend_url: str) -> HTMLResponse:
    return _layout(
        title="Email Already Verified",
        heading="Email Already Verified",
        heading_class="success",
        body="<p>Your email address has already been verified successfully.</p>",
        frontend_url=frontend_url,
        redirect_seconds=3,
    )


def verified_page(account: Account, frontend_url: str) -> HTMLResponse:
    """Render the confirmation shown right after an account is verified."""
    details = (
        "<div class=\"user-info\"><strong>Account Details:</strong><br>"
        f"Name: {html.escape(account.name)}<br>"
        f"Email: {html.escape(account.email)}<br>"
        f"Role: {html.escape(account.role.value)}</div>"
    )
    body = (
        "<p>Congratulations! Your email address has been verified successfully. "
        "You can now log in to your account and access all features.</p>" + details
    )
    return _layout(
        title="Email Verified Successfully",
        heading="Email Verified Successfully!",
        heading_class="success",
        body=body,
        frontend_url=frontend_url,
        button_label="Continue to Website",
        redirect_seconds=5,
    )
