"""
mail/templates.py -- HTML bodies for outbound mail.
"""

from __future__ import annotations

import html

OTP_SUBJECT = "Email Verification Mail From Jhunjhunwala Group of Institutions."


def otp_mail_template(first_name: str, code: str, ttl_minutes: int = 5) -> str:
    """Return the verification email body greeting `first_name` with `code`."""
    name = html.escape(first_name)
    return f"""
    <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1a4d8f;">Jhunjhunwala Group of Institutions</h2>
                <p>Dear {name},</p>
                <p>Thank you for registering. Use the following OTP to verify your email address:</p>
                <h1 style="font-size: 36px; letter-spacing: 4px;">{html.escape(code)}</h1>
                <p>This OTP is valid for <b>{ttl_minutes} minutes</b>.</p>
                <p>If you did not request this code, please ignore this email.</p>
            </div>
        </body>
    </html>
    """
