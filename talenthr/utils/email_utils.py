import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from flask import current_app


def _build_message(sender, to_email, subject, body):
    msg = MIMEMultipart()
    msg["From"] = sender
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(body, "plain"))
    return msg


def _send_plain_email(to_email: str, subject: str, body: str) -> bool:
    """
    Sends a plain-text mail through the MAIL_* SMTP settings.
    Returns False instead of raising when mail is not configured or delivery fails.
    """
    cfg = current_app.config
    user, password = cfg.get("MAIL_USERNAME"), cfg.get("MAIL_PASSWORD")
    if not user or not password:
        current_app.logger.warning("Mail is not configured; skipped mail to %s", to_email)
        return False

    msg = _build_message(cfg.get("MAIL_FROM") or user, to_email, subject, body)
    try:
        with smtplib.SMTP(cfg.get("MAIL_SERVER"), int(cfg.get("MAIL_PORT", 587)), timeout=30) as server:
            server.starttls()
            server.login(user, password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        current_app.logger.error("Mail to %s failed: %s", to_email, e)
        return False

    current_app.logger.info("Mail '%s' sent to %s", subject, to_email)
    return True


# -------------------------
# OTP Emails
# -------------------------
OTP_SUBJECTS = {
    "company_admin_signup": "Verify your email to create your TalentHR company",
    "invitation_signup": "Verify your email to join TalentHR",
    "login": "Your TalentHR login code",
    "password_reset": "Your TalentHR password reset code",
}


def send_otp_email(to_email: str, otp: str, purpose: str, minutes: int = 10) -> bool:
    subject = OTP_SUBJECTS.get(purpose, "Your TalentHR verification code")
    body = (
        f"Your verification code is: {otp}\n\n"
        f"It is valid for {minutes} minutes. If you did not request it, ignore this email.\n\n"
        "Regards,\n"
        "TalentHR Team\n"
    )
    return _send_plain_email(to_email, subject, body)


# --------------------------------
# Invitation Email
# --------------------------------
def send_invitation_email(to_email: str, company_name: str, inviter_name: str, role: str, link: str, days: int = 7) -> bool:
    subject = f"You're invited to join {company_name} on TalentHR"
    body = (
        "Hello,\n\n"
        f"{inviter_name} has invited you to join {company_name} as {role.replace('_', ' ')}.\n\n"
        f"Accept the invitation: {link}\n\n"
        f"This link expires in {days} days.\n\n"
        "Regards,\n"
        "TalentHR Team\n"
    )
    return _send_plain_email(to_email, subject, body)
