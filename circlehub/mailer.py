import smtplib
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from flask import current_app

from . import signals
from .models import Profile
from .tokens import generate_confirmation_token, generate_review_token


def send_email(app, subject: str, html_body: str, to_email: str) -> bool:
    config = app.config
    if not config["MAIL_SERVER"] or not config["MAIL_USERNAME"] or not config["MAIL_PASSWORD"]:
        app.logger.info("[EMAIL] Missing SMTP config; logging email instead: SUBJECT: %s TO: %s BODY: %s",
                        subject, to_email, html_body)
        return False
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = config["MAIL_USERNAME"]
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html"))
    try:
        with smtplib.SMTP(config["MAIL_SERVER"], config["MAIL_PORT"]) as server:
            if config.get("MAIL_USE_TLS", True):
                server.starttls()
            server.login(config["MAIL_USERNAME"], config["MAIL_PASSWORD"])
            server.sendmail(msg["From"], [msg["To"]], msg.as_string())
        return True
    except (smtplib.SMTPException, OSError) as e:
        app.logger.error("[EMAIL] Send failed: %s", e)
        return False


def send_in_background(subject: str, html_body: str, to_email: str):
    """Deliver on a daemon thread so a request never waits on SMTP."""
    app = current_app._get_current_object()
    if not app.config["MAIL_SERVER"]:
        send_email(app, subject, html_body, to_email)
        return
    threading.Thread(target=send_email, args=(app, subject, html_body, to_email), daemon=True).start()


def send_confirmation_email(user):
    token = generate_confirmation_token(user.id, user.email)
    link = f"{current_app.config['BASE_URL']}/email-confirmation?token={token}"
    html = f"""
    <div style='font-family:Arial,sans-serif'>
        <h2>Welcome!</h2>
        <p>Please confirm your email address to finish creating your account.</p>
        <p><a href="{link}">Confirm my email</a></p>
        <p style='color:#999;font-size:11px'>Full link: {link}</p>
    </div>
    """
    send_in_background("Confirm your email address", html, user.email)
    return token


def _admin_recipients():
    admins = Profile.query.filter_by(role="admin").all()
    recipients = [(a.user_id, a.email) for a in admins]
    if not recipients and current_app.config["ADMIN_EMAIL"]:
        recipients = [(None, current_app.config["ADMIN_EMAIL"])]
    return recipients


def _describe(submission: dict) -> str:
    rows = []
    for key in ("title", "name", "category", "type", "location", "cost_level", "experience_description"):
        if submission.get(key):
            rows.append(f"<p><strong>{key.replace('_', ' ').title()}:</strong> {escape(str(submission[key]))}</p>")
    return "\n".join(rows)


def notify_admins_of_submission(sender, domain, submission, **extra):
    """Email every admin a summary with one-click approve/reject links."""
    base = current_app.config["BASE_URL"]
    hours = max(1, current_app.config["REVIEW_LINK_TTL"] // 3600)
    for reviewer_id, email in _admin_recipients():
        links = ""
        if reviewer_id:
            approve_link = f"{base}/email/review/{generate_review_token(domain, submission['id'], 'approve', reviewer_id)}"
            reject_link = f"{base}/email/review/{generate_review_token(domain, submission['id'], 'reject', reviewer_id)}"
            links = f"""
        <div style='margin-top: 20px;'>
            <strong>Click the appropriate link to make your decision (link expires in {hours} hour{'s' if hours > 1 else ''}):</strong>
        </div>
        <p><a href="{approve_link}">Approve</a></p>
        <p><a href="{reject_link}">Reject</a></p>
        """
        html = f"""
    <div style='font-family:Arial,sans-serif'>
        <h2>New submission pending approval</h2>
        <p><strong>Type:</strong> {escape(domain)}</p>
        <p><strong>ID:</strong> {submission['id']}</p>
        {_describe(submission)}
        {links}
    </div>
    """
        send_in_background(f"Submission {submission['id']} pending approval", html, email)


def notify_submitter_of_review(sender, domain, submission, action, **extra):
    profile = Profile.query.filter_by(user_id=submission["user_id"]).first()
    if profile is None:
        return
    outcome = "approved" if action == "approve" else "rejected"
    notes = submission.get("admin_notes")
    html = f"""
    <div style='font-family:Arial,sans-serif'>
        <h2>Your submission was {outcome}</h2>
        {_describe(submission)}
        {f"<p><strong>Notes from the reviewer:</strong> {escape(notes)}</p>" if notes else ""}
    </div>
    """
    send_in_background(f"Your submission was {outcome}", html, profile.email)


def connect_signals(app):
    signals.submission_created.connect(notify_admins_of_submission, sender=app)
    signals.submission_reviewed.connect(notify_submitter_of_review, sender=app)
