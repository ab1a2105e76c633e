"""
Service d'envoi d'emails SMTP aux parents.
Les contenus sont rédigés en chinois traditionnel (zh-TW), langue des familles.

Trois messages :
  - nouveau devoir publié (lien vers l'espace famille)
  - exercice terminé (préférence « all »)
  - résumé quotidien des exercices de la veille (préférence « daily_digest »)
"""

import html
import logging
import smtplib
from datetime import date, datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List
from zoneinfo import ZoneInfo

from app.config import settings
from app.schemas.notification import CompletionEmail, DigestCompletion

logger = logging.getLogger(__name__)

_FOOTER = """
    <hr style="border: none; border-top: 1px solid #eee;" />
    <p style="font-size: 12px; color: #888; text-align: center;">
      此為系統自動發送的通知郵件。如需調整通知設定，請聯繫您的老師。
    </p>
"""


def is_email_configured() -> bool:
    return settings.EMAIL_ENABLED and bool(settings.SMTP_HOST)


def star_display(stars: int) -> str:
    """Ex: 2 → « ★★☆ »."""
    stars = max(0, min(3, stars))
    return "★" * stars + "☆" * (3 - stars)


def _local(dt: datetime) -> datetime:
    zone = ZoneInfo(settings.DEFAULT_TZ)
    return dt.replace(tzinfo=zone) if dt.tzinfo is None else dt.astimezone(zone)


def _wrap(title: str, body: str) -> str:
    return f"""
    <html lang="zh-TW">
      <body style="font-family: 'Microsoft JhengHei', Arial, sans-serif; color: #333; max-width: 600px; margin: auto;">
        <h2 style="color: #2563eb;">{title}</h2>
        {body}
        {_FOOTER}
      </body>
    </html>
    """


def format_task_published_email(parent_name: str, class_course: str, week_start: datetime,
                                 week_end: datetime, portal_url: str) -> str:
    body = f"""
        <p>{html.escape(parent_name)} 您好：</p>
        <p>
          <strong>{html.escape(class_course)}</strong> 的本週口說作業已發布
          （{_local(week_start).strftime('%Y/%m/%d')} – {_local(week_end).strftime('%Y/%m/%d')}）。
        </p>
        <p style="text-align: center; margin: 24px 0;">
          <a href="{html.escape(portal_url)}"
             style="background: #3b82f6; color: #fff; padding: 12px 24px; border-radius: 6px; text-decoration: none;">
            開始練習
          </a>
        </p>
    """
    return _wrap("📚 新的學習任務已發布", body)


def format_completion_email(data: CompletionEmail) -> str:
    when = _local(data.timestamp).strftime("%Y/%m/%d %H:%M") if data.timestamp else ""
    body = f"""
        <p><strong>{html.escape(data.student_name)}</strong> 已完成一項練習！</p>
        <p style="font-style: italic;">"{html.escape(data.sentence_text)}"</p>
        <p style="font-size: 28px; color: #fbbf24; margin: 4px 0;">{star_display(data.stars)}</p>
        <p style="font-size: 14px; color: #6b7280;">{data.stars} / 3 顆星 · {when}</p>
        <p style="color: #166534;"><strong>太棒了！</strong> 繼續保持練習，英語能力會越來越好！</p>
    """
    return _wrap("🎉 練習完成通知", body)


def format_daily_digest_email(completions: List[DigestCompletion], day: date) -> str:
    rows = "\n".join(
        f"""
        <tr>
          <td style="padding: 8px;"><strong>{html.escape(c.student_name)}</strong><br/>
              <span style="font-size: 12px; color: #6b7280;">{_local(c.timestamp).strftime('%H:%M')}</span></td>
          <td style="padding: 8px; font-style: italic;">"{html.escape(c.sentence_text)}"</td>
          <td style="padding: 8px; color: #fbbf24;">{star_display(c.stars)}</td>
        </tr>
        """
        for c in completions
    )
    body = f"""
        <p>{day.strftime('%Y/%m/%d')} 的練習完成情況：共完成 <strong>{len(completions)}</strong> 項練習。</p>
        <table style="width: 100%; border-collapse: collapse;">{rows}</table>
        <p style="color: #166534;"><strong>太棒了！</strong> 繼續保持每日練習的好習慣！</p>
    """
    return _wrap("📊 每日練習總結", body)


def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Envoie un email HTML.
    Retourne False (sans envoi) si l'email n'est pas configuré.
    Lève une exception en cas d'échec SMTP.
    """
    if not is_email_configured():
        logger.warning("Email non configuré : envoi ignoré pour %s (%s)", to_email, subject)
        return False

    msg = MIMEMultipart("alternative")
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(html_content, "html", "utf-8"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)

    logger.info("Email envoyé à %s : %s", to_email, subject)
    return True
