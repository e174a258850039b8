"""
senders.py — Report delivery channels.

Every sender satisfies the ReportSender protocol:

    send(report, destination) -> None

`destination` is interpreted per channel (email address, file path, Slack
channel). Delivery is synchronous. A malformed destination raises
InvalidDestinationError; a channel failure raises DeliveryError. Neither is
swallowed.

    ConsoleEmailReportSender  — prints the report under an email banner
    FileReportSender          — writes the report to a text file
    PdfFileReportSender       — renders the report to a PDF with ReportLab
    SmtpEmailReportSender     — plain-text email over SMTP (dry-run without creds)
    SlackReportSender         — Slack incoming webhook (dry-run without URL)
"""

import json
import logging
import smtplib
import sys
from datetime import datetime
from email.mime.text import MIMEText
from pathlib import Path
from typing import Callable, Optional, Protocol, TextIO

import requests
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import Preformatted, SimpleDocTemplate

from sales_report.config import load_env
from sales_report.models import DeliveryError, InvalidDestinationError

logger = logging.getLogger(__name__)

BANNER = "=" * 43


class ReportSender(Protocol):
    """Delivers a rendered report to a destination."""

    def send(self, report: str, destination: str) -> None:
        ...


def _require_destination(destination: str, what: str) -> str:
    if not destination or not destination.strip():
        raise InvalidDestinationError(f"A {what} is required to send the report")
    return destination


def _first_line(report: str) -> str:
    return report.splitlines()[0] if report else ""


# ---------------------------------------------------------------------------
# Console / file channels
# ---------------------------------------------------------------------------

class ConsoleEmailReportSender:
    """Prints the report to a stream under an email-style banner.

    Args:
        stream: Output stream; stdout when None.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def send(self, report: str, destination: str) -> None:
        recipient = _require_destination(destination, "recipient")
        out = self._stream if self._stream is not None else sys.stdout
        print(f"\n{BANNER}", file=out)
        print(f"Sending report by EMAIL to: {recipient}", file=out)
        print(f"{BANNER}\n", file=out)
        print(report, file=out)
        logger.info("Report emailed (console) to %s", recipient)


class FileReportSender:
    """Writes the report to `destination` and echoes a file banner.

    Args:
        stream: Output stream for the banner; stdout when None.
        clock: Returns the save timestamp; injectable for tests.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._stream = stream
        self._clock = clock

    def send(self, report: str, destination: str) -> None:
        file_path = _require_destination(destination, "file path")
        out = self._stream if self._stream is not None else sys.stdout
        timestamp = self._clock().strftime("%Y-%m-%d %H:%M:%S")

        print(f"\n{BANNER}", file=out)
        print(f"Saving report to FILE: {file_path}", file=out)
        print(f"Timestamp: {timestamp}", file=out)
        print(f"{BANNER}\n", file=out)
        print(report, file=out)

        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(report, encoding="utf-8")
        except OSError as exc:
            raise DeliveryError(f"Could not write report to {file_path}: {exc}") from exc

        print(f"\n{BANNER}", file=out)
        print(f"File successfully saved to: {file_path}", file=out)
        print(f"{BANNER}\n", file=out)
        logger.info("Report saved to %s (%d chars)", file_path, len(report))


class PdfFileReportSender:
    """Renders the report text into an A4 PDF at `destination`.

    The text is laid out monospaced so the column alignment of the text
    formatters survives. Every page carries a running header with the report
    title and a page-numbered footer.
    """

    def __init__(self, title: str = "Monthly Sales Report") -> None:
        self.title = title

    def _draw_header_footer(self, canvas, doc) -> None:
        page_w, page_h = A4
        canvas.saveState()
        canvas.setFillColor(colors.Color(0.106, 0.227, 0.361))
        canvas.rect(0, page_h - 1.2 * cm, page_w, 1.2 * cm, fill=1, stroke=0)
        canvas.setFont("Helvetica-Bold", 9)
        canvas.setFillColor(colors.white)
        canvas.drawString(1.8 * cm, page_h - 0.85 * cm, self.title)

        canvas.setFont("Helvetica", 7.5)
        canvas.setFillColor(colors.grey)
        canvas.drawRightString(page_w - 1.8 * cm, 0.7 * cm, f"Page {doc.page}")
        canvas.restoreState()

    def send(self, report: str, destination: str) -> None:
        file_path = _require_destination(destination, "file path")
        path = Path(file_path)

        style = ParagraphStyle(
            "report_body",
            fontName="Courier",
            fontSize=9,
            leading=12,
        )
        doc = SimpleDocTemplate(
            str(path),
            pagesize=A4,
            leftMargin=1.8 * cm,
            rightMargin=1.8 * cm,
            topMargin=1.8 * cm,
            bottomMargin=1.8 * cm,
            title=_first_line(report) or self.title,
        )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            doc.build(
                [Preformatted(report, style)],
                onFirstPage=self._draw_header_footer,
                onLaterPages=self._draw_header_footer,
            )
        except OSError as exc:
            raise DeliveryError(f"Could not write PDF report to {file_path}: {exc}") from exc
        logger.info("PDF report saved to %s", path)


# ---------------------------------------------------------------------------
# Network channels
# ---------------------------------------------------------------------------

class SmtpEmailReportSender:
    """Sends the report as a plain-text email over SMTP with STARTTLS.

    SMTP settings are read from the environment (SMTP_HOST, SMTP_PORT,
    SMTP_USER, SMTP_PASSWORD, EMAIL_FROM) with .env fallback. When any
    credential is missing the message is logged instead of sent.

    Args:
        subject_template: Subject line; ``{title}`` is replaced with the
            report's first line.
        env: Environment mapping; loaded from os.environ/.env when None.
    """

    def __init__(
        self,
        subject_template: str = "[Sales] {title}",
        env: Optional[dict[str, str]] = None,
    ) -> None:
        self.subject_template = subject_template
        self._env = env

    def send(self, report: str, destination: str) -> None:
        _require_destination(destination, "recipient")
        recipients = [addr.strip() for addr in destination.split(",") if addr.strip()]
        bad = [addr for addr in recipients if "@" not in addr]
        if not recipients or bad:
            raise InvalidDestinationError(f"Invalid email recipient(s): {destination!r}")

        env = self._env if self._env is not None else load_env()
        smtp_host = env.get("SMTP_HOST", "")
        smtp_port = int(env.get("SMTP_PORT", "587"))
        smtp_user = env.get("SMTP_USER", "")
        smtp_password = env.get("SMTP_PASSWORD", "")
        from_addr = env.get("EMAIL_FROM", smtp_user)

        subject = self.subject_template.format(title=_first_line(report))

        if not all([smtp_host, smtp_user, smtp_password]):
            logger.warning(
                "SMTP credentials not set — email dry-run mode.\n"
                "  Subject: %s\n  Recipients: %s\n  Body: %d chars",
                subject,
                ", ".join(recipients),
                len(report),
            )
            return

        msg = MIMEText(report, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = from_addr
        msg["To"] = ", ".join(recipients)

        try:
            with smtplib.SMTP(smtp_host, smtp_port, timeout=30) as server:
                server.ehlo()
                server.starttls()
                server.login(smtp_user, smtp_password)
                server.sendmail(from_addr, recipients, msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"Email delivery failed: {exc}") from exc
        logger.info("Email sent to %d recipients", len(recipients))


class SlackReportSender:
    """Posts the report to a Slack channel through an incoming webhook.

    The webhook URL comes from SLACK_WEBHOOK_URL (environment or .env);
    without it the payload is logged instead of posted.

    Args:
        username: Bot display name.
        icon_emoji: Bot icon.
        env: Environment mapping; loaded from os.environ/.env when None.
        timeout: HTTP timeout in seconds.
    """

    def __init__(
        self,
        username: str = "Sales Report Bot",
        icon_emoji: str = ":bar_chart:",
        env: Optional[dict[str, str]] = None,
        timeout: float = 10,
    ) -> None:
        self.username = username
        self.icon_emoji = icon_emoji
        self._env = env
        self.timeout = timeout

    def build_payload(self, report: str, channel: str) -> dict:
        """Build a Slack Block Kit payload with the report in a code block."""
        return {
            "username": self.username,
            "icon_emoji": self.icon_emoji,
            "channel": channel,
            "blocks": [
                {
                    "type": "header",
                    "text": {
                        "type": "plain_text",
                        "text": f":bar_chart: {_first_line(report) or 'Sales Report'}",
                        "emoji": True,
                    },
                },
                {"type": "divider"},
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"```{report}```"},
                },
            ],
        }

    def send(self, report: str, destination: str) -> None:
        channel = _require_destination(destination, "Slack channel")
        if not channel.startswith(("#", "@")):
            raise InvalidDestinationError(
                f"Slack destination must start with '#' or '@', got {channel!r}"
            )

        env = self._env if self._env is not None else load_env()
        webhook_url = env.get("SLACK_WEBHOOK_URL", "").strip()
        payload = self.build_payload(report, channel)

        if not webhook_url:
            logger.warning(
                "SLACK_WEBHOOK_URL not set — Slack dry-run mode.\n%s",
                json.dumps(payload, indent=2),
            )
            return

        try:
            resp = requests.post(webhook_url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DeliveryError(f"Slack request failed: {exc}") from exc
        if resp.status_code != 200:
            raise DeliveryError(f"Slack returned HTTP {resp.status_code}: {resp.text}")
        logger.info("Report posted to Slack channel %s", channel)
