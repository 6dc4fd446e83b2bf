import smtplib
import logging
from email.message import EmailMessage
from typing import List, Optional, Tuple

from worktrack.config.settings import Settings

logger = logging.getLogger(__name__)

# (filename, content, mime type)
Attachment = Tuple[str, bytes, str]


class NotificationMailer:
    """Builds and delivers the task notification e-mails"""

    def __init__(self):
        # Messages delivered while MAIL["backend"] == "memory"
        self.outbox: List[EmailMessage] = []

    def changed(self, update_type: str, task, user, recipients, body: str, files: Optional[List[Attachment]] = None) -> EmailMessage:
        label = str(update_type).replace("_", " ").capitalize()
        subject = f"{Settings.MAIL['subject_prefix']} {label}: {task.issue_name} [{task.project.name}]"
        return self._build(subject, recipients, body, files)

    def created(self, task, user, recipients, files: Optional[List[Attachment]] = None) -> EmailMessage:
        subject = f"{Settings.MAIL['subject_prefix']} Created: {task.issue_name} [{task.project.name}] ({user.name})"
        lines = [
            f"{user.name} created a new task.",
            "",
            f"Task: {task.issue_name}",
            f"Project: {task.project.name}",
        ]
        if task.description:
            lines += ["", task.description]
        return self._build(subject, recipients, "\n".join(lines), files)

    def deliver(self, message: EmailMessage):
        backend = Settings.MAIL['backend']
        if backend == "memory":
            self.outbox.append(message)
        elif backend == "console":
            logger.info(f"E-mail to {message['To']}: {message['Subject']}\n{message.get_content()}")
        else:
            self._send_smtp(message)
        return message

    def _build(self, subject: str, recipients, body: str, files: Optional[List[Attachment]]) -> EmailMessage:
        if isinstance(recipients, str):
            recipients = [recipients]

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = Settings.MAIL['from_email']
        message["To"] = ", ".join(recipients)
        message.set_content(body or "")

        for filename, content, mime_type in files or []:
            maintype, _, subtype = (mime_type or "application/octet-stream").partition("/")
            message.add_attachment(content, maintype=maintype, subtype=subtype or "octet-stream", filename=filename)
        return message

    def _send_smtp(self, message: EmailMessage):
        cfg = Settings.MAIL
        server = smtplib.SMTP(cfg['host'], cfg['port'], timeout=cfg['timeout'])
        try:
            server.ehlo()
            if cfg['use_tls']:
                server.starttls()
            if cfg['username']:
                server.login(cfg['username'], cfg['password'])
            server.send_message(message)
        finally:
            server.quit()


notifications = NotificationMailer()
