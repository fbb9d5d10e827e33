"""Operator notifications for catalog backup runs."""

import os
import re
import shutil
import logging
import subprocess
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional


class Notifier(ABC):
    """Sends a notification to the operators of the backup job."""

    @abstractmethod
    def notify(self, subject: str, body: str = "", attachment: Optional[str] = None) -> bool:
        """Send a notification.

        Args:
            subject: Subject line.
            body: Message text. Ignored when attachment is given.
            attachment: Optional path of a file whose contents become the message.

        Returns:
            True if the notification was handed off successfully.
        """


class LogOnlyNotifier(Notifier):
    """Notifier used when no mail settings are configured."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def notify(self, subject: str, body: str = "", attachment: Optional[str] = None) -> bool:
        self.logger.warning(f"Email not configured, notification not sent: {subject}")
        return False


class SendEmailNotifier(Notifier):
    """Sends notifications by running the sendEmail command line tool."""

    EXECUTABLE_NAMES = ['sendEmail', 'sendEmail.exe', 'sendemail']

    def __init__(self, executable: str, from_address: str, to_address: str, mail_server: str,
                 timeout_seconds: int = 60):
        """Initialize sendEmail notifier.

        Args:
            executable: Path of the sendEmail executable, or of the directory
                containing it, or a bare command name looked up on PATH.
            from_address: From email address.
            to_address: Recipient address, or several separated by commas.
            mail_server: SMTP server, optionally with ``:port``.
            timeout_seconds: How long to wait for sendEmail to finish.
        """
        self.executable = executable
        self.from_address = from_address
        self.to_address = to_address
        self.mail_server = mail_server
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    @property
    def to_addresses(self) -> List[str]:
        return [addr.strip() for addr in re.split(r'[,;]', self.to_address or '') if addr.strip()]

    def resolve_executable(self) -> Optional[str]:
        """Locate the sendEmail executable.

        Returns:
            Full path of the executable, or None if it cannot be found.
        """
        if not self.executable:
            return shutil.which('sendEmail')

        if os.path.isdir(self.executable):
            for name in self.EXECUTABLE_NAMES:
                candidate = os.path.join(self.executable, name)
                if os.path.isfile(candidate):
                    return candidate
            return None

        if os.path.isfile(self.executable):
            return self.executable

        return shutil.which(self.executable)

    def build_command(self, executable: str, subject: str, body: str = "",
                      attachment: Optional[str] = None) -> List[str]:
        """Build the sendEmail command line."""
        cmd = [executable]
        cmd.extend(['-f', self.from_address])
        cmd.extend(['-t'] + self.to_addresses)
        cmd.extend(['-s', self.mail_server])
        cmd.extend(['-u', subject])

        if attachment:
            cmd.extend(['-o', f'message-file={attachment}'])
        else:
            cmd.extend(['-m', body])

        return cmd

    def notify(self, subject: str, body: str = "", attachment: Optional[str] = None) -> bool:
        executable = self.resolve_executable()
        if not executable:
            self.logger.error(f"sendEmail executable not found at '{self.executable}', "
                              f"notification not sent: {subject}")
            return False

        if attachment and not os.path.isfile(attachment):
            self.logger.warning(f"Attachment {attachment} not found, sending message body instead")
            attachment = None

        cmd = self.build_command(executable, subject, body, attachment)

        try:
            self.logger.debug(f"Executing sendEmail command: {' '.join(cmd[:8])}...")
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout_seconds)

            if result.returncode == 0:
                self.logger.info(f"Email sent successfully via sendEmail to {len(self.to_addresses)} recipients: {subject}")
                return True
            else:
                self.logger.error(f"sendEmail failed with return code {result.returncode}: {result.stderr}")
                return False

        except subprocess.TimeoutExpired:
            self.logger.error("sendEmail command timed out")
            return False
        except OSError as e:
            self.logger.error(f"Error executing sendEmail: {e}")
            return False

    def send_test_email(self, subject: str = "Catalog Backup Test Email") -> bool:
        """Send a test email to verify configuration.

        Args:
            subject: Test email subject.

        Returns:
            True if test email sent successfully.
        """
        test_content = f"""
This is a test email from the Catalog Backup utility.

Configuration:
- sendEmail: {self.executable}
- Mail server: {self.mail_server}
- From: {self.from_address}
- Recipients: {', '.join(self.to_addresses)}

If you receive this email, the email configuration is working correctly.

Generated at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}
        """.strip()

        return self.notify(subject, test_content)

    def validate_configuration(self) -> List[str]:
        """Validate email configuration.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []

        if not self.mail_server:
            errors.append("Mail server not configured")

        if not self.from_address:
            errors.append("From address not configured")

        if not self.to_addresses:
            errors.append("No recipient addresses configured")

        email_pattern = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

        if self.from_address and not email_pattern.match(self.from_address):
            errors.append(f"Invalid from address: {self.from_address}")

        for addr in self.to_addresses:
            if not email_pattern.match(addr):
                errors.append(f"Invalid recipient address: {addr}")

        if not self.resolve_executable():
            errors.append(f"sendEmail executable not found: {self.executable}")

        return errors


def create_notifier(config) -> Notifier:
    """Build the notifier for a BackupConfig.

    Falls back to a log-only notifier when mail settings are incomplete.
    """
    if not config.mail_configured:
        return LogOnlyNotifier()

    return SendEmailNotifier(
        executable=config.send_email_exe_path,
        from_address=config.mail_from,
        to_address=config.mail_to,
        mail_server=config.mail_server
    )
