"""Command-line interface for catalog backup."""

import logging
import os
import sys
from contextlib import contextmanager
from functools import wraps
from typing import Any, Dict, Iterator, Optional

import click

from .config.config_manager import BackupConfig, ConfigManager
from .core.exceptions import ConfigError, LowDiskSpaceError, RunAbortedError
from .core.orchestrator import BackupOrchestrator
from .core.pruner import collect_generations
from .reporters.notifier import SendEmailNotifier, create_notifier
from .utils.formatters import format_date, log_file_path


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str, log_file: Optional[str] = None, console: bool = True):
    """Set up logging configuration."""
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


@contextmanager
def logging_session(level: str, log_file: Optional[str] = None, console: bool = True) -> Iterator[None]:
    """Configure logging for the lifetime of a run, closing the handlers afterwards."""
    setup_logging(level, log_file, console)
    try:
        yield
    finally:
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            handler.flush()
            handler.close()
            root_logger.removeHandler(handler)


CONFIG_OPTIONS = [
    click.option('--backup-file-parent-dir', 'backupFileParentDir',
                 help='Directory holding the catalog marker files'),
    click.option('--backup-log-file', 'backupLogFile',
                 help='Prefix of the run log file'),
    click.option('--client-name', 'clientName',
                 help='Client name used in notifications'),
    click.option('--keep-last-x-copy-of-backup', 'keepLastXCopyOfBackup', type=int,
                 help='Number of backup copies kept per catalog'),
    click.option('--delete-old-catalogs/--no-delete-old-catalogs', 'deleteOldCatalogs', default=None,
                 help='Delete old backup copies, or only log them'),
    click.option('--send-email-exe-path', 'sendEmailExePath',
                 help='Path of the sendEmail executable or its directory'),
    click.option('--mail-from', 'mailFrom', help='Notification sender address'),
    click.option('--mail-to', 'mailTo', help='Notification recipient address(es)'),
    click.option('--mail-server', 'mailServer', help='SMTP server for notifications'),
    click.option('--source-dir', 'sourceDir', help='Directory holding the catalogs'),
    click.option('--destination-dir', 'destinationDir', help='Directory receiving backup copies'),
    click.option('--disk-space-check-dir', 'diskSpaceCheckDir',
                 help='Path whose volume is checked for free space (defaults to the source dir)'),
    click.option('--low-disk-space-alert-percent',
                 'lowDiskSpaceAlertIfDiskSpaceLessThanThresholdInPercentage', type=int,
                 help='Abort when a backup would leave less free space than this'),
    click.option('--low-disk-space-warning-percent',
                 'lowDiskSpaceWarningIfDiskSpaceLessThanThresholdInPercentage', type=int,
                 help='Warn when free space after the run is below this'),
]


_CONFIG_PARAM_NAMES = {
    'backupFileParentDir', 'backupLogFile', 'clientName', 'keepLastXCopyOfBackup',
    'deleteOldCatalogs', 'sendEmailExePath', 'mailFrom', 'mailTo', 'mailServer',
    'sourceDir', 'destinationDir', 'diskSpaceCheckDir',
    'lowDiskSpaceAlertIfDiskSpaceLessThanThresholdInPercentage',
    'lowDiskSpaceWarningIfDiskSpaceLessThanThresholdInPercentage',
}


def config_options(func):
    """Add every configuration override flag to a command."""
    @wraps(func)
    def wrapper(ctx, *args, **kwargs):
        overrides = {}
        for param in list(kwargs):
            if param in _CONFIG_PARAM_NAMES:
                overrides[param] = kwargs.pop(param)
        if ctx.obj.get('log_level'):
            overrides['logLevel'] = ctx.obj['log_level']
        return func(ctx, overrides, *args, **kwargs)

    for option in reversed(CONFIG_OPTIONS):
        wrapper = option(wrapper)
    return wrapper


def _load_config(ctx, overrides: Dict[str, Any]) -> BackupConfig:
    manager = ConfigManager(ctx.obj.get('config_path'), overrides)
    return manager.get_backup_config()


def _console_progress(processed: int, total: int, percent: int) -> None:
    if sys.stdout.isatty():
        click.echo(f"\r  {processed}/{total}: {percent} % Complete", nl=False)
        if processed >= total:
            click.echo("")


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level (overrides the configuration file)')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str]):
    """Catalog Backup - Copy pending catalogs to timestamped backup generations."""

    # Ensure context exists
    ctx.ensure_object(dict)

    ctx.obj['config_path'] = config_path
    ctx.obj['log_level'] = log_level.upper() if log_level else None


@cli.command()
@click.pass_context
@config_options
def run(ctx, overrides: Dict[str, Any]):
    """Back up every catalog that has a marker file."""
    try:
        config = _load_config(ctx, overrides)
    except ConfigError as e:
        click.echo(f"Error : {e}", err=True)
        sys.exit(1)

    log_file = log_file_path(config.backup_log_file)

    with logging_session(config.log_level, log_file, config.log_to_console):
        orchestrator = BackupOrchestrator(
            config,
            create_notifier(config),
            progress_callback=_console_progress,
            log_file=log_file
        )

        try:
            outcome = orchestrator.run()
        except LowDiskSpaceError as e:
            click.echo(f"❌ Backup aborted: {e}", err=True)
            sys.exit(1)
        except RunAbortedError as e:
            click.echo(f"❌ Backup failed: {e}", err=True)
            sys.exit(1)
        except Exception as e:
            click.echo(f"❌ Backup failed with an unexpected error: {e}", err=True)
            sys.exit(1)

    click.echo(f"\n📊 Summary:")
    click.echo(f"  Catalogs processed: {len(outcome.results)}")
    click.echo(f"  Succeeded: {len(outcome.succeeded)}")
    click.echo(f"  Skipped: {len(outcome.skipped)}")
    click.echo(f"  Failed: {len(outcome.failed)}")
    for result in outcome.failed:
        click.echo(f"    • {result.catalog}: {result.reason}")
    click.echo(f"  📄 Log file: {log_file}")


@cli.command()
@click.pass_context
@config_options
def status(ctx, overrides: Dict[str, Any]):
    """Show pending catalogs and existing backup copies without changing anything."""
    try:
        config = _load_config(ctx, overrides)
    except ConfigError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    setup_logging(config.log_level, console=False)
    orchestrator = BackupOrchestrator(config, create_notifier(config))

    try:
        pending = orchestrator.discover_catalogs()
    except RunAbortedError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    click.echo(f"\n📋 Catalogs needing backup: {len(pending)}")
    for catalog in pending:
        source = os.path.join(config.source_dir, catalog.name)
        marker = "" if os.path.isdir(source) else "  (source missing)"
        click.echo(f"   • {catalog.name}{marker}")

    generations = collect_generations(config.destination_dir)
    click.echo(f"\n🗂️  Backup copies in {config.destination_dir}:")
    if not generations:
        click.echo("   No backup copies found")
    for catalog_name in sorted(generations):
        copies = sorted(generations[catalog_name], key=lambda g: g.created)
        click.echo(f"   📍 {catalog_name}: {len(copies)} copies "
                   f"(keeping {config.keep_last_x_copy_of_backup})")
        for generation in copies:
            click.echo(f"      {generation.name}  {format_date(generation.created)}")


@cli.command()
@click.pass_context
@config_options
def test_email(ctx, overrides: Dict[str, Any]):
    """Send a test email to verify email configuration."""
    try:
        config = _load_config(ctx, overrides)
    except ConfigError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    setup_logging(config.log_level)
    notifier = create_notifier(config)

    if not isinstance(notifier, SendEmailNotifier):
        click.echo("❌ Email not configured - cannot send test email", err=True)
        sys.exit(1)

    errors = notifier.validate_configuration()
    if errors:
        click.echo("❌ Email configuration errors:")
        for error in errors:
            click.echo(f"   • {error}")
        sys.exit(1)

    click.echo("Sending test email...")
    if notifier.send_test_email():
        click.echo("✅ Test email sent successfully!")
        click.echo(f"   Recipients: {', '.join(notifier.to_addresses)}")
    else:
        click.echo("❌ Failed to send test email", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
@config_options
def validate_config(ctx, overrides: Dict[str, Any]):
    """Validate configuration file and command line settings."""
    try:
        config = _load_config(ctx, overrides)
    except ConfigError as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(1)

    click.echo("✅ Configuration loaded successfully")

    click.echo(f"\n📊 Configuration Summary:")
    click.echo(f"   Marker directory: {config.backup_file_parent_dir}")
    click.echo(f"   Source directory: {config.source_dir}")
    click.echo(f"   Destination directory: {config.destination_dir}")
    click.echo(f"   Copies kept per catalog: {config.keep_last_x_copy_of_backup}")
    click.echo(f"   Delete old copies: {'yes' if config.delete_old_catalogs else 'no (dry run)'}")
    click.echo(f"   Low disk space alert / warning: "
               f"{config.low_disk_space_alert_percent}% / {config.low_disk_space_warning_percent}%")

    for label, path in [('Marker directory', config.backup_file_parent_dir),
                        ('Source directory', config.source_dir)]:
        if not os.path.isdir(path):
            click.echo(f"   ⚠️  {label} does not exist: {path}")

    if config.mail_configured:
        click.echo(f"   📧 Email configured: {config.mail_from} -> {config.mail_to} via {config.mail_server}")
        notifier = create_notifier(config)
        email_errors = notifier.validate_configuration()
        if email_errors:
            click.echo("\n⚠️  Email configuration issues:")
            for error in email_errors:
                click.echo(f"     • {error}")
        else:
            click.echo("\n✅ Email configuration valid")
    else:
        click.echo("   📧 Email: Not configured")


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
