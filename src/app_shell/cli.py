import argparse
import logging
import os
import sys
from pathlib import Path

from src.api.deps import build_email_client
from src.app_shell.config import configure_logging, prepare_database
from src.config.loader import CONFIG_ENV_VAR, load_settings
from src.config.models import Settings

logger = logging.getLogger("cli")


def get_settings(args: argparse.Namespace) -> Settings:
    try:
        return load_settings(Path(args.config) if args.config else None)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    applied = prepare_database(settings)
    if applied:
        print(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        print("Database is up to date.")


def handle_send_test_email(settings: Settings, args: argparse.Namespace) -> None:
    client = build_email_client(settings)
    try:
        result = client.send_email(
            args.recipient,
            args.subject,
            f"<p>{args.subject}</p>",
            args.subject,
        )
    finally:
        close = getattr(client, "close", None)
        if close is not None:
            close()

    if not result.ok:
        failure = result.failure.value if result.failure else "unknown"
        logger.error("Delivery failed (%s): %s", failure, result.error)
        sys.exit(1)
    print(f"Email to {args.recipient}: {result.status.value}")


def handle_serve(settings: Settings, args: argparse.Namespace) -> None:
    import uvicorn

    # The app loads its own settings; point it at the same file
    if args.config:
        os.environ[CONFIG_ENV_VAR] = args.config

    uvicorn.run(
        "src.api.main:app",
        host=args.host or settings.application.host,
        port=args.port or settings.application.port,
        log_level=settings.log_level.lower(),
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Email Newsletter CLI")
    parser.add_argument("--config", help="Path to configuration.yaml ($NEWSLETTER_CONFIG)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # send-test-email
    email_parser = subparsers.add_parser(
        "send-test-email", help="Send one email through the configured provider"
    )
    email_parser.add_argument("recipient", help="Recipient email address")
    email_parser.add_argument("--subject", default="Newsletter test email", help="Subject line")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address (default: application.host)")
    serve_parser.add_argument("--port", type=int, help="Port (default: application.port)")

    args = parser.parse_args(argv)

    settings = get_settings(args)
    configure_logging(settings.log_level)

    if args.command == "migrate":
        handle_migrate(settings, args)
    elif args.command == "send-test-email":
        handle_send_test_email(settings, args)
    elif args.command == "serve":
        handle_serve(settings, args)


if __name__ == "__main__":
    main()
