#!/usr/bin/env python3
"""Drive Sentinel - Inbox triage with human approval over Discord."""

import argparse
import sys

from auth import TokenBroker, CredentialError
from sentinel import Sentinel
from sentinel.config import ConfigError, Settings
from storage import StorageError


def run_scan(settings: Settings, broker: TokenBroker) -> None:
    """Run one scanner pass over the inbox."""
    from workflows import create_scanner

    scanner = create_scanner(settings, broker)
    Sentinel.print_right(f"Using LLM provider: {scanner.classifier.name}")
    Sentinel.print_right(f"Inbox: {settings.inbox_folder_id}")
    report = scanner.run_once()
    Sentinel.print_right(f"\n[green]Done:[/green] {report.summary()}")


def main(settings: Settings) -> int:
    """Main entry point for one scan (CLI mode)."""
    try:
        run_scan(settings, TokenBroker())
    except (ConfigError, CredentialError, StorageError) as e:
        print(f"Error: {e}")
        return 1
    return 0


def main_tui(settings: Settings) -> int:
    """Main entry point for watching the inbox (TUI mode)."""
    from textui import SentinelApp

    try:
        settings.require("inbox_folder_id", "relay_url", "relay_api_key")
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    broker = TokenBroker()

    def scan_func():
        run_scan(settings, broker)

    app = SentinelApp(
        inbox=settings.inbox_folder_id,
        interval=settings.scan_interval,
        scan_func=scan_func,
    )
    app.run()
    return 0


def serve(settings: Settings, service: str) -> int:
    """Run the relay or worker HTTP service under uvicorn."""
    import uvicorn
    from api import create_relay_app, create_worker_app

    try:
        if service == "relay":
            app = create_relay_app(settings)
        else:
            app = create_worker_app(settings)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    print(f"Starting {service} on port {settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
    return 0


def register_commands(settings: Settings) -> int:
    """Register the /approve and /exec slash commands with Discord."""
    from relay import DiscordClient, NotificationError

    try:
        settings.require("discord_bot_token", "discord_application_id")
        client = DiscordClient(settings.discord_bot_token, settings.discord_application_id)
        registered = client.register_commands()
    except (ConfigError, NotificationError) as e:
        print(f"Error: {e}")
        return 1

    for command in registered:
        print(f"  Registered /{command.get('name')}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Drive inbox triage with Discord approval")
    parser.add_argument("--cli", action="store_true",
                        help="Run one scan with plain text output instead of the TextUI")
    parser.add_argument("--serve", choices=["relay", "worker"],
                        help="Run the relay or worker HTTP service")
    parser.add_argument("--register-commands", action="store_true",
                        help="Register Discord slash commands and exit")
    args = parser.parse_args()

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.register_commands:
        sys.exit(register_commands(settings))
    elif args.serve:
        sys.exit(serve(settings, args.serve))
    elif args.cli:
        sys.exit(main(settings))
    else:
        sys.exit(main_tui(settings))
