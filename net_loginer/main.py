import argparse
import logging
import sys

import requests
from rich.rule import Rule
from rich.table import Table

from net_loginer.configs.common import CONFIG_PATH
from net_loginer.configs.settings import Settings, load_settings
from net_loginer.controller.auth_flow import AuthFlow
from net_loginer.controller.login_flow import LoginFlow, exit_code
from net_loginer.errors import NetLoginerError
from net_loginer.ml.captcha_solver import load_classifier
from net_loginer.ml.preprocess import ResizeParam
from net_loginer.model.credentials import Credentials
from net_loginer.model.network import discover_addresses
from net_loginer.remote.http_request import HTTPRequest
from net_loginer.view.console import console, mask, setup_logging
from net_loginer.view.show_auth_result import ShowAuthResult

logger = logging.getLogger('net_loginer.main')


def list_addresses(addresses):
    console.print(Rule("[bold cyan]Candidate addresses[/bold cyan]", style="cyan"))
    table = Table(show_header=False, box=None, padding=(0, 3))
    table.add_column("#", style="dim", width=4)
    table.add_column("Address")
    for idx, addr in enumerate(addresses, 1):
        table.add_row(str(idx), addr)
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Captive portal auto-login with captcha recognition',
        epilog=f'Config file: {CONFIG_PATH} (CLI flags take precedence). '
               'Credentials come from EGATE_ID / EGATE_PASSWORD or a .env file.',
    )

    # Portal
    parser.add_argument('--base-url', metavar='URL', help='Portal base URL')
    parser.add_argument('--timeout', type=float, metavar='SECONDS', help='HTTP timeout per request')
    parser.add_argument('--insecure', dest='verify_tls', action='store_const', const=False,
                        help='Skip TLS certificate verification')
    parser.add_argument('-a', '--address', dest='addresses', action='append', metavar='IP',
                        help='Log in for this address instead of discovering them (repeatable)')
    parser.add_argument('--address-prefix', metavar='PREFIX', help='Prefix of addresses to discover')

    # Recognition
    parser.add_argument('--model', dest='model_path', metavar='PATH', help='ONNX recognition model')
    parser.add_argument('--charset', dest='charset_path', metavar='PATH', help='Charset JSON list')
    parser.add_argument('--resize', type=int, nargs=2, metavar=('W', 'H'),
                        help='Model input size, -1 marks the side derived from the aspect ratio')
    parser.add_argument('--channels', type=int, choices=[1, 3], help='Model input channels')
    parser.add_argument('--code-length', dest='verify_code_length', type=int, metavar='N',
                        help='Expected verify code length; other lengths are treated as misreads')

    # Retry policy
    parser.add_argument('--max-retry', dest='max_verify_code_retry', type=int, metavar='N',
                        help='Login attempts per address while the verify code is rejected')
    parser.add_argument('--max-misread', dest='max_misread_retry', type=int, metavar='N',
                        help='Captcha refetches per attempt when the code is implausible')
    parser.add_argument('--retry-delay', type=float, metavar='SECONDS', help='Pause between login attempts')
    parser.add_argument('-k', '--keep-going', dest='abort_on_failure', action='store_const', const=False,
                        help='Try remaining addresses after an account failure')

    # Feature flags
    parser.add_argument('-C', '--no-auto-captcha', dest='auto_captcha', action='store_const', const=False,
                        help='Type the verify code by hand instead of using the model')
    parser.add_argument('--save-captcha', dest='save_captcha_dir', metavar='DIR',
                        help='Archive captchas, labeled when the portal accepted them')
    parser.add_argument('--dry-run', action='store_true',
                        help='Fetch and solve the captcha for each address without logging in')
    parser.add_argument('--log-level', metavar='LEVEL', help='Logging level (default INFO)')
    parser.add_argument('--log-file', metavar='PATH', help='Also write logs to a rotating file')
    parser.add_argument('--config', default=CONFIG_PATH, metavar='PATH', help='TOML config file')

    # Info commands
    parser.add_argument('--list-addresses', action='store_true', help='List candidate addresses and exit')
    return parser


def _solver(settings: Settings):
    if not settings.auto_captcha:
        from net_loginer.view.prompt import ask_verify_code
        return ask_verify_code
    return load_classifier(
        settings.model_path,
        settings.charset_path,
        ResizeParam.from_pair(settings.resize),
        settings.channels,
    )


def run(settings: Settings, dry_run: bool = False) -> int:
    addresses = settings.addresses or discover_addresses(settings.address_prefix)
    if not addresses:
        console.print(f"[bold red]✗[/bold red]  No up interface with an address starting with {settings.address_prefix}")
        return 1

    credentials = Credentials('', '') if dry_run else settings.credentials()
    if not dry_run:
        logger.info('User ID: %s', mask(credentials.user_id))

    client = HTTPRequest(settings.base_url, settings.timeout, settings.verify_tls)
    try:
        auth_flow = AuthFlow(
            client,
            _solver(settings),
            credentials,
            verify_code_length=settings.verify_code_length,
            max_verify_code_retry=settings.max_verify_code_retry,
            max_misread_retry=settings.max_misread_retry,
            retry_delay=settings.retry_delay,
            save_captcha_dir=settings.save_captcha_dir,
        )

        if dry_run:
            for addr in addresses:
                ctx = auth_flow.prepare(addr)
                console.print(
                    f"[cyan]{addr}[/cyan]  [dim]pushPageId={ctx.params.push_page_id} ssid={ctx.params.ssid}[/dim]  "
                    f"verify code: [bold yellow]{ctx.verify_code}[/bold yellow]"
                )
            return 0

        outcomes = LoginFlow(auth_flow, addresses, settings.abort_on_failure).run()
    finally:
        client.close()

    ShowAuthResult().show(outcomes)
    return exit_code(outcomes)


def main():
    parser = build_parser()
    args = parser.parse_args()

    try:
        settings = load_settings(vars(args), config_path=args.config)
    except NetLoginerError as e:
        console.print(f"[bold red]✗[/bold red]  {e}")
        sys.exit(2)
    setup_logging(settings.log_level, settings.log_file)

    if args.list_addresses:
        list_addresses(settings.addresses or discover_addresses(settings.address_prefix))
        return

    try:
        code = run(settings, dry_run=args.dry_run)
    except KeyboardInterrupt:
        console.print("\n[dim]Aborted.[/dim]")
        raise SystemExit(0)
    except (NetLoginerError, requests.RequestException) as e:
        logger.error('%s: %s', type(e).__name__, e)
        sys.exit(2)
    sys.exit(code)


if __name__ == "__main__":
    main()
