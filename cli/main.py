"""CLI entry point and argument parsing"""

import argparse
import asyncio
import sys
import traceback

from rich.console import Console

import settings
from cli import auth_handlers


console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Codex Gateway CLI")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--stream-trace",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable raw stream tracing log capture (default: from config)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--bind", "-b", default=None, help="Override bind address (default: from config)")
    serve.add_argument("--port", "-p", type=int, default=None, help="Override port (default: from config)")

    login = subparsers.add_parser("login", help="Authorize with your ChatGPT account")
    login.add_argument("--no-browser", action="store_true", help="Print the URL instead of opening a browser")

    subparsers.add_parser("status", help="Show the stored credential")
    subparsers.add_parser("logout", help="Delete the stored credential")

    ask = subparsers.add_parser("ask", help="Send one prompt through the gateway")
    ask.add_argument("prompt", help="Prompt text")
    ask.add_argument("--model", "-m", default=settings.DEFAULT_MODEL, help="Model to try first")
    ask.add_argument("--system", "-s", default=None, help="System instruction")
    ask.add_argument("--json", action="store_true", help="Ask for JSON-only output")

    return parser


def main(argv=None):
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)

    if args.stream_trace is not None:
        settings.STREAM_TRACE_ENABLED = args.stream_trace

    # Imported late: uvicorn and the app are only needed for serve
    from server import GatewayServer, setup_logging

    try:
        if args.command == "serve":
            GatewayServer(debug=args.debug, bind_address=args.bind, port=args.port).run()
            return

        setup_logging(args.debug)

        if args.command == "login":
            ok = asyncio.run(auth_handlers.login(console, open_browser=not args.no_browser))
        elif args.command == "status":
            ok = auth_handlers.status(console)
        elif args.command == "logout":
            ok = auth_handlers.logout(console)
        else:
            ok = asyncio.run(auth_handlers.ask(
                console,
                args.prompt,
                args.model,
                is_json=args.json,
                system=args.system,
            ))

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            traceback.print_exc()
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
