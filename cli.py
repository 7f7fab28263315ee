#!/usr/bin/env python3
"""
API manager command line.

    python cli.py serve [--host H] [--port P] [--reload]
    python cli.py demo account-signup|api-signup|all
    python cli.py test [pytest args...]
"""

import argparse
import logging
import subprocess
import sys


def _scenarios() -> dict:
    from notifications.demo import run_account_signup_demo, run_api_signup_demo

    return {
        "account-signup": [run_account_signup_demo],
        "api-signup": [run_api_signup_demo],
        "all": [run_account_signup_demo, run_api_signup_demo],
    }


SCENARIO_NAMES = ("account-signup", "api-signup", "all")


def demo(args: argparse.Namespace) -> int:
    for scenario in _scenarios()[args.scenario]:
        scenario()
    return 0


def test(args: argparse.Namespace) -> int:
    return subprocess.run([sys.executable, "-m", "pytest", *args.pytest_args]).returncode


def serve(args: argparse.Namespace) -> int:
    import uvicorn

    print(f"API Manager on http://{args.host}:{args.port} (docs at /docs)")
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="api-manager", description=__doc__,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level for in-process commands")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_cmd = commands.add_parser("serve", help="Start the REST API")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.add_argument("--reload", action="store_true", help="Restart on code changes")
    serve_cmd.set_defaults(handler=serve)

    demo_cmd = commands.add_parser("demo", help="Raise an event in-process and show the notifications")
    demo_cmd.add_argument("scenario", choices=SCENARIO_NAMES)
    demo_cmd.set_defaults(handler=demo)

    test_cmd = commands.add_parser("test", help="Run the test suite; extra arguments go to pytest")
    test_cmd.set_defaults(handler=test)

    return parser


def parse_args(argv=None) -> argparse.Namespace:
    parser = build_parser()
    args, extra = parser.parse_known_args(argv)
    if extra and args.command != "test":
        parser.error(f"unrecognized arguments: {' '.join(extra)}")
    args.pytest_args = extra
    return args


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
        datefmt="%H:%M:%S",
    )
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
