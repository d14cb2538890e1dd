"""
BÆKON Core — Entry Point.

`python main.py resolve "next friday"`   resolve a date phrase
`python main.py voice "Schedule gym tomorrow at 7am"`   classify a voice command
`python main.py context`   print the calendar ground-truth context
"""

import argparse
import logging
import sys

from src.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from src.core.date_resolver import get_date_parsing_context, resolve
from src.core.voice_commands import match


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="baekon", description="BÆKON date and voice command core")
    sub = parser.add_subparsers(dest="command", required=True)

    p_resolve = sub.add_parser("resolve", help="Resolve a natural-language date phrase")
    p_resolve.add_argument("phrase")

    p_voice = sub.add_parser("voice", help="Match a voice transcript against known commands")
    p_voice.add_argument("transcript")

    sub.add_parser("context", help="Print today's calendar context")

    args = parser.parse_args(argv)

    if args.command == "resolve":
        result = resolve(args.phrase)
        if result is None:
            print(f"No match for {args.phrase!r}")
            return 1
        print(result.isoformat())
        return 0

    if args.command == "voice":
        result = match(args.transcript)
        if result.recognized and result.command is not None:
            print(f"{result.command.action} ({result.confidence:.2f})")
            return 0
        print(result.suggestion)
        for correction in result.corrections:
            print(f"  - {correction}")
        return 1

    print(get_date_parsing_context())
    return 0


if __name__ == "__main__":
    sys.exit(main())
