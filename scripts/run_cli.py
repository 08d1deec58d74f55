"""Interactive CLI for exercising session memory without the web UI.

Usage:
    python scripts/run_cli.py [session-id]

Commands:
    say <sentence>     record the sentence's words and word pairs
    words <w1> <w2>    record individual words
    show               print the stored record
    forecast           print the mastery forecast
    quit / exit        stop
"""

import json
import logging
import os
import sys

# Ensure the project root is on the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from assistant import config  # noqa: E402
from memory.service import get_service  # noqa: E402

_LEVEL_COLORS = {"emerging": "1;33", "developing": "1;36", "mastered": "1;32"}


def _print_forecast(service, session_id: str) -> None:
    entries = service.get_forecast(session_id)
    if not entries:
        print("  No words recorded yet.")
        return
    for entry in entries:
        color = _LEVEL_COLORS[entry.level]
        due = entry.projected_mastery_date.isoformat() if entry.projected_mastery_date else "-"
        print(f"  \033[{color}m{entry.level:<10}\033[0m {entry.word:<15} {due}")


def main():
    """Run an interactive memory loop in the terminal."""
    logging.basicConfig(level=config.LOG_LEVEL)
    session_id = sys.argv[1] if len(sys.argv) > 1 else "cli-session"
    service = get_service()

    print("=" * 60)
    print("  Sentence Helper — Memory CLI")
    print(f"  Session: {session_id}  (durable store: "
          f"{'on' if service.store.durable_available else 'off'})")
    print("  Type 'quit' or 'exit' to stop.")
    print("=" * 60)
    print()

    while True:
        try:
            user_input = input("\033[1;36m>\033[0m ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if not user_input:
            continue
        command, _, rest = user_input.partition(" ")
        command = command.lower()
        if command in ("quit", "exit"):
            print("Goodbye!")
            break

        try:
            if command == "say" and rest.strip():
                service.record_spoken_words(session_id, rest.split())
                service.record_utterance(session_id, rest.strip())
                print(f"  \033[1;32m✅ recorded:\033[0m {rest.strip()}")
            elif command == "words" and rest.strip():
                service.record_spoken_words(session_id, rest.split())
                print(f"  \033[1;32m✅ recorded {len(rest.split())} word(s)\033[0m")
            elif command == "show":
                record = service.read_memory(session_id)
                print(json.dumps(record.to_json_dict(), indent=2, ensure_ascii=False))
            elif command == "forecast":
                _print_forecast(service, session_id)
            else:
                print("  Commands: say <sentence>, words <w1> <w2> ..., show, forecast, quit")
        except Exception as e:
            print(f"\033[1;31mError:\033[0m {e}")

        print()


if __name__ == "__main__":
    main()
