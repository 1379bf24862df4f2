"""Load daily poll questions into Supabase's poll_bank table."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

DEFAULT_POLLS: list[dict[str, Any]] = [
    {
        "question": "What would you rather do this weekend?",
        "options": [
            "Stay home and relax",
            "Go on an adventure",
            "Hang out with friends",
            "Learn something new",
        ],
    },
    {
        "question": "Morning person or night owl?",
        "options": ["Definitely morning", "More morning", "More night", "Definitely night owl"],
    },
    {
        "question": "Would you rather have unlimited money or unlimited time?",
        "options": ["Money", "Time", "A balance of both", "Neither matters"],
    },
    {
        "question": "Is a hot dog a sandwich?",
        "options": ["Yes", "No", "It is its own thing", "This is a dumb question"],
    },
    {
        "question": "Text or call?",
        "options": ["Always text", "Always call", "Depends on the situation", "Voice messages"],
    },
    {
        "question": "Best way to settle an argument?",
        "options": ["Rock paper scissors", "Coin flip", "Debate it out", "Ask a neutral party"],
    },
]


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Insert poll questions into public.poll_bank, skipping known ones.",
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="JSON file with a list of {question, options} objects (default: built-in set).",
    )
    parser.add_argument(
        "--inactive",
        action="store_true",
        help="Store the questions as inactive so they are not drawn yet.",
    )
    return parser.parse_args()


def load_polls(path: Path | None) -> list[dict[str, Any]]:
    """Read and validate poll definitions."""
    if path is None:
        return DEFAULT_POLLS

    polls = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(polls, list):
        raise ValueError("poll file must contain a JSON list")
    for poll in polls:
        question = str(poll.get("question") or "").strip()
        options = poll.get("options")
        if not question:
            raise ValueError("every poll needs a question")
        if not isinstance(options, list) or len(options) < 2:
            raise ValueError(f"poll {question!r} needs at least two options")
    return polls


def seed_polls(polls: Sequence[dict[str, Any]], active: bool) -> list[str]:
    """Insert polls whose question is not already in the bank; return inserted questions."""
    from app.services.common import SupabaseService
    from app.utils.supabase_client import get_service_client

    db = SupabaseService(get_service_client())
    existing = {str(row["question"]) for row in db.select_many("poll_bank", columns="question")}

    inserted: list[str] = []
    for poll in polls:
        question = str(poll["question"]).strip()
        if question in existing:
            continue
        db.insert_one(
            "poll_bank",
            {"question": question, "options": list(poll["options"]), "active": active},
        )
        existing.add(question)
        inserted.append(question)
    return inserted


def main() -> None:
    """CLI entry point."""
    args = parse_args()
    inserted = seed_polls(load_polls(args.file), active=not args.inactive)
    print(f"Inserted {len(inserted)} poll question(s):")
    for question in inserted:
        print(question)


if __name__ == "__main__":
    main()
