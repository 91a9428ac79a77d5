"""Replay analytics command line entry point."""

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .helpers.api import (
    extract_urls_from_text,
    fetch_replays,
    get_showdown_usernames,
    validate_urls,
)
from .helpers.battle_log import build_replay
from .helpers.matchup import compute_custom_matchup, compute_matchup_stats, list_opponent_pokemon
from .helpers.names import extract_pokemon_from_pokepaste, normalize_pokemon_name
from .helpers.types import Replay
from .helpers.usage import (
    collect_user_roster,
    compute_lead_pair_stats,
    compute_move_usage,
    compute_team_summary,
    compute_usage_stats,
)


# Output directory (relative to the working directory)
OUTPUT_DIR = Path("output")


def write_json(filepath: Path, data: Any) -> None:
    """Write data to JSON file."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    print(f"Written: {filepath}")


def load_replays(filepath: Path) -> List[Replay]:
    """Load replay records from a JSON file (a list, or {"replays": [...]})."""
    with open(filepath, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("replays")
    if not isinstance(data, list):
        raise ValueError(f"{filepath} does not contain a list of replays")
    return data


def build_team_analytics(
    replays: List[Replay],
    roster: Optional[List[str]] = None,
    selected: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """Run every analytics view over one team's replays."""
    roster = roster or collect_user_roster(replays)
    matchups = compute_matchup_stats(replays)
    selected_keys = [normalize_pokemon_name(p) for p in (selected or [])]

    return {
        "summary": compute_team_summary(replays),
        "usage": compute_usage_stats(replays, roster),
        "lead_pairs": compute_lead_pair_stats(replays),
        "matchups": matchups,
        "custom_matchup": compute_custom_matchup(matchups["by_key"], selected_keys),
        "moves": compute_move_usage(replays),
        "opponent_pokemon": list_opponent_pokemon(replays),
    }


async def fetch_command(urls_file: Path, usernames: List[str], output: Path) -> int:
    """Fetch replays listed in a text file and store them as replay records."""
    urls = extract_urls_from_text(urls_file.read_text(encoding="utf-8"))
    validation = validate_urls(urls)
    for url in validation["invalid"]:
        print(f"SKIP: {url} -> invalid Showdown replay URL")

    valid_urls = [parsed["url"] for parsed in validation["valid"]]
    if not valid_urls:
        print(f"No replay URLs found in {urls_file}")
        return 1

    payloads = await fetch_replays(valid_urls)
    replays: List[Replay] = []
    for url, payload in zip(valid_urls, payloads):
        if payload is None:
            print(f"FAIL: {url}")
            continue
        replays.append(build_replay(payload, usernames, url=url))

    write_json(output, replays)
    print(f"Done: {len(replays)} fetched, {len(valid_urls) - len(replays)} failed")
    return 0


def analyze_command(
    replays_file: Path,
    paste_file: Optional[Path],
    selected: List[str],
    output_dir: Path,
) -> int:
    """Compute analytics for a replay file and write team_analytics.json."""
    replays = load_replays(replays_file)
    print(f"Replays: {len(replays)} loaded")

    roster = None
    if paste_file:
        roster = extract_pokemon_from_pokepaste(paste_file.read_text(encoding="utf-8"))
        print(f"Roster: {len(roster)} Pokemon from {paste_file}")

    analytics = build_team_analytics(replays, roster, selected)
    summary = analytics["summary"]
    print(f"Summary: {summary['wins']}-{summary['losses']} ({summary['win_rate']}%)")

    write_json(output_dir / "team_analytics.json", analytics)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Command line parser."""
    parser = argparse.ArgumentParser(prog="vs-recorder", description="Replay analytics for a VGC team")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch_parser = subparsers.add_parser("fetch", help="Fetch Showdown replays into a replay file")
    fetch_parser.add_argument("urls_file", type=Path, help="Text file containing replay URLs")
    fetch_parser.add_argument(
        "--username", action="append", default=[],
        help="Team owner's Showdown username (repeatable, default: $SHOWDOWN_USERNAMES)",
    )
    fetch_parser.add_argument("-o", "--output", type=Path, default=OUTPUT_DIR / "replays.json")

    analyze_parser = subparsers.add_parser("analyze", help="Compute team analytics from a replay file")
    analyze_parser.add_argument("replays_file", type=Path)
    analyze_parser.add_argument("--paste", type=Path, help="Pokepaste text file with the team")
    analyze_parser.add_argument(
        "--vs", nargs="*", default=[], metavar="POKEMON",
        help="Opponent Pokemon for the custom matchup (up to 6)",
    )
    analyze_parser.add_argument("-o", "--output-dir", type=Path, default=OUTPUT_DIR)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        if args.command == "fetch":
            usernames = args.username or get_showdown_usernames()
            if not usernames:
                print("Warning: no Showdown username given, results assume the user played p1")
            return asyncio.run(fetch_command(args.urls_file, usernames, args.output))
        return analyze_command(args.replays_file, args.paste, args.vs, args.output_dir)
    except (OSError, ValueError) as error:
        print(f"Error: {error}")
        return 1


def run() -> None:
    """Run the main function."""
    raise SystemExit(main())


if __name__ == "__main__":
    run()
