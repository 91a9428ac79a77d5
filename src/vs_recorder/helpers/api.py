"""Pokemon Showdown replay client."""

import asyncio
import os
import re
from typing import Any, Dict, Iterable, List, Optional
from typing_extensions import TypedDict

import aiohttp
from dotenv import load_dotenv


REPLAY_HOST = "replay.pokemonshowdown.com"

REPLAY_URL_PATTERN = re.compile(
    rf"^https?://{re.escape(REPLAY_HOST)}/([^-/]+)-(\d+)(?:-([a-z0-9]+))?$",
    re.IGNORECASE,
)
REPLAY_URL_IN_TEXT = re.compile(rf"https?://{re.escape(REPLAY_HOST)}/[^\s]+", re.IGNORECASE)

DEFAULT_TIMEOUT = 10.0
DEFAULT_CONCURRENCY = 3


class ReplayUrl(TypedDict):
    """Parsed Showdown replay URL."""
    url: str
    format: str
    battle_id: str
    password: Optional[str]  # private replays carry an extra token
    battle_identifier: str
    log_url: str
    json_url: str


class UrlValidation(TypedDict):
    """Result of validating a batch of URLs."""
    valid: List[ReplayUrl]
    invalid: List[str]


def get_fetch_settings() -> Dict[str, Any]:
    """Timeout and concurrency for replay fetching, loaded from the environment at runtime."""
    load_dotenv()
    try:
        timeout = float(os.environ.get("REPLAY_FETCH_TIMEOUT", DEFAULT_TIMEOUT))
    except ValueError:
        timeout = DEFAULT_TIMEOUT
    try:
        concurrency = max(1, int(os.environ.get("REPLAY_FETCH_CONCURRENCY", DEFAULT_CONCURRENCY)))
    except ValueError:
        concurrency = DEFAULT_CONCURRENCY
    return {"timeout": timeout, "concurrency": concurrency}


def get_showdown_usernames() -> List[str]:
    """Team owner's Showdown usernames from SHOWDOWN_USERNAMES (comma separated)."""
    load_dotenv()
    raw = os.environ.get("SHOWDOWN_USERNAMES", "")
    return [name.strip() for name in raw.split(",") if name.strip()]


# --- URL helpers ---


def parse_replay_url(url: str) -> Optional[ReplayUrl]:
    """Parse a Showdown replay URL; None when it is not one."""
    clean_url = re.sub(r"\.(log|json)$", "", (url or "").strip())
    clean_url = clean_url.split("?")[0].rstrip("/")
    match = REPLAY_URL_PATTERN.match(clean_url)
    if not match:
        return None

    battle_format, battle_id, password = match.groups()
    identifier = f"{battle_format}-{battle_id}" + (f"-{password}" if password else "")
    return {
        "url": clean_url,
        "format": battle_format,
        "battle_id": battle_id,
        "password": password,
        "battle_identifier": identifier,
        "log_url": f"{clean_url}.log",
        "json_url": f"{clean_url}.json",
    }


def extract_urls_from_text(text: str) -> List[str]:
    """Find replay URLs in free text, trailing punctuation removed, duplicates dropped."""
    urls: List[str] = []
    for match in REPLAY_URL_IN_TEXT.findall(text or ""):
        url = re.sub(r"[.,;!?)]+$", "", match)
        if url not in urls:
            urls.append(url)
    return urls


def validate_urls(urls: Iterable[str]) -> UrlValidation:
    """Split URLs into parsed valid ones and invalid raw strings."""
    result: UrlValidation = {"valid": [], "invalid": []}
    for url in urls:
        parsed = parse_replay_url(url)
        if parsed:
            result["valid"].append(parsed)
        else:
            result["invalid"].append(url.strip())
    return result


# --- API functions ---


async def fetch_replay(
    url: str,
    session: Optional[aiohttp.ClientSession] = None,
) -> Optional[Dict[str, Any]]:
    """Fetch a replay's JSON payload ({id, format, players, log, uploadtime})."""
    parsed = parse_replay_url(url)
    if not parsed:
        print(f"Invalid Showdown replay URL: {url}")
        return None

    if session is None:
        timeout = aiohttp.ClientTimeout(total=get_fetch_settings()["timeout"])
        async with aiohttp.ClientSession(timeout=timeout) as own_session:
            return await fetch_replay(url, own_session)

    try:
        async with session.get(parsed["json_url"]) as response:
            if response.status != 200:
                print(f"Replay API returned status {response.status} for {parsed['battle_identifier']}")
                return None
            data = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        print(f"Error fetching replay {parsed['battle_identifier']}: {e}")
        return None

    if not isinstance(data, dict) or not data.get("log"):
        print(f"Replay log is empty or unavailable: {parsed['battle_identifier']}")
        return None
    return data


async def fetch_replays(urls: List[str]) -> List[Optional[Dict[str, Any]]]:
    """Fetch several replays concurrently.

    At most REPLAY_FETCH_CONCURRENCY requests run at once. Results line up
    with the input URLs; failed fetches are None.
    """
    if not urls:
        return []

    settings = get_fetch_settings()
    semaphore = asyncio.Semaphore(settings["concurrency"])
    timeout = aiohttp.ClientTimeout(total=settings["timeout"])

    async with aiohttp.ClientSession(timeout=timeout) as session:
        async def fetch_one(url: str) -> Optional[Dict[str, Any]]:
            async with semaphore:
                return await fetch_replay(url, session)

        print(f"Fetching {len(urls)} replays...")
        results = await asyncio.gather(*(fetch_one(url) for url in urls), return_exceptions=True)

    return [None if isinstance(result, Exception) else result for result in results]
