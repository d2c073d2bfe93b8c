"""Synthetic CIF feeds for demos and manual testing."""

import json
import random
import string
from datetime import UTC, date, datetime, timedelta

# record counts for the two Network Rail file types
SAMPLE_RECORD_COUNTS = {"update": 50, "full": 200}

SAMPLE_OPERATORS = ["VT", "GR", "GW", "XC", "SR", "NT", "TP", "SE", "AW", "CC"]
SAMPLE_CATEGORIES = ["OO", "XX", "OW", "XZ", "BR", "EE"]
# weighted towards new/planning schedules
SAMPLE_STP_INDICATORS = ["N", "N", "N", "N", "P", "O", "C"]
SAMPLE_TIPLOCS = [
    "EUSTON", "KNGX", "STPX", "PADTON", "VICTRIA", "BHAM", "MNCRPIC",
    "LEEDS", "EDINBUR", "GLGC", "BRSTLTM", "CRDFCNT", "YORK", "MKTNKYL",
]


def _format_hhmm(minutes: int) -> str:
    return f"{(minutes // 60) % 24:02d}{minutes % 60:02d}"


def _sample_locations(rng: random.Random) -> list[dict]:
    tiplocs = rng.sample(SAMPLE_TIPLOCS, rng.randint(3, 7))
    current = rng.randint(5, 21) * 60 + rng.randint(0, 59)

    locations = []
    for index, tiploc in enumerate(tiplocs):
        is_first = index == 0
        is_last = index == len(tiplocs) - 1
        record_type = "LO" if is_first else ("LT" if is_last else "LI")
        time = _format_hhmm(current)
        locations.append(
            {
                "location_type": record_type,
                "record_identity": record_type,
                "tiploc_code": tiploc,
                "arrival": None if is_first else time,
                "departure": None if is_last else time,
                "public_arrival": None if is_first else time,
                "public_departure": None if is_last else time,
                "platform": str(rng.randint(1, 14)),
            }
        )
        current += rng.randint(15, 44)
    return locations


def _sample_schedule(rng: random.Random, today: date) -> dict:
    return {
        "CIF_train_uid": f"{rng.choice(string.ascii_uppercase)}{rng.randint(10000, 99999)}",
        "CIF_stp_indicator": rng.choice(SAMPLE_STP_INDICATORS),
        "schedule_start_date": (today + timedelta(days=rng.randint(0, 13))).isoformat(),
        "schedule_end_date": (today + timedelta(days=90)).isoformat(),
        "schedule_days_runs": "1111100",
        "train_status": "P",
        "train_category": rng.choice(SAMPLE_CATEGORIES),
        "atoc_code": rng.choice(SAMPLE_OPERATORS),
        "applicable_timetable": "Y",
        "schedule_location": _sample_locations(rng),
    }


def generate_sample_feed(
    record_count: int,
    seed: int | None = None,
    today: date | None = None,
) -> str:
    """Generate an NDJSON CIF feed.

    The feed starts with one JsonTimetableV1 header followed by
    `record_count` JsonScheduleV1 records over well-known stations.

    Args:
        record_count: Number of schedule records.
        seed: Random seed for reproducible output.
        today: Base date for schedule validity (defaults to today, UTC).

    Returns:
        Newline-joined feed content.
    """
    if record_count < 0:
        raise ValueError("record_count must be >= 0")

    rng = random.Random(seed)
    today = today or datetime.now(UTC).date()

    header = {
        "JsonTimetableV1": {
            "classification": "public",
            "timestamp": int(datetime.now(UTC).timestamp()),
            "owner": "Network Rail",
        }
    }
    lines = [json.dumps(header)]
    for _ in range(record_count):
        lines.append(json.dumps({"JsonScheduleV1": _sample_schedule(rng, today)}))
    return "\n".join(lines)
