"""
Synthetic hand-hygiene log generator for development and testing.
Generates a realistic LoginInfo.csv-style log matching the collector's schema.
Replace with the real collector output when the washing station is online.
"""

import os
from datetime import datetime, timedelta

import numpy as np

WORKERS = [
    "Alice Moreau", "Bilal Haddad", "Carla Nunes", "Dmitri Volkov", "Emma Clarke",
    "Farid Saab", "Grace Okafor", "Hiro Tanaka", "Ines Duarte", "Jonas Berg",
    "Karim Aoun", "Lena Fischer", "Marco Rossi", "Nadia Khoury", "Omar Said",
    "Priya Nair", "Quentin Roy", "Rana Issa", "Samir Fares", "Tala Najjar",
]

STATIONS = ["Kitchen", "Prep Area", "Bakery Line", "Front Counter"]

# Peak washing windows: shift start, lunch, shift end (hour, weight)
PEAK_HOURS = [(7, 0.35), (12, 0.25), (16, 0.25), (10, 0.15)]


def generate_events(n_workers=20, days=3, end_date=None, attendance_rate=0.75, seed=42):
    """
    Generate (worker, timestamp) pairs over `days` days ending on `end_date`.

    Each day a worker attends with probability `attendance_rate` and washes
    1-4 times around the peak hours. Returned sorted by time.
    """
    rng = np.random.RandomState(seed)
    end_date = end_date or datetime.now().date()
    workers = WORKERS[:n_workers] if n_workers <= len(WORKERS) else [
        f"Worker {i + 1:03d}" for i in range(n_workers)
    ]
    hours = [h for h, _ in PEAK_HOURS]
    weights = np.array([w for _, w in PEAK_HOURS])

    records = []
    for offset in range(days - 1, -1, -1):
        day = end_date - timedelta(days=offset)
        base = datetime(day.year, day.month, day.day)
        for worker in workers:
            if rng.rand() > attendance_rate:
                continue
            for _ in range(rng.randint(1, 5)):
                hour = hours[rng.choice(len(hours), p=weights / weights.sum())]
                minutes = int(np.clip(rng.normal(30, 15), 0, 59))
                seconds = int(rng.randint(0, 60))
                ts = base + timedelta(hours=int(hour), minutes=minutes, seconds=seconds)
                records.append((worker, ts, STATIONS[rng.randint(len(STATIONS))]))

    records.sort(key=lambda r: r[1])
    return records


def generate_hygiene_log(n_workers=20, days=3, end_date=None, include_station=True, seed=42):
    """Return CSV text: header line then one line per washing event."""
    records = generate_events(n_workers=n_workers, days=days, end_date=end_date, seed=seed)
    header = "Worker Name,Timestamp,Station" if include_station else "Worker Name,Timestamp"
    lines = [header]
    for worker, ts, station in records:
        line = f"{worker},{ts.strftime('%Y-%m-%d %H:%M:%S')}"
        if include_station:
            line += f",{station}"
        lines.append(line)
    return "\n".join(lines) + "\n"


def write_hygiene_log(path, **kwargs):
    """Write a synthetic log to `path`; returns the path."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(generate_hygiene_log(**kwargs))
    return path


if __name__ == "__main__":
    from config import DEFAULTS

    out = write_hygiene_log(DEFAULTS["source_document"])
    print(f"Synthetic hygiene log written to {out}")
