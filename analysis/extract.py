
import argparse
import json
from pathlib import Path
from typing import List

import pandas as pd

STRENGTH_PREFIX = "strength."
TOTAL_PREFIX = "total_buildup."


def _read_jsonl(path: Path) -> List[dict]:
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def load_ticks(path: Path) -> pd.DataFrame:
    """
    One row per tick: scalar counters plus one column per unit strength and
    per gas total buildup.
    """
    rows = []
    for tick in _read_jsonl(Path(path)):
        row = {
            "tick": tick["tick"],
            "n_active": len(tick.get("active_sources", [])),
            "emitting_units": tick.get("emitting_units", 0),
            "occupied_slots": tick.get("occupied_slots", 0),
        }
        for key, value in tick.get("unit_strengths", {}).items():
            row[STRENGTH_PREFIX + key] = value
        for gas_id, value in tick.get("total_buildup", {}).items():
            row[TOTAL_PREFIX + gas_id] = value
        rows.append(row)
    df = pd.DataFrame(rows)
    # Gases that reached nobody on a tick have no entry; that is a zero.
    total_cols = [c for c in df.columns if c.startswith(TOTAL_PREFIX)]
    if total_cols:
        df[total_cols] = df[total_cols].fillna(0.0)
    return df


def load_buildup(path: Path) -> pd.DataFrame:
    """Long table of (tick, neuron_id, gas_id, level) receptor readings."""
    records = []
    for tick in _read_jsonl(Path(path)):
        for neuron_id, levels in tick.get("buildup", {}).items():
            for gas_id, level in levels.items():
                records.append({"tick": tick["tick"], "neuron_id": neuron_id, "gas_id": gas_id, "level": level})
    return pd.DataFrame(records, columns=["tick", "neuron_id", "gas_id", "level"])


def extract_run(run_dir: Path, output_dir: Path):
    """
    Converts a runner output directory into Parquet tables.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    for f in output_dir.glob("*.parquet"):
        f.unlink()

    tick_path = run_dir / "ticks.jsonl"
    if tick_path.exists():
        load_ticks(tick_path).to_parquet(output_dir / "ticks.parquet")
        load_buildup(tick_path).to_parquet(output_dir / "buildup.parquet")
        print(f"Tick tables saved to {output_dir}")
    else:
        pd.DataFrame().to_parquet(output_dir / "ticks.parquet")
        pd.DataFrame().to_parquet(output_dir / "buildup.parquet")

    summary_path = run_dir / "summary.json"
    if summary_path.exists():
        summary = json.loads(summary_path.read_text())
        summary.pop("config", None)
        pd.json_normalize(summary).to_parquet(output_dir / "summary.parquet")


def main():
    parser = argparse.ArgumentParser(description="Extract a GasNet run into Parquet tables.")
    parser.add_argument("run_dir", type=Path, help="Directory written by experiments.runner.")
    parser.add_argument("--output-dir", type=Path, default=Path("analysis/processed"), help="Directory to save the Parquet tables.")
    args = parser.parse_args()

    extract_run(args.run_dir, args.output_dir)

if __name__ == "__main__":
    main()
