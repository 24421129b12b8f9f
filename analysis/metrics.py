
from pathlib import Path
from typing import Dict

import numpy as np
import pandas as pd

from analysis.extract import STRENGTH_PREFIX

def strength_stats(ticks_df: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    """Per-unit emission strength statistics."""
    cols = [c for c in ticks_df.columns if c.startswith(STRENGTH_PREFIX)]
    stats = {}
    for col in cols:
        series = ticks_df[col].dropna()
        if series.empty:
            continue
        stats[col[len(STRENGTH_PREFIX):]] = {
            "mean": float(series.mean()),
            "min": float(series.min()),
            "max": float(series.max()),
            "ramped_fraction": float((series > series.min()).mean()),
        }
    return stats

def buildup_stats(buildup_df: pd.DataFrame) -> pd.DataFrame:
    """Receptor level distribution per gas."""
    if buildup_df.empty or "gas_id" not in buildup_df.columns:
        return pd.DataFrame()
    grouped = buildup_df.groupby("gas_id")["level"]
    return pd.DataFrame({
        "readings": grouped.size(),
        "receivers": buildup_df.groupby("gas_id")["neuron_id"].nunique(),
        "mean": grouped.mean(),
        "p95": grouped.quantile(0.95),
        "max": grouped.max(),
    })

def activity_rate(ticks_df: pd.DataFrame, n_neurons: int) -> float:
    """Mean fraction of neurons firing per tick."""
    if ticks_df.empty or "n_active" not in ticks_df.columns or n_neurons <= 0:
        return 0.0
    return float(np.mean(ticks_df["n_active"].to_numpy(dtype=np.float64) / n_neurons))

def run_all_metrics(processed_dir: str) -> Dict:
    """
    Runs all metric calculations over an extract_run() output directory.
    """
    processed = Path(processed_dir)
    ticks_path = processed / "ticks.parquet"
    buildup_path = processed / "buildup.parquet"
    summary_path = processed / "summary.parquet"

    ticks_df = pd.read_parquet(ticks_path) if ticks_path.exists() else pd.DataFrame()
    buildup_df = pd.read_parquet(buildup_path) if buildup_path.exists() else pd.DataFrame()
    summary_df = pd.read_parquet(summary_path) if summary_path.exists() else pd.DataFrame()
    n_neurons = int(summary_df["neurons"].iloc[0]) if "neurons" in summary_df.columns else 0

    return {
        "strength_stats": strength_stats(ticks_df),
        "buildup_stats": buildup_stats(buildup_df).to_dict(),
        "activity_rate": activity_rate(ticks_df, n_neurons),
    }
