"""Plot data extraction and rendering."""

from __future__ import annotations

import logging
from pathlib import Path

from benchtrail.comparison.resolver import RunSelector
from benchtrail.errors import ExternalToolUnavailable
from benchtrail.models import BenchmarkHistory

logger = logging.getLogger(__name__)

Series = dict[int, list[tuple[int, float]]]


def plot_points(history: BenchmarkHistory, selector: RunSelector) -> Series:
    """Return ``run index -> [(measurement index, real_time), ...]``."""
    if selector.is_all:
        indices = range(len(history))
    else:
        indices = [selector.index]

    return {
        index: [
            (position, measurement.real_time)
            for position, measurement in enumerate(history.run(index).measurements)
        ]
        for index in indices
    }


def render_plot(series: Series, path: Path, title: str, time_unit: str = "ns") -> Path:
    """Draw one line per run into an image file.

    Raises:
        ExternalToolUnavailable: If matplotlib is not installed
    """
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        raise ExternalToolUnavailable("matplotlib") from None

    fig, ax = plt.subplots(figsize=(10, 5), constrained_layout=True)
    for run_index, points in series.items():
        xs = [x for x, _ in points]
        ys = [y for _, y in points]
        ax.plot(xs, ys, marker="o", label=f"Run #{run_index}")
    ax.set_title(title)
    ax.set_xlabel("Measurement")
    ax.set_ylabel(f"Real time ({time_unit})")
    ax.grid(True)
    if series:
        ax.legend()

    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path)
    plt.close(fig)
    logger.info("Wrote plot to %s", path)
    return path
