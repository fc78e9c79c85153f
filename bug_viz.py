"""Render PNG charts from the files written by bug_summary.py."""

from __future__ import annotations

import os
import sys

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from bug_analytics import AGING_BUCKET_LABELS, TOTAL_LABEL

BAR_CHARTS = [
    ("status_distribution.csv", "Open Bugs by Status", "status_distribution.png"),
    ("priority_distribution.csv", "Open Bugs by Priority", "priority_distribution.png"),
    ("owner_team_distribution.csv", "Open Bugs by Owner Team (Top 10)", "owner_team_distribution.png"),
    ("sub_system_distribution.csv", "Open Bugs by Sub-System (Top 8)", "sub_system_distribution.png"),
    ("bug_classification_distribution.csv", "Open Bugs by Classification", "bug_classification_distribution.png"),
]


def plot_distribution(csv_path: str, title: str, png_path: str) -> bool:
    """Draw a horizontal bar chart of one distribution CSV.

    Returns:
        False if the CSV has no rows and nothing was drawn.
    """
    df = pd.read_csv(csv_path, keep_default_na=False, dtype={"name": str, "color": str})
    if df.empty:
        return False

    colors = [c or "#6b7280" for c in df["color"]]
    plt.figure(figsize=(12, 6))
    plt.barh(df["name"], df["value"], color=colors)
    plt.gca().invert_yaxis()
    plt.title(title, fontsize=14, pad=20)
    plt.xlabel("Open Bugs", fontsize=12)
    plt.grid(True, axis="x", alpha=0.3)
    plt.tight_layout()
    plt.savefig(png_path, dpi=150, bbox_inches="tight")
    plt.close()
    return True


def plot_cumulative_trend(csv_path: str, png_path: str) -> bool:
    df = pd.read_csv(csv_path, keep_default_na=False, dtype={"name": str, "color": str})
    if df.empty:
        return False

    plt.figure(figsize=(15, 8))
    plt.plot(df["name"], df["value"], color="red", linewidth=2, marker="o", label="Open Bugs")
    plt.fill_between(range(len(df)), df["value"], alpha=0.2, color="red")
    plt.title("Cumulative Open Bugs by Month", fontsize=14, pad=20)
    plt.xlabel("Month", fontsize=12)
    plt.ylabel("Open Bugs", fontsize=12)
    plt.grid(True, alpha=0.3)
    plt.legend()
    plt.xticks(rotation=45)
    plt.tight_layout()
    plt.savefig(png_path, dpi=150, bbox_inches="tight")
    plt.close()
    return True


def plot_monthly_trend(csv_path: str, png_path: str) -> bool:
    df = pd.read_csv(csv_path, keep_default_na=False, dtype={"name": str, "color": str})
    if df.empty:
        return False

    plt.figure(figsize=(15, 6))
    plt.bar(df["name"], df["value"], color="#3b82f6", alpha=0.8)
    plt.title("Open Bugs by Created Month", fontsize=14, pad=20)
    plt.xlabel("Month", fontsize=12)
    plt.ylabel("Open Bugs", fontsize=12)
    plt.grid(True, axis="y", alpha=0.3)
    plt.xticks(rotation=45)
    plt.tight_layout()
    plt.savefig(png_path, dpi=150, bbox_inches="tight")
    plt.close()
    return True


def plot_aging_heatmap(csv_path: str, png_path: str) -> bool:
    """Draw the aging-vs-priority matrix, Total row and column excluded."""
    df = pd.read_csv(csv_path)
    df = df[df["priority"] != TOTAL_LABEL].set_index("priority")
    matrix = df[list(AGING_BUCKET_LABELS)]
    if matrix.empty:
        return False

    plt.figure(figsize=(12, 5))
    sns.heatmap(matrix, annot=True, fmt="d", cmap="Reds", cbar_kws={"label": "Open Bugs"})
    plt.title("Aging vs Priority", fontsize=14, pad=20)
    plt.xlabel("Age", fontsize=12)
    plt.ylabel("Priority", fontsize=12)
    plt.tight_layout()
    plt.savefig(png_path, dpi=150, bbox_inches="tight")
    plt.close()
    return True


def render_all(output_dir: str = "bug_analytics") -> list[str]:
    """Render every chart whose source CSV exists in *output_dir*.

    Returns:
        Paths of the PNG files written.
    """
    written = []
    for csv_name, title, png_name in BAR_CHARTS:
        csv_path = os.path.join(output_dir, csv_name)
        png_path = os.path.join(output_dir, png_name)
        if os.path.exists(csv_path) and plot_distribution(csv_path, title, png_path):
            written.append(png_path)

    trend_csv = os.path.join(output_dir, "cumulative_trend.csv")
    trend_png = os.path.join(output_dir, "cumulative_trend.png")
    if os.path.exists(trend_csv) and plot_cumulative_trend(trend_csv, trend_png):
        written.append(trend_png)

    monthly_csv = os.path.join(output_dir, "monthly_trend.csv")
    monthly_png = os.path.join(output_dir, "monthly_trend.png")
    if os.path.exists(monthly_csv) and plot_monthly_trend(monthly_csv, monthly_png):
        written.append(monthly_png)

    aging_csv = os.path.join(output_dir, "aging_matrix.csv")
    aging_png = os.path.join(output_dir, "aging_matrix.png")
    if os.path.exists(aging_csv) and plot_aging_heatmap(aging_csv, aging_png):
        written.append(aging_png)

    return written


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    output_dir = argv[0] if argv else "bug_analytics"
    if not os.path.isdir(output_dir):
        print(f"Error: {output_dir} not found. Run 'python bug_summary.py' first.", file=sys.stderr)
        sys.exit(1)

    written = render_all(output_dir)
    print(f"Saved {len(written)} charts to the '{output_dir}' directory:")
    for path in written:
        print(f"  {os.path.basename(path)}")


if __name__ == "__main__":
    main()
