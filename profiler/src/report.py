"""Command line report for saved CPU profiles.

    profile-report cpu_profile.json [--top N]
"""

import argparse
import sys
from typing import List, Optional

import structlog

from shared.logging import configure_logging

from .analyzer import Hotspot, ProfileAnalyzer, ProfileSummary
from .exceptions import ProfileReadError

logger = structlog.get_logger(__name__)

ROW_FORMAT = "%-8s %-7s %-7s %-8s %-7s  %s"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def format_value(value: float, unit: str) -> str:
    if unit == "seconds":
        return f"{value:.2f}s"
    return f"{value:.0f}"


def render_report(summary: ProfileSummary, hotspots: List[Hotspot]) -> str:
    """Render the summary and hotspot table as plain text."""
    unit = summary.value_unit
    lines = [
        "Profile Summary:",
        "----------------",
        f"Total: {format_value(summary.total_value, unit)}",
        f"Samples: {summary.sample_count}",
        f"Functions: {summary.function_count}",
        "",
        "Sample Types:",
        "-------------",
    ]
    lines.extend(f"- {name:<15} (unit: {type_unit})" for name, type_unit in summary.sample_types)

    lines.extend([
        "",
        f"Top {len(hotspots)} Hotspots:",
        "---------------",
        ROW_FORMAT % ("flat", "flat%", "sum%", "cum", "cum%", "Function"),
        ROW_FORMAT % ("--------", "-------", "-------", "--------", "-------", "----------"),
    ])
    for spot in hotspots:
        lines.append(
            ROW_FORMAT % (
                format_value(spot.flat, unit),
                f"{spot.flat_percent:.2f}%",
                f"{spot.sum_percent:.2f}%",
                format_value(spot.cum, unit),
                f"{spot.cum_percent:.2f}%",
                spot.function,
            )
        )

    return "\n".join(lines) + "\n"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="profile-report",
        description="Summarize a saved CPU profile and list its hotspots.",
    )
    parser.add_argument("profile", help="Path to a saved CPU profile (e.g. cpu_profile.json)")
    parser.add_argument("--top", type=int, default=10, help="Number of hotspots to list")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level for diagnostics",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_level=args.log_level, json_logs=False, service_name="profile-report")

    if args.top <= 0:
        logger.error("invalid_top", top=args.top)
        return 1

    try:
        analyzer = ProfileAnalyzer().read_profile(args.profile)
    except ProfileReadError as e:
        logger.error("profile_read_failed", path=args.profile, error=str(e))
        return 1

    sys.stdout.write(render_report(analyzer.summary(), analyzer.analyze_hotspots(args.top)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
