"""
GanttCPM Scheduling Engine
==========================

Command line entry point: runs the bundled example project.
"""

import argparse
import json
import sys
from datetime import datetime

from ganttcpm.config import EngineConfig
from ganttcpm.domain.calendar import WorkingCalendar
from ganttcpm.domain.errors import SchedulingError
from ganttcpm.examples.simple_project import create_sample_project, print_report
from ganttcpm.logger import configure_logging


def build_calendar(kind, config):
    if kind == "none":
        return None
    factory = {
        "business": WorkingCalendar.business_days,
        "standard": WorkingCalendar.standard,
    }[kind]
    return factory(search_horizon_days=config.calendar_search_horizon_days)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Critical Path Method scheduling")
    parser.add_argument(
        "--example", action="store_true", help="Run the example project"
    )
    parser.add_argument(
        "--start",
        type=lambda value: datetime.strptime(value, "%Y-%m-%d"),
        default=datetime(2025, 4, 1),
        help="Project start date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--calendar",
        choices=["none", "business", "standard"],
        default="business",
        help="Working calendar used for the auto-scheduled dates",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if not args.example:
        parser.print_help()
        return 1

    config = EngineConfig.from_env()
    try:
        calendar = build_calendar(args.calendar, config)
        print_report(create_sample_project(), args.start, calendar)
    except SchedulingError as exc:
        print(json.dumps(exc.to_dict(), default=str), file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
