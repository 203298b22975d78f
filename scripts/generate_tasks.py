"""Extract tasks from daily Chatwork reports and optionally publish them."""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import settings
from src.ingestion.loader import select_report_files
from src.ingestion.pipeline import run_pipeline
from src.notify.chatwork import ChatworkNotifier
from src.pipeline_config import roster_from_settings
from src.reports.writer import write_assignee_files, write_daily_report


def main() -> int:
    parser = argparse.ArgumentParser(description="Extract tasks from daily Chatwork reports")
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("-t", "--today", action="store_true", help="Process today's report (default)")
    scope.add_argument("-a", "--all", action="store_true", help="Process every report")
    scope.add_argument("-d", "--date", help="Process the report for this date, e.g. 2026-01-14")
    parser.add_argument("--log-dir", default=settings.log_dir, help="Directory of daily reports")
    parser.add_argument("--ai", action="store_true", help="Extract tasks with Claude")
    parser.add_argument("--validate", action="store_true", help="Filter tasks through Claude")
    parser.add_argument("--write", action="store_true", help="Write markdown task files")
    parser.add_argument("--output-dir", default=settings.task_output_dir, help="Directory for markdown task files")
    parser.add_argument("--notify", action="store_true", help="Post the task list to Chatwork")
    parser.add_argument(
        "--notify-individual",
        action="store_true",
        help="Mention each assignee with their own tasks and post a deadline reminder",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    roster = roster_from_settings(settings)
    paths = select_report_files(args.log_dir, all_files=args.all, date=args.date)
    if not paths:
        print(f"No report files found in {args.log_dir}")
        return 1

    print(f"Processing {len(paths)} report(s) from {args.log_dir}")
    result = run_pipeline(
        paths,
        roster,
        use_llm=args.ai,
        validate=args.validate,
        api_key=settings.anthropic_api_key,
    )

    if not result.tasks:
        print("No tasks found")
        return 0

    print(f"\nTasks per assignee ({len(result.tasks)} total):")
    for group in result.grouped:
        marker = " *" if group.assignee == roster.operator else ""
        print(f"  {group.assignee}: {len(group.tasks)}{marker}")

    if args.write:
        write_assignee_files(result.grouped, args.output_dir)
        write_daily_report(result.tasks, result.latest_date or "", roster.operator, args.output_dir)

    if args.notify or args.notify_individual:
        with ChatworkNotifier(settings.chatwork_api_token, settings.chatwork_task_room_id) as notifier:
            if args.notify:
                notifier.notify_all_tasks(result.grouped)
                notifier.send_daily_summary(result.grouped, result.latest_date or "")

            if args.notify_individual:
                results = notifier.notify_individual_tasks(result.grouped, roster.account_ids)
                print(f"Notified {sum(results.values())} of {len(results)} assignees")
                notifier.send_deadline_reminder(result.tasks)

    return 0


if __name__ == "__main__":
    sys.exit(main())
