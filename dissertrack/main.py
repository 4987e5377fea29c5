#!/usr/bin/env python3
"""
DisserTrack CLI - Main Entry Point

Usage:
    dissertrack slots --student ID [--project ID]
    dissertrack meetings --role faculty --user ID [--refresh]
    dissertrack grade 95 90 92 88 91
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dissertrack.core.exceptions import DissertrackError
from dissertrack.schemas.evaluation import Evaluation
from dissertrack.schemas.meeting import Meeting, MeetingStatus
from dissertrack.schemas.user import User, UserRole
from dissertrack.services.api_client import DissertrackAPIClient
from dissertrack.services.meeting_service import MeetingService


STATUS_STYLES = {
    MeetingStatus.SCHEDULED: "cyan",
    MeetingStatus.RESCHEDULED: "yellow",
    MeetingStatus.COMPLETED: "green",
    MeetingStatus.CANCELLED: "red",
    MeetingStatus.REJECTED: "red",
    MeetingStatus.NOT_CONDUCTED: "dim",
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="dissertrack",
        description="DisserTrack - dissertation meeting tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dissertrack slots --student s-101                 Four meeting slots of a student
  dissertrack meetings --role faculty --user f-7    Meetings of a guide
  dissertrack meetings --role hod --user h-1 --refresh
  dissertrack grade 80 80 80 80 80                  Average and letter grade

Configuration comes from the environment or a .env file
(API_BASE_URL, API_TOKEN, REQUEST_TIMEOUT, ...).
        """
    )
    parser.add_argument("--base-url", help="Override API_BASE_URL")
    parser.add_argument("--token", help="Override API_TOKEN")

    subparsers = parser.add_subparsers(dest="command")

    slots_parser = subparsers.add_parser("slots", help="Show a student's four meeting slots")
    slots_parser.add_argument("--student", required=True, help="Student id")
    slots_parser.add_argument("--project", help="Only meetings of this project")
    slots_parser.add_argument("--refresh", action="store_true", help="Bypass the meeting cache")

    meetings_parser = subparsers.add_parser("meetings", help="List meetings relevant to a user")
    meetings_parser.add_argument("--role", required=True, choices=[r.value for r in UserRole])
    meetings_parser.add_argument("--user", required=True, help="User id")
    meetings_parser.add_argument("--refresh", action="store_true", help="Bypass the meeting cache")

    grade_parser = subparsers.add_parser("grade", help="Compute an evaluation grade")
    grade_parser.add_argument(
        "scores",
        nargs=5,
        type=int,
        metavar="SCORE",
        help="presentation content research innovation implementation (0-100)",
    )

    return parser


def _format_date(meeting: Meeting) -> str:
    if meeting.scheduled_date is None:
        return "-"
    return meeting.scheduled_date.strftime("%Y-%m-%d %H:%M")


def render_meetings(console: Console, meetings: List[Meeting], title: str) -> None:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Student")
    table.add_column("Guide")
    table.add_column("Date")
    table.add_column("Status", no_wrap=True)

    for meeting in meetings:
        style = STATUS_STYLES.get(meeting.status, "")
        table.add_row(
            str(meeting.meeting_number or "-"),
            meeting.title or ("Not scheduled" if meeting.is_placeholder else "-"),
            meeting.student_name or meeting.student_id or "-",
            meeting.faculty_name or meeting.faculty_id or "-",
            _format_date(meeting),
            f"[{style}]{meeting.status.value}[/{style}]" if style else meeting.status.value,
        )
    console.print(table)


def render_grade(console: Console, evaluation: Evaluation) -> None:
    table = Table(title="Evaluation")
    table.add_column("Criterion")
    table.add_column("Score", justify="right")
    for label, score in zip(
        ("Presentation", "Content", "Research", "Innovation", "Implementation"),
        evaluation.scores,
    ):
        table.add_row(label, str(score))
    table.add_row("[bold]Total[/bold]", str(evaluation.total))
    table.add_row("[bold]Average[/bold]", f"{evaluation.average:.1f}")
    console.print(table)
    console.print(f"Grade: [bold]{evaluation.grade}[/bold] ({evaluation.grade_description})")


async def _run_slots(args, console: Console) -> None:
    user = User(id=args.student, role=UserRole.STUDENT)
    async with DissertrackAPIClient(base_url=args.base_url, token=args.token) as api:
        service = MeetingService(api)
        slots = await service.get_slots(user, args.student, project_id=args.project, force_refresh=args.refresh)
        render_meetings(console, slots, f"Meetings of {args.student}")
        console.print(f"[dim]source: {service.resolver.last_source or 'none'}[/dim]")


async def _run_meetings(args, console: Console) -> None:
    user = User(id=args.user, role=UserRole(args.role))
    async with DissertrackAPIClient(base_url=args.base_url, token=args.token) as api:
        service = MeetingService(api)
        meetings = await service.list_meetings(user, force_refresh=args.refresh)
        if not meetings:
            console.print("[yellow]No meetings found[/yellow]")
            return
        render_meetings(console, meetings, f"Meetings for {args.role} {args.user}")
        console.print(f"[dim]source: {service.resolver.last_source}[/dim]")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)
    console = Console()

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "grade":
            render_grade(console, Evaluation(
                presentation_score=args.scores[0],
                content_score=args.scores[1],
                research_score=args.scores[2],
                innovation_score=args.scores[3],
                implementation_score=args.scores[4],
            ))
        elif args.command == "slots":
            asyncio.run(_run_slots(args, console))
        elif args.command == "meetings":
            asyncio.run(_run_meetings(args, console))
    except DissertrackError as e:
        console.print(f"\n[red]✗ {escape(e.message)}[/red] [dim]({e.code})[/dim]")
        return 2
    except ValueError as e:
        console.print(f"\n[red]✗ Invalid input: {escape(str(e))}[/red]")
        return 2
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
