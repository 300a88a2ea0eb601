"""Main CLI entry point for the Creator Studio pipeline.

Usage:
    python -m creator_studio.cli list                              # List all projects
    python -m creator_studio.cli create <project_id>               # Create new project
    python -m creator_studio.cli status <project>                  # Show stage table
    python -m creator_studio.cli chat <project> "<message>"        # Talk to the script agent
    python -m creator_studio.cli run <project> <stage>             # Run one stage
    python -m creator_studio.cli approve <project> <stage>         # Approve a stage
    python -m creator_studio.cli approve <project> images --item ID
    python -m creator_studio.cli reject <project> <stage>          # Reject (clear) a stage
    python -m creator_studio.cli regenerate <project> <stage> <id> # Redo one image/video
    python -m creator_studio.cli export <project> --format zip     # Bundle approved files
    python -m creator_studio.cli voices                            # List narration voices

Pipeline workflow:
    1. chat          - Iterate with the script agent until it writes a script
    2. narration     - Synthesize the narration audio (needs approved script)
    3. image_prompts - One prompt per scene (needs approved script)
    4. images        - One image per prompt (needs approved prompts)
    5. videos        - Animate approved images (needs approved images)
    6. export        - Zip approved videos, images and narration
"""

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ..config import Config, load_config

console = Console()

STAGE_CHOICES = ["script", "narration", "image_prompts", "images", "videos", "export"]

NOTICE_STYLES = {"success": "green", "error": "red", "info": "cyan"}


def _load_config(args: argparse.Namespace) -> Config:
    config = load_config(args.config)
    if args.mock:
        config = config.use_mock_providers()
    return config


def _projects_dir(args: argparse.Namespace, config: Config) -> Path:
    return Path(args.projects_dir or config.paths.projects_dir)


def _print_notice(level: str, message: str) -> None:
    style = NOTICE_STYLES.get(level, "white")
    console.print(f"[{style}]{level}:[/{style}] {message}")


def _open_studio(args: argparse.Namespace):
    """Open the project named in args, or print an error and return None."""
    from ..studio import Studio

    config = _load_config(args)
    try:
        return Studio.open(
            args.project,
            config,
            projects_dir=_projects_dir(args, config),
            notify=_print_notice,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def cmd_list(args: argparse.Namespace) -> int:
    """List all available projects."""
    from ..studio import list_projects

    projects_dir = _projects_dir(args, _load_config(args))
    projects = list_projects(projects_dir)

    if not projects:
        print(f"No projects found in {projects_dir}/")
        return 0

    print(f"Found {len(projects)} project(s):\n")
    for project in projects:
        print(f"  {project.id}")
        print(f"    Title: {project.title}")
        print(f"    Path: {project.root_dir}")
        print()

    return 0


def cmd_create(args: argparse.Namespace) -> int:
    """Create a new project."""
    from ..studio import create_project

    try:
        project = create_project(
            project_id=args.project_id,
            title=args.title or args.project_id.replace("-", " ").title(),
            projects_dir=_projects_dir(args, _load_config(args)),
            description=args.description or "",
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Created project: {project.id}")
    print(f"Path: {project.root_dir}")
    print()
    print("Next steps:")
    print(f'  1. Run: python -m creator_studio.cli chat {project.id} "<what the video is about>"')
    print(f"  2. Run: python -m creator_studio.cli approve {project.id} script")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show every stage's status, approval and blockers."""
    studio = _open_studio(args)
    if studio is None:
        return 1

    table = Table(title=f"{studio.project.title} ({studio.project.id})")
    table.add_column("Stage", style="cyan")
    table.add_column("Status")
    table.add_column("Approved", justify="center")
    table.add_column("Blocked by")
    table.add_column("Error", style="red")

    for stage, info in studio.status().items():
        table.add_row(
            stage,
            info["status"],
            "yes" if info["approved"] else "",
            ", ".join(info["blocking"]),
            info["error"] or "",
        )

    console.print(table)
    return 0


def cmd_chat(args: argparse.Namespace) -> int:
    """Send one message to the script agent and print the reply."""
    studio = _open_studio(args)
    if studio is None:
        return 1

    state = asyncio.run(studio.chat(args.message))
    if state.error:
        print(f"Error: {state.error}", file=sys.stderr)
        return 1

    messages = state.artifact.get("messages", [])
    if messages:
        console.print(messages[-1]["content"], markup=False, highlight=False)
    if state.artifact.get("text"):
        console.print(f"\n[bold]Script ready.[/bold] Approve with: approve {args.project} script")
    return 0


def _run_options(args: argparse.Namespace) -> dict:
    options = {
        "voice_id": args.voice,
        "model": args.model,
        "aspect_ratio": args.aspect_ratio,
        "duration": args.duration,
    }
    return {key: value for key, value in options.items() if value is not None}


def cmd_run(args: argparse.Namespace) -> int:
    """Run one stage."""
    from ..studio import Stage, StageBlockedError

    studio = _open_studio(args)
    if studio is None:
        return 1

    stage = Stage(args.stage)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Running {stage.value}...", total=None)

        def on_progress(fraction: float, message: str) -> None:
            progress.update(task, description=f"{message} ({fraction:.0%})")

        try:
            state = asyncio.run(studio.run_stage(stage, progress=on_progress, **_run_options(args)))
        except StageBlockedError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    if state.error:
        print(f"Error: {state.error}", file=sys.stderr)
        return 1

    print(f"Stage {stage.value}: {state.status.value}")
    for item in state.artifact.get("items", []):
        mark = "ok " if item["status"] == "completed" else "ERR"
        print(f"  [{mark}] {item['id']}  {item.get('url') or item.get('error') or ''}")
    return 0


def cmd_approve(args: argparse.Namespace) -> int:
    """Approve a stage or a single item."""
    from ..studio import StageBlockedError

    studio = _open_studio(args)
    if studio is None:
        return 1

    try:
        if args.item:
            studio.approve_item(args.stage, args.item)
            print(f"Approved {args.stage} item {args.item}")
        else:
            studio.approve(args.stage)
            print(f"Approved stage {args.stage}")
    except (StageBlockedError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_reject(args: argparse.Namespace) -> int:
    """Reject a stage (clearing it) or a single item."""
    studio = _open_studio(args)
    if studio is None:
        return 1

    try:
        if args.item:
            studio.reject_item(args.stage, args.item)
            print(f"Rejected {args.stage} item {args.item}")
        else:
            studio.reject(args.stage)
            print(f"Rejected stage {args.stage}; it is back to pending")
    except (ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_regenerate(args: argparse.Namespace) -> int:
    """Regenerate a single image or video."""
    from ..studio import StageBlockedError

    studio = _open_studio(args)
    if studio is None:
        return 1

    try:
        item = asyncio.run(studio.regenerate_item(args.stage, args.item_id))
    except (StageBlockedError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if item["status"] == "error":
        print(f"Error: {item['error']}", file=sys.stderr)
        return 1
    print(f"Regenerated {args.item_id}: {item['url']}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Bundle approved artifacts."""
    from ..studio import StageBlockedError

    studio = _open_studio(args)
    if studio is None:
        return 1

    try:
        state = asyncio.run(studio.export(format=args.format, include_narration=not args.no_narration))
    except StageBlockedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if state.error:
        print(f"Error: {state.error}", file=sys.stderr)
        return 1

    manifest = state.artifact
    print(f"Exported {len(manifest['files'])} file(s) to {manifest['archive_path']}")
    for failed in manifest["failed"]:
        print(f"  skipped {failed['name']}: {failed['error']}")
    return 0


def cmd_voices(args: argparse.Namespace) -> int:
    """List available narration voices."""
    from ..providers import ProviderSet
    from ..studio import fetch_voices

    voices = asyncio.run(fetch_voices(ProviderSet(_load_config(args))))

    table = Table(title="Voices")
    table.add_column("Voice ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category")
    for voice in voices:
        table.add_row(voice.voice_id, voice.name, voice.category or "")
    console.print(table)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Creator Studio Pipeline CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--projects-dir",
        default=None,
        help="Path to projects directory (default: paths.projects_dir from config)",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use offline mock providers (for testing)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list command
    list_parser = subparsers.add_parser("list", help="List all projects")
    list_parser.set_defaults(func=cmd_list)

    # create command
    create_parser = subparsers.add_parser("create", help="Create a new project")
    create_parser.add_argument("project_id", help="Project ID (used as directory name)")
    create_parser.add_argument("--title", help="Project title")
    create_parser.add_argument("--description", help="Project description")
    create_parser.set_defaults(func=cmd_create)

    # status command
    status_parser = subparsers.add_parser("status", help="Show stage status")
    status_parser.add_argument("project", help="Project ID")
    status_parser.set_defaults(func=cmd_status)

    # chat command
    chat_parser = subparsers.add_parser("chat", help="Talk to the script agent")
    chat_parser.add_argument("project", help="Project ID")
    chat_parser.add_argument("message", help="Message for the agent")
    chat_parser.set_defaults(func=cmd_chat)

    # run command
    run_parser = subparsers.add_parser("run", help="Run a pipeline stage")
    run_parser.add_argument("project", help="Project ID")
    run_parser.add_argument("stage", choices=STAGE_CHOICES[1:-1], help="Stage to run")
    run_parser.add_argument("--voice", help="Voice ID (narration)")
    run_parser.add_argument("--model", help="Model override (images, videos)")
    run_parser.add_argument(
        "--aspect-ratio",
        choices=["9:16", "16:9", "1:1"],
        help="Aspect ratio (images)",
    )
    run_parser.add_argument("--duration", choices=["5", "10"], help="Clip seconds (videos)")
    run_parser.set_defaults(func=cmd_run)

    # approve command
    approve_parser = subparsers.add_parser("approve", help="Approve a stage or item")
    approve_parser.add_argument("project", help="Project ID")
    approve_parser.add_argument("stage", choices=STAGE_CHOICES, help="Stage to approve")
    approve_parser.add_argument("--item", help="Approve only this image/video ID")
    approve_parser.set_defaults(func=cmd_approve)

    # reject command
    reject_parser = subparsers.add_parser("reject", help="Reject a stage or item")
    reject_parser.add_argument("project", help="Project ID")
    reject_parser.add_argument("stage", choices=STAGE_CHOICES, help="Stage to reject")
    reject_parser.add_argument("--item", help="Reject only this image/video ID")
    reject_parser.set_defaults(func=cmd_reject)

    # regenerate command
    regenerate_parser = subparsers.add_parser("regenerate", help="Regenerate one image or video")
    regenerate_parser.add_argument("project", help="Project ID")
    regenerate_parser.add_argument("stage", choices=["images", "videos"], help="Item stage")
    regenerate_parser.add_argument("item_id", help="Item ID")
    regenerate_parser.set_defaults(func=cmd_regenerate)

    # export command
    export_parser = subparsers.add_parser("export", help="Export approved artifacts")
    export_parser.add_argument("project", help="Project ID")
    export_parser.add_argument(
        "--format",
        choices=["zip", "individual"],
        default="zip",
        help="Single zip archive or loose files (default: zip)",
    )
    export_parser.add_argument(
        "--no-narration",
        action="store_true",
        help="Leave the narration audio out",
    )
    export_parser.set_defaults(func=cmd_export)

    # voices command
    voices_parser = subparsers.add_parser("voices", help="List narration voices")
    voices_parser.set_defaults(func=cmd_voices)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
