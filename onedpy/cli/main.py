"""OneDrive upload CLI - Main commands."""
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

app = typer.Typer(
    name="onedpy",
    help="Chunked OneDrive uploads with QuickXorHash verification",
    add_completion=False
)
console = Console()


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def configure_logging(verbose: bool) -> None:
    """Route onedpy logs through rich when --verbose is given."""
    if not verbose:
        return
    from onedpy import setup_logging

    handler = RichHandler(console=console, rich_tracebacks=True, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG)
    setup_logging(logging.DEBUG)


def resolve_config_path(config: Optional[Path]) -> Path:
    from onedpy import default_config_path
    return config or default_config_path()


def quota_table(remote: str, quota) -> Table:
    """One table per remote."""
    formatted = quota.formatted()
    table = Table(title=f"Quota: {remote}")
    table.add_column("Total", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Free", justify="right")
    table.add_column("Trashed", justify="right")
    table.add_column("State")
    table.add_row(
        formatted['total'],
        f"{formatted['used']} ({quota.used_percent:.1f}%)",
        formatted['remaining'],
        formatted['deleted'],
        quota.state
    )
    return table


async def show_quotas(config_path: Path, names: Optional[List[str]] = None) -> bool:
    """Print quota for each remote; returns False if any remote failed."""
    from onedpy import OneDriveClient, OneDriveError, RcloneConfig, RemoteRegistry

    rclone = RcloneConfig.load(config_path)
    all_ok = True
    for name in names or rclone.remote_names():
        try:
            registry = RemoteRegistry.from_config(rclone, names=[name])
            async with OneDriveClient(registry, name) as drive:
                quota = await drive.get_quota()
        except OneDriveError as e:
            console.print(f"[red]Failed to fetch quota for remote '{name}': {e}[/red]")
            all_ok = False
            continue
        console.print(quota_table(name, quota))
    return all_ok


@app.command()
def upload(
    file_path: Optional[Path] = typer.Argument(None, help="Local file to upload"),
    remote: Optional[str] = typer.Option(None, "--remote", "-r", help="Remote folder under the remote's root"),
    remote_name: Optional[str] = typer.Option(None, "--remote-name", "-n", help="Remote file name (default: local name)"),
    remote_config: str = typer.Option("oned", "--remote-config", "-c", help="Remote section in the config file"),
    config: Optional[Path] = typer.Option(None, "--config", help="rclone config file ($ONEDPY_CONFIG)"),
    chunk_size: int = typer.Option(0, "--chunk-size", help="Chunk size in bytes (0 = by file size)"),
    parallel: int = typer.Option(1, "--parallel", "-p", help="Number of parallel chunk uploads"),
    retries: int = typer.Option(3, "--retries", help="Attempts per chunk"),
    retry_delay: float = typer.Option(5.0, "--retry-delay", help="Seconds between chunk attempts"),
    hash_retries: int = typer.Option(5, "--hash-retries", help="Attempts to fetch the remote hash"),
    hash_retry_delay: float = typer.Option(10.0, "--hash-retry-delay", help="Seconds between hash attempts"),
    skip_hash: bool = typer.Option(False, "--skip-hash", help="Skip QuickXorHash verification"),
    show_quota: bool = typer.Option(False, "--show-quota", help="Show quota of all remotes and exit"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Upload a file to OneDrive."""
    from onedpy import IntegrityStatus, OneDriveClient, OneDriveError
    from onedpy.core.upload.models import UploadProgress

    configure_logging(verbose)
    config_path = resolve_config_path(config)

    if show_quota:
        try:
            ok = run_async(show_quotas(config_path))
        except OneDriveError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        if not ok:
            raise typer.Exit(1)
        return

    if file_path is None or remote is None:
        console.print("[red]Error: both FILE and --remote are required[/red]")
        raise typer.Exit(1)

    async def do_upload():
        cancel_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        if sys.platform != 'win32':
            loop.add_signal_handler(signal.SIGINT, cancel_event.set)

        try:
            async with OneDriveClient.from_config_file(config_path, remote_config) as drive:
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    console=console
                ) as progress:
                    task = progress.add_task(f"Uploading {file_path.name}", total=100)

                    def on_progress(p: UploadProgress):
                        progress.update(task, completed=p.percentage)

                    return await drive.upload(
                        file_path,
                        remote,
                        remote_name,
                        chunk_size=chunk_size,
                        parallelism=parallel,
                        max_retries=retries,
                        retry_delay=retry_delay,
                        hash_retries=hash_retries,
                        hash_retry_delay=hash_retry_delay,
                        skip_hash=skip_hash,
                        cancel_event=cancel_event,
                        progress_callback=on_progress
                    )
        finally:
            if sys.platform != 'win32':
                loop.remove_signal_handler(signal.SIGINT)

    try:
        report = run_async(do_upload())
    except (OneDriveError, OSError, ValueError) as e:
        console.print(f"[red]Upload failed: {e}[/red]")
        raise typer.Exit(1)

    result = report.result
    console.print(f"[green]Uploaded:[/green] {result.name or file_path.name}")
    console.print(f"File ID: {result.item_id}")
    console.print(f"Remote path: {result.remote_path}")
    console.print(f"Size: {result.file_size:,} bytes in {result.chunk_count} chunks")
    if report.download_url:
        console.print(f"Download URL: {report.download_url}")

    verification = report.verification
    if verification.status is IntegrityStatus.VERIFIED:
        console.print(f"[green]Integrity verified:[/green] QuickXorHash {verification.local_hash}")
    elif verification.status is IntegrityStatus.SKIPPED:
        console.print("[yellow]Integrity check skipped[/yellow]")
    elif verification.status is IntegrityStatus.MISMATCH:
        console.print("[red]Integrity check failed: QuickXorHash mismatch[/red]")
        console.print(f"Local QuickXorHash: {verification.local_hash}")
        console.print(f"Remote QuickXorHash: {verification.remote_hash}")
    else:
        console.print(f"[yellow]Integrity unverified: {verification.detail}[/yellow]")


@app.command()
def quota(
    remote_config: Optional[str] = typer.Option(None, "--remote-config", "-c", help="Remote section (default: all)"),
    config: Optional[Path] = typer.Option(None, "--config", help="rclone config file ($ONEDPY_CONFIG)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Show drive quota."""
    from onedpy import OneDriveError

    configure_logging(verbose)
    names = [remote_config] if remote_config else None
    try:
        ok = run_async(show_quotas(resolve_config_path(config), names))
    except OneDriveError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    if not ok:
        raise typer.Exit(1)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
