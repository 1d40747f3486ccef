"""ytorder CLI - keep YouTube playlists sorted with as few moves as possible."""

import json
from typing import Any

import fire
from googleapiclient.discovery import Resource
from rich.console import Console
from rich.table import Table

from ytorder import __version__, api, guard, quota, yaml_ops
from ytorder.config import Config, get_config_dir, load_config
from ytorder.executor import ExecutionMode
from ytorder.logging import configure_logging, logger
from ytorder.models import extract_playlist_id
from ytorder.reorder import fetch_snapshot, load_or_fetch, remove_duplicates, reorder_playlist
from ytorder.snapshot import export_csv

console = Console()


class YtorderCLI:
    """Sort YouTube playlists with the fewest playlistItems.update calls.

    Examples:
        ytorder fetch PLxxx
        ytorder sort PLxxx --dry-run
        ytorder sort PLxxx --order-file desired.yaml
        ytorder --throttle 500 sort PLxxx --sort-by title
        ytorder --log-file ~/ytorder.log sort PLxxx
    """

    def __init__(
        self,
        verbose: bool = False,
        json_output: bool = False,
        throttle: int | None = None,
        log_file: str | None = None,
    ) -> None:
        """Initialize CLI with options.

        Args:
            verbose: Enable debug logging
            json_output: Output results as JSON instead of human-readable text
            throttle: Milliseconds between API write calls (default from config, 0 to disable)
            log_file: Also append a full DEBUG log to this file
        """
        configure_logging(verbose, log_file)
        self._json = json_output
        self._config: Config = load_config()
        self._client: Resource | None = None
        guard.set_throttle_delay(throttle if throttle is not None else self._config.reorder.throttle_ms)
        quota.set_quota_limit(self._config.reorder.quota_limit)
        logger.debug("ytorder initialized with verbose={}, json={}", verbose, json_output)

    def _output(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Output result as JSON or print nothing (human output already printed)."""
        if self._json:
            print(json.dumps(data, indent=2))
        return data if self._json else None

    def _get_client(self) -> Resource:
        if self._client is None:
            self._client = api.get_youtube_client(self._config)
        return self._client

    def _guard(self) -> guard.RemoteGuard:
        return guard.RemoteGuard(max_attempts=self._config.reorder.max_attempts)

    def version(self) -> None:
        """Show ytorder version."""
        if self._json:
            self._output({"version": __version__})
        else:
            console.print(f"ytorder {__version__}")

    def config(self) -> dict[str, Any] | None:
        """Show configuration path and effective reorder settings.

        Example:
            ytorder config
        """
        config_path = get_config_dir() / "config.toml"
        data: dict[str, Any] = {
            "config_path": str(config_path),
            "config_exists": config_path.exists(),
            "oauth_configured": self._config.oauth is not None,
            "reorder": self._config.reorder.model_dump(),
        }
        if self._json:
            return self._output(data)

        console.print(f"[bold]Config path:[/bold] {config_path}")
        if not config_path.exists():
            console.print("[yellow]No config file; using defaults[/yellow]")
        if self._config.oauth is None:
            console.print("[yellow]No \\[oauth] section; live commands will fail[/yellow]")
        for key, value in data["reorder"].items():
            console.print(f"  {key} = {value}")
        return None

    def fetch(self, url_or_id: str) -> dict[str, Any] | None:
        """Fetch a playlist from YouTube and save it as the local snapshot.

        Args:
            url_or_id: Playlist URL or ID

        Example:
            ytorder fetch "https://youtube.com/playlist?list=PLxxx"
        """
        playlist_id = extract_playlist_id(url_or_id)
        snapshot = fetch_snapshot(self._get_client(), playlist_id)
        if self._json:
            return self._output(snapshot.to_dict())
        console.print(f"[green]Saved snapshot of '{snapshot.title}' ({len(snapshot.items)} items)[/green]")
        return None

    def sort(
        self,
        url_or_id: str,
        sort_by: str | None = None,
        order_file: str | None = None,
        planner: str | None = None,
        dry_run: bool = False,
        refresh: bool = False,
    ) -> dict[str, Any] | None:
        """Sort a playlist by date or title, or into the order given in a YAML file.

        Only the moves still needed are planned, so re-running after a quota
        halt continues where the last run stopped. Exits with status 1 when
        the run halts on quota.

        Args:
            url_or_id: Playlist URL or ID
            sort_by: "date" (recording date, else publish date) or "title"
            order_file: YAML file with the desired order (overrides sort_by)
            planner: "minimal" (default) or "naive"
            dry_run: Show the moves without calling the API
            refresh: Re-fetch the playlist instead of using the snapshot

        Example:
            ytorder sort PLxxx --dry-run
            ytorder sort PLxxx --order-file desired.yaml
        """
        playlist_id = extract_playlist_id(url_or_id)
        settings = self._config.reorder
        mode = ExecutionMode.DRY_RUN if dry_run else ExecutionMode.LIVE

        client = None if dry_run and not refresh else self._get_client()
        snapshot = load_or_fetch(playlist_id, client, refresh=refresh)

        desired = None
        if order_file:
            file_playlist = yaml_ops.playlist_from_yaml(order_file)
            if file_playlist and file_playlist != playlist_id:
                logger.warning("{} was written for playlist {}", order_file, file_playlist)
            desired = yaml_ops.load_desired_order(order_file)

        outcome = reorder_playlist(
            snapshot,
            desired,
            sort_by=sort_by or settings.sort_by,
            planner=planner or settings.planner,
            mode=mode,
            mover=api.YouTubeMover(client, playlist_id) if client is not None else None,
            guard=self._guard(),
        )
        result = outcome.result

        estimate = quota.estimate_reorder_cost(len(outcome.plan))
        data = {
            **outcome.to_dict(),
            "quota_estimate": estimate.breakdown(),
            "quota": quota.get_quota_summary(),
        }
        if self._json:
            self._output(data)
        else:
            if dry_run and outcome.plan:
                console.print(quota.format_quota_warning(estimate))
                affordable, message = quota.can_afford_operation(estimate)
                console.print(message if affordable else f"[yellow]{message}[/yellow]")
            self._print_summary(result.summary())
            warning = quota.get_tracker().check_and_warn()
            if warning:
                console.print(f"[yellow]{warning}[/yellow]")

        if result.halted:
            logger.error(
                "Halted on quota. Resets in {}; re-run the same command to continue.",
                quota.get_time_until_reset(),
            )
            raise SystemExit(1)
        return data if self._json else None

    def dedup(
        self, url_or_id: str, dry_run: bool = False, refresh: bool = False
    ) -> dict[str, Any] | None:
        """Remove repeated videos from a playlist, keeping the first occurrence.

        Args:
            url_or_id: Playlist URL or ID
            dry_run: List duplicates without removing them
            refresh: Re-fetch the playlist instead of using the snapshot

        Example:
            ytorder dedup PLxxx --dry-run
        """
        playlist_id = extract_playlist_id(url_or_id)
        client = None if dry_run and not refresh else self._get_client()
        snapshot = load_or_fetch(playlist_id, client, refresh=refresh)

        remover = None
        if not dry_run and client is not None:
            live_client = client

            def remover(handle: str) -> None:
                api.remove_playlist_item(live_client, handle)

        result = remove_duplicates(snapshot, remover=remover, guard=self._guard())
        data = {
            "playlist_id": playlist_id,
            "dry_run": dry_run,
            "duplicates": [item.to_dict() for item in result.duplicates],
            "removed": len(result.removed),
            "failed": len(result.failed),
            "halted": result.halted,
        }
        if self._json:
            self._output(data)
        elif not result.duplicates:
            console.print("[green]No duplicates[/green]")
        else:
            for item in result.duplicates:
                console.print(f"  {item.position}: {item.id} {item.title}")
            verb = "Found" if dry_run else "Removed"
            count = len(result.duplicates) if dry_run else len(result.removed)
            console.print(f"{verb} {count} duplicate(s)")

        if result.halted:
            raise SystemExit(1)
        return data if self._json else None

    def export(self, url_or_id: str, output: str, refresh: bool = False) -> str | None:
        """Export a playlist's current order to CSV or YAML (by file extension).

        Args:
            url_or_id: Playlist URL or ID
            output: Output path ending in .csv, .yaml or .yml
            refresh: Re-fetch the playlist instead of using the snapshot

        Example:
            ytorder export PLxxx before.csv
            ytorder export PLxxx desired.yaml
        """
        playlist_id = extract_playlist_id(url_or_id)
        client = self._get_client() if refresh else None
        snapshot = load_or_fetch(playlist_id, client, refresh=refresh)

        if output.endswith((".yaml", ".yml")):
            yaml_ops.save_order_yaml(output, snapshot)
        elif output.endswith(".csv"):
            export_csv(snapshot.items, output)
        else:
            raise ValueError(f"Unsupported export format: {output} (use .csv or .yaml)")

        if self._json:
            self._output({"output": output, "items": len(snapshot.items)})
        else:
            console.print(f"[green]Saved to: {output}[/green]")
        return output

    def _print_summary(self, summary: dict[str, Any]) -> None:
        table = Table(title=f"Reorder ({summary['mode']})")
        table.add_column("Planned", justify="right")
        table.add_column("Attempted", justify="right")
        table.add_column("Applied", justify="right", style="green")
        table.add_column("Skipped", justify="right", style="yellow")
        table.add_column("Failed", justify="right", style="red")
        table.add_column("Halted", justify="right", style="red")
        table.add_column("Not attempted", justify="right")
        table.add_row(
            str(summary["planned"]),
            str(summary["attempted"]),
            str(summary["applied"]),
            str(summary["skipped"]),
            str(summary["failed"]),
            str(summary["halted"]),
            str(summary["not_attempted"]),
        )
        console.print(table)
        console.print("[bold]Final order:[/bold]")
        for position, item_id in enumerate(summary["final_order"]):
            console.print(f"  {position:>4}  {item_id}")


def main() -> None:
    """CLI entry point."""
    fire.Fire(YtorderCLI)


if __name__ == "__main__":
    main()
