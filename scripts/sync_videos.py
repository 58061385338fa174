#!/usr/bin/env python3
"""
Maintenance script to reconcile lesson videos with the streaming provider.

Covers the gaps webhooks can leave behind: deliveries that never arrived,
tickets that were issued but never used, and provider assets whose record
could not be written.

Usage:
    python -m scripts.sync_videos [--sync] [--stale] [--orphans] [--dry-run]

Options:
    --sync      Pull status for every queued/in-progress video and reconcile it
    --stale     List queued videos whose upload ticket expired unused
    --orphans   List provider assets that have no video record
    --dry-run   With --sync, show what would change without writing

With no option, all three checks run.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass

from src.application.services.post_commit import build_post_commit_pipeline
from src.application.services.reconciler import StatusReconciler
from src.application.services.video_store import VideoRecordStore
from src.application.services.videos import VideoManagementService
from src.commons.settings.loader import get_settings
from src.commons.settings.models import Settings
from src.commons.telemetry import configure_logging
from src.domain.exceptions import DomainException
from src.domain.models import VideoStatus
from src.infrastructure.factory import InfrastructureFactory


@dataclass
class SyncArgs:
    """Parsed command line arguments."""

    sync: bool
    stale: bool
    orphans: bool
    dry_run: bool


def parse_args(argv: list[str] | None = None) -> SyncArgs:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Reconcile lesson videos with the streaming provider",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--sync", action="store_true", help="Reconcile processing videos"
    )
    parser.add_argument(
        "--stale", action="store_true", help="List stale queued uploads"
    )
    parser.add_argument(
        "--orphans", action="store_true", help="List provider assets without records"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what --sync would change without writing",
    )

    args = parser.parse_args(argv)
    run_all = not (args.sync or args.stale or args.orphans)

    return SyncArgs(
        sync=run_all or args.sync,
        stale=run_all or args.stale,
        orphans=run_all or args.orphans,
        dry_run=args.dry_run,
    )


def build_service(
    factory: InfrastructureFactory, settings: Settings
) -> tuple[VideoRecordStore, VideoManagementService]:
    """Wire the management service the same way the API does."""
    store = VideoRecordStore(
        document_db=factory.get_document_db(),
        cache=factory.get_cache(),
        doc_settings=settings.document_db,
        cache_settings=settings.cache,
    )
    pipeline = build_post_commit_pipeline(
        store,
        notifier=factory.get_status_notifier(),
        notify_states=settings.notifications.notify_states,
    )
    reconciler = StatusReconciler(
        store=store,
        post_commit=pipeline,
        max_attempts=settings.webhooks.max_reconcile_attempts,
    )
    service = VideoManagementService(
        store=store,
        provider=factory.get_streaming_provider(),
        reconciler=reconciler,
        upload_settings=settings.uploads,
    )
    return store, service


async def preview_sync(store: VideoRecordStore, factory: InfrastructureFactory) -> None:
    """Print the status change each processing video would get."""
    provider = factory.get_streaming_provider()
    records = await store.list_by_status([VideoStatus.QUEUED, VideoStatus.IN_PROGRESS])
    print(f"  {len(records)} processing video(s)")
    for record in records:
        try:
            asset = await provider.get_asset_status(record.provider_video_id)
        except DomainException as e:
            print(f"  {record.id}: provider lookup failed: {e}")
            continue
        merged = record.apply_report(asset.to_status_report())
        print(
            f"  [DRY-RUN] {record.id} ({record.course_id}/{record.lesson_id}): "
            f"{record.status.value} {record.processing_progress}% -> "
            f"{merged.status.value} {merged.processing_progress}%"
        )


async def run(args: SyncArgs, settings: Settings) -> list[str]:
    """Execute the requested checks and return a list of errors."""
    errors: list[str] = []
    factory = InfrastructureFactory(settings)
    store, service = build_service(factory, settings)

    try:
        if args.sync:
            print("\n=== Syncing processing videos ===")
            try:
                if args.dry_run:
                    await preview_sync(store, factory)
                else:
                    summary = await service.sync_processing_videos()
                    print(
                        f"  Checked {summary.checked}, synced {summary.synced}, "
                        f"failed {summary.failed}"
                    )
                    if summary.failed:
                        errors.append(f"sync: {summary.failed} video(s) failed")
            except DomainException as e:
                errors.append(f"sync: {e}")
                print(f"  Sync failed: {e}")

        if args.stale:
            print("\n=== Stale queued uploads ===")
            try:
                stale = await service.find_stale_uploads()
                if not stale:
                    print("  None")
                for record in stale:
                    print(
                        f"  {record.id} provider={record.provider_video_id} "
                        f"lesson={record.course_id}/{record.lesson_id} "
                        f"created={record.created_at.isoformat()}"
                    )
            except DomainException as e:
                errors.append(f"stale: {e}")
                print(f"  Stale check failed: {e}")

        if args.orphans:
            print("\n=== Orphaned provider assets ===")
            try:
                orphans = await service.find_orphaned_assets()
                if not orphans:
                    print("  None")
                for asset in orphans:
                    state = asset.state.value if asset.state else "unknown"
                    print(
                        f"  {asset.provider_video_id} state={state} meta={asset.meta}"
                    )
            except DomainException as e:
                errors.append(f"orphans: {e}")
                print(f"  Orphan check failed: {e}")
    finally:
        await factory.close_all()

    return errors


def main() -> None:
    """Main entry point."""
    args = parse_args()
    settings = get_settings()
    configure_logging(
        level=settings.telemetry.log_level,
        format_type="text",
        logger_name="src",
    )

    print("=" * 50)
    print("  LESSON VIDEO SYNC")
    print("=" * 50)
    print(f"Mode: {'DRY-RUN' if args.dry_run else 'WRITE'}")

    errors = asyncio.run(run(args, settings))

    print("\n" + "=" * 50)
    if errors:
        print(f"Completed with {len(errors)} error(s):")
        for error in errors:
            print(f"  - {error}")
        sys.exit(1)
    print("Sync completed successfully!")
    print("=" * 50)


if __name__ == "__main__":
    main()
