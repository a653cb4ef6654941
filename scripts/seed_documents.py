#!/usr/bin/env python
"""Seed the document store from a YAML or JSON file.

Usage:
    python scripts/seed_documents.py                       # Import seeds/documents.yaml
    python scripts/seed_documents.py --file my_docs.yaml   # Import another file
    python scripts/seed_documents.py --rebuild             # Clear documents first
    python scripts/seed_documents.py --no-enrich           # Skip tag/summary generation
"""
import argparse
import asyncio
import sys
from pathlib import Path
from datetime import datetime

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from uema_digital import config, db
from uema_digital.ingest import DocumentImporter, clear_documents, load_records
import structlog

logger = structlog.get_logger()

DEFAULT_SEED_FILE = Path(__file__).parent.parent / "seeds" / "documents.yaml"


class ProgressReporter:
    """Simple progress reporter for CLI."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.start_time = None

    def start(self, message: str):
        self.start_time = datetime.now()
        print(f"\n{'=' * 60}")
        print(f"  {message}")
        print(f"{'=' * 60}\n")

    def update(self, current: int, total: int, title: str):
        percentage = (current / total) * 100 if total > 0 else 0
        bar_length = 40
        filled = int(bar_length * current / total) if total > 0 else 0
        bar = "█" * filled + "░" * (bar_length - filled)

        print(
            f"\r  [{bar}] {percentage:5.1f}% ({current}/{total}) {title[:30]:<30}",
            end="",
            flush=True,
        )

        if self.verbose:
            print()

    def finish(self, stats: dict):
        print("\n")
        elapsed_seconds = (datetime.now() - self.start_time).total_seconds()

        print(f"{'=' * 60}")
        print("  Import Complete!")
        print(f"{'=' * 60}\n")
        print(f"  📄 Documents imported: {stats['documents_imported']}")
        print(f"  ⏭️  Already present:    {stats['documents_skipped']}")
        print(f"  ✨ Enriched:           {stats['documents_enriched']}")
        print(f"  ❌ Failed:             {stats['documents_failed']}")
        print(f"  ⏱️  Time elapsed:       {elapsed_seconds:.1f}s")
        print(f"\n{'=' * 60}\n")

        if stats["documents_failed"] > 0:
            print(f"⚠️  Warning: {stats['documents_failed']} record(s) failed validation.")
            print("   Check logs for details.\n")


async def main():
    """Main entry point for the seed script."""
    parser = argparse.ArgumentParser(
        description="Seed the UEMA Digital document store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=DEFAULT_SEED_FILE,
        help=f"Seed file (default: {DEFAULT_SEED_FILE})",
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Delete every document before importing",
    )
    parser.add_argument(
        "--no-enrich",
        action="store_true",
        help="Do not generate missing tags and summaries",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show verbose progress output")

    args = parser.parse_args()
    progress = ProgressReporter(verbose=args.verbose)

    try:
        print("\n📋 Configuration:")
        print(f"   Seed file:    {args.file}")
        print(f"   Database:     {config.DB_PATH}")
        print(f"   AI provider:  {'configured' if config.provider_configured() else 'not configured (offline fallbacks)'}")

        db.init_database()
        records = load_records(args.file)

        if args.rebuild:
            print("\n⚠️  Rebuild mode: existing documents will be deleted!")
            print("   Press Ctrl+C within 3 seconds to cancel...")
            await asyncio.sleep(3)
            clear_documents()

        progress.start(f"Importing {len(records)} documents")
        importer = DocumentImporter(enrich=not args.no_enrich)
        stats = await importer.import_all(records, progress_callback=progress.update)
        progress.finish(stats)

        if stats["documents_failed"] > 0:
            sys.exit(1)

    except KeyboardInterrupt:
        print("\n\n⚠️  Import cancelled by user.\n")
        sys.exit(1)

    except (FileNotFoundError, ValueError) as e:
        print(f"\n❌ Error: {e}\n")
        sys.exit(1)

    except Exception as e:
        print(f"\n❌ Error: {e}\n")
        logger.error("seed_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
