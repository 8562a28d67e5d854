#!/usr/bin/env python3
"""Export a narrated presentation video from a document or a JSON file."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from sizwe_guide.config import settings
from sizwe_guide.models.presentation import PresentationContent
from sizwe_guide.tools.document_summary import narrate_presentation, summarize_document
from sizwe_guide.tools.video_exporter import PresentationExporter
from sizwe_guide.utils.logging_config import configure_logging


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Create a narrated presentation video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Summarize and narrate a document with Gemini, then export
  %(prog)s --document notes/photosynthesis.txt

  # Export an existing presentation (title, summary, keyPoints, difficulty, audioUrl)
  %(prog)s --presentation presentation.json -o ./videos
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '--document',
        help='Text document to summarize and narrate'
    )
    source.add_argument(
        '--presentation',
        help='JSON file with presentation fields and an audioUrl'
    )

    parser.add_argument(
        '--audio',
        help='Narration file to use instead of the one in the JSON (or instead of TTS)'
    )

    parser.add_argument(
        '-o', '--output',
        default=settings.export_dir,
        help=f'Output directory (default: {settings.export_dir})'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser.parse_args()


async def build_presentation(args) -> PresentationContent:
    if args.presentation:
        data = json.loads(Path(args.presentation).read_text(encoding="utf-8"))
        presentation = PresentationContent(**data)
    else:
        document = Path(args.document)
        presentation = await summarize_document(document.read_bytes(), filename=document.name)
        if not args.audio:
            presentation = await narrate_presentation(presentation)

    if args.audio:
        presentation = presentation.with_audio(args.audio)
    return presentation


async def main_async(args) -> int:
    presentation = await build_presentation(args)
    print(f"🎬 Exporting '{presentation.title}'...")

    exporter = PresentationExporter(output_dir=args.output)
    result = await exporter.export(presentation)

    if not result.ok:
        print(f"❌ {result.message}")
        return 1

    print(f"✅ Saved {result.output_path} ({result.artifact.duration:.1f}s)")
    return 0


def main():
    """Main entry point."""
    args = parse_arguments()
    configure_logging(level="DEBUG" if args.verbose else settings.log_level)

    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("\n\nExport cancelled by user.")
        return 130
    except Exception as e:
        print(f"\n❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
