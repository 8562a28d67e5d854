#!/usr/bin/env python3
"""Serve the Sizwe Guide tabs (pathway advice, chat, document to video)."""

import argparse
import sys

from sizwe_guide.config import settings
from sizwe_guide.utils.logging_config import configure_logging
from sizwe_guide.web.app import launch_app

TABS = ("Learner Pathway", "Student Pathway", "Sizwe Bot", "Document to Video")


def main():
    parser = argparse.ArgumentParser(
        description="Serve Sizwe Guide for Mpumalanga learners and students.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Tabs:\n"
            "  Learner Pathway    Grade 9-11 marks -> Grade 12 or TVET advice\n"
            "  Student Pathway    Grade 11-12 marks -> courses and scarce careers\n"
            "  Sizwe Bot          career guidance chat\n"
            "  Document to Video  summarize notes, narrate, export an mp4\n"
            "\n"
            "Gemini features need GEMINI_API_KEY in the environment or .env."
        ),
    )
    parser.add_argument('--share', action='store_true',
                        help='also publish a temporary gradio.live link')
    parser.add_argument('--port', type=int, default=7860,
                        help='local port to bind (default: %(default)s)')
    parser.add_argument('--debug', action='store_true',
                        help='log at DEBUG instead of LOG_LEVEL')

    args = parser.parse_args()

    configure_logging(level="DEBUG" if args.debug else settings.log_level)

    if not settings.validate_api_keys():
        print("⚠️  No GEMINI_API_KEY: pathway advice, Sizwe Bot and narration are unavailable.")

    print("🎓 Sizwe Guide")
    for tab in TABS:
        print(f"   • {tab}")
    where = "public link will be printed by Gradio" if args.share else f"http://localhost:{args.port}"
    print(f"Serving on {where} (Ctrl+C to quit)")

    try:
        launch_app(share=args.share, port=args.port)
    except KeyboardInterrupt:
        print("\nSizwe Guide stopped.")
    except Exception as e:
        print(f"❌ Could not start Sizwe Guide: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
