"""
CLI tool to extract CRM data from a meeting notes file.

Usage:
    python scripts/extract_notes.py <notes_file> [--sync] [--no-contact] [--no-company] [--no-deal]

Examples:
    # Extract only, print the record
    python scripts/extract_notes.py notes/acme-call.txt

    # Extract and push company, contact and deal to HubSpot
    python scripts/extract_notes.py notes/acme-call.txt --sync

    # Read the notes from stdin
    cat notes.txt | python scripts/extract_notes.py -
"""

import argparse
import asyncio
import json
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dotenv import load_dotenv
load_dotenv(".env.local")

from meeting_crm.config import get_settings
from meeting_crm.errors import MeetingCrmError
from meeting_crm.logging_config import setup_logging, get_logger
from meeting_crm.schemas.sync import SyncOptions
from meeting_crm.services.completion import CompletionClient
from meeting_crm.services.extraction import ExtractionEngine, extract_and_store
from meeting_crm.services.hubspot import HubSpotClient
from meeting_crm.services.sync import SyncOrchestrator
from meeting_crm.storage.factory import build_storage

setup_logging()
logger = get_logger(__name__)


async def run(meeting_summary: str, sync: bool, options: SyncOptions) -> dict:
    """Extract one summary and optionally sync it."""
    settings = get_settings()
    storage = build_storage(settings)
    completion = CompletionClient.from_settings(settings)

    try:
        extraction, record = await extract_and_store(ExtractionEngine(completion), storage, meeting_summary)
        output: dict = {"id": extraction.id, "extractedData": record.to_payload()}

        if sync:
            hubspot = HubSpotClient.from_settings(settings)
            try:
                orchestrator = SyncOrchestrator(storage, hubspot, guard_enabled=settings.sync_guard_enabled)
                report = await orchestrator.sync(extraction.id, options)
                output["sync"] = report.to_payload()
            finally:
                await hubspot.aclose()

        return output
    finally:
        await completion.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Extract CRM data from meeting notes")
    parser.add_argument("notes_file", help="Path to a text file with the meeting summary, or - for stdin")
    parser.add_argument("--sync", action="store_true", help="Push the extracted record to HubSpot")
    parser.add_argument("--no-contact", action="store_true", help="Do not create the contact")
    parser.add_argument("--no-company", action="store_true", help="Do not create the company")
    parser.add_argument("--no-deal", action="store_true", help="Do not create the deal")

    args = parser.parse_args()

    if args.notes_file == "-":
        meeting_summary = sys.stdin.read()
    else:
        with open(args.notes_file, encoding="utf-8") as f:
            meeting_summary = f.read()

    options = SyncOptions(
        create_contact=not args.no_contact,
        create_company=not args.no_company,
        create_deal=not args.no_deal,
    )

    try:
        output = asyncio.run(run(meeting_summary, args.sync, options))
    except MeetingCrmError as e:
        logger.error("extract_notes_failed", error=str(e))
        sys.exit(1)

    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
