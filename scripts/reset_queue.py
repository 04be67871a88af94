#!/usr/bin/env python3
"""Reset the patient queue datastore.

Deletes the JSON file holding the queue and, unless --delete-only is given,
recreates it as an empty queue so numbering restarts at 1.
"""

import argparse
import os
import sys

# Allow running as a standalone script
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from patient_queue.config import PATIENTS_JSON_PATH
from patient_queue.errors import StorageError
from patient_queue.store import PatientStore


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Reset the walk-in patient queue")
    parser.add_argument(
        "--path", default=PATIENTS_JSON_PATH,
        help=f"Datastore file (default: {PATIENTS_JSON_PATH})",
    )
    parser.add_argument(
        "--delete-only", action="store_true",
        help="Remove the datastore file without recreating it",
    )
    parser.add_argument(
        "--yes", "-y", action="store_true",
        help="Do not ask for confirmation",
    )
    args = parser.parse_args(argv)

    store = PatientStore(args.path)

    if store.exists() and not args.yes:
        try:
            queued = len(store.load())
        except StorageError:
            queued = "an unreadable number of"
        answer = input(f"Discard {queued} queued patients in {store.path}? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return 1

    try:
        removed = store.clear()
        if not args.delete_only:
            store.ensure_initialized()
    except StorageError as exc:
        print(f"Reset failed: {exc}", file=sys.stderr)
        return 2

    print(f"{'Removed' if removed else 'No existing'} datastore at {store.path}")
    if not args.delete_only:
        print("Queue is empty; the next admission gets queue number 1")
    return 0


if __name__ == "__main__":
    sys.exit(main())
