#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Field Encryption Verification Script
====================================
Connects to the database and reports, for asset quantity / cost_basis:
  1. How many values are encrypted fields ("nonce:ciphertext")
  2. How many are legacy plaintext (written before E2EE or while locked)
  3. How many carry the separator but are not well-formed ciphertext

Uses structural detection only. No key is derived or needed, so this
script cannot read any encrypted value.
"""

import sys

from privatefolio.crypto import MalformedField, PlainField, classify
from privatefolio.database import SessionLocal
from privatefolio.models import Asset

FIELDS = ("quantity", "cost_basis")


def scan(db) -> dict:
    """Count encrypted, plaintext and malformed values per field."""
    counts = {name: {"encrypted": 0, "plaintext": 0, "malformed": 0} for name in FIELDS}
    malformed_ids = []

    for asset in db.query(Asset).yield_per(500):
        for name in FIELDS:
            try:
                stored = classify(getattr(asset, name))
            except MalformedField:
                counts[name]["malformed"] += 1
                malformed_ids.append((str(asset.id), name))
                continue

            if isinstance(stored, PlainField):
                counts[name]["plaintext"] += 1
            else:
                counts[name]["encrypted"] += 1

    return {"counts": counts, "malformed": malformed_ids}


def main():
    db = SessionLocal()
    try:
        report = scan(db)
    finally:
        db.close()

    print("=" * 60)
    print("FIELD ENCRYPTION VERIFICATION")
    print("=" * 60)
    print()

    for name, counts in report["counts"].items():
        print(f"{name}:")
        print(f"  encrypted: {counts['encrypted']}")
        print(f"  plaintext: {counts['plaintext']}")
        print(f"  malformed: {counts['malformed']}")

    if any(counts["plaintext"] for counts in report["counts"].values()):
        print()
        print("WARNING: plaintext values present (legacy rows or writes made while locked)")

    if report["malformed"]:
        print()
        print("FAIL: malformed encrypted values (will render as LOCKED):")
        for asset_id, name in report["malformed"]:
            print(f"  - asset {asset_id} field {name}")
        sys.exit(1)

    print()
    print("VERIFICATION PASSED")


if __name__ == "__main__":
    main()
