#!/usr/bin/env python3
"""
zkrun Conformance Corpus Verifier.

Runs `zkrun verify` against each corpus input and asserts both the exit code
and the journal bytes match expected_outcomes.json. This is the ABI test for
the zkrun guest.

Usage:
    python conformance/run_corpus.py

Exit codes:
    0  All corpus entries match expected outcomes
    1  One or more mismatches
"""
from __future__ import annotations

import json
import subprocess
import sys
import tempfile
from pathlib import Path

CORPUS_DIR = Path(__file__).parent / "corpus_v1"
INPUTS_DIR = CORPUS_DIR / "inputs"
OUTCOMES_FILE = CORPUS_DIR / "expected_outcomes.json"


def run_corpus() -> int:
    """Verify all corpus inputs and compare exit codes and journals."""
    if not OUTCOMES_FILE.exists():
        print(f"Error: {OUTCOMES_FILE} not found. Run generate_corpus.py first.")
        return 1

    outcomes = json.loads(OUTCOMES_FILE.read_text())
    entries = outcomes.get("entries", [])

    if not entries:
        print("Error: No entries in expected_outcomes.json")
        return 1

    print(f"zkrun Conformance Corpus v{outcomes.get('corpus_version', '?')}")
    print(f"Generated: {outcomes.get('generated_at', '?')}")
    print(f"Entries:   {len(entries)}")
    print()

    passed = 0
    failed = 0
    errors = []

    with tempfile.TemporaryDirectory() as tmp:
        for entry in entries:
            name = entry["name"]
            expect_exit = entry["expect_exit"]
            expect_journal = entry["expect_journal"]
            input_path = INPUTS_DIR / f"{name}.cbor"
            journal_path = Path(tmp) / f"{name}.journal"

            if not input_path.exists():
                msg = f"  SKIP  {name:20s}  input not found"
                print(msg)
                errors.append(msg)
                failed += 1
                continue

            cmd = [sys.executable, "-m", "zkrun.cli", "verify", str(input_path), "--out", str(journal_path)]
            result = subprocess.run(cmd, capture_output=True, text=True)
            actual_exit = result.returncode
            actual_journal = journal_path.read_bytes().hex() if journal_path.exists() else None

            if actual_exit == expect_exit and actual_journal == expect_journal:
                print(f"  PASS  {name:20s}  exit={actual_exit} journal={len(expect_journal) // 2} bytes")
                passed += 1
            else:
                msg = (
                    f"  FAIL  {name:20s}  exit={actual_exit} (expected {expect_exit}) "
                    f"journal={'match' if actual_journal == expect_journal else 'MISMATCH'}"
                )
                print(msg)
                errors.append(msg)
                if result.stderr:
                    for line in result.stderr.splitlines()[:3]:
                        errors.append(f"        stderr: {line}")
                failed += 1

    print()
    print(f"Results: {passed} passed, {failed} failed, {len(entries)} total")

    if errors:
        print()
        print("Failures:")
        for e in errors:
            print(e)
        return 1

    print("All corpus entries match expected outcomes.")
    return 0


if __name__ == "__main__":
    sys.exit(run_corpus())
