"""Tests for the submission builder and client defaults."""

from __future__ import annotations

import hashlib

import pytest
from coincurve import PrivateKey
from pydantic import ValidationError

from zkrun.client import (
    build_blob,
    build_submission,
    public_key_bytes,
    sign_sha256_blob,
    simulate_run,
)
from zkrun.codec import decode_run_input, decode_value
from zkrun.config import ClientDefaults
from zkrun.crypto import address_from_pubkey
from zkrun.guest import verify_run
from zkrun.journal import decode_journal
from zkrun.model import Accepted

START = 1_700_000_000


class TestSimulateRun:
    def test_default_shape(self) -> None:
        sim = simulate_run(start_time=START)
        assert len(sim.gps) == 9
        assert sim.start == START
        assert sim.end == START + 2400
        assert [s.t - START for s in sim.gps] == list(range(0, 2401, 300))

    def test_heads_due_east(self) -> None:
        sim = simulate_run(start_time=START)
        assert {s.lat_microdeg for s in sim.gps} == {37_774_900}
        lons = [s.lon_microdeg for s in sim.gps]
        assert lons[0] == -122_419_400
        assert lons == sorted(lons)
        assert len(set(lons)) == len(lons)

    def test_uneven_interval_ends_on_duration(self) -> None:
        sim = simulate_run(start_time=0, duration_sec=700, interval_sec=300)
        assert [s.t for s in sim.gps] == [0, 300, 600, 700]

    @pytest.mark.parametrize("kwargs", [{"duration_sec": 0}, {"interval_sec": 0}, {"interval_sec": -5}])
    def test_rejects_non_positive(self, kwargs) -> None:
        with pytest.raises(ValueError):
            simulate_run(start_time=0, **kwargs)


class TestBlob:
    def test_blob_is_cbor_metadata(self) -> None:
        blob = build_blob(10, 20, created_at=5, nonce="0xabc")
        assert decode_value(blob) == {
            "note": "ZKRun private run blob",
            "created_at": 5,
            "start": 10,
            "end": 20,
            "nonce": "0xabc",
        }

    def test_random_nonce_differs(self) -> None:
        assert build_blob(0, 1, created_at=0) != build_blob(0, 1, created_at=0)


class TestSigning:
    def test_signature_layout(self, signer_key: PrivateKey) -> None:
        sig = sign_sha256_blob(signer_key, b"blob")
        assert len(sig) == 65
        assert sig[64] in (27, 28)

    def test_signature_verifies_over_sha256(self, signer_key: PrivateKey) -> None:
        sig = sign_sha256_blob(signer_key, b"blob")
        digest = hashlib.sha256(b"blob").digest()
        assert signer_key.public_key.verify(_der(sig[:64]), digest, hasher=None)

    def test_public_key_is_uncompressed(self, signer_key: PrivateKey) -> None:
        pub = public_key_bytes(signer_key)
        assert len(pub) == 65
        assert pub[0] == 0x04


def _der(compact: bytes) -> bytes:
    from coincurve.ecdsa import cdata_to_der, deserialize_compact

    return cdata_to_der(deserialize_compact(compact))


class TestBuildSubmission:
    def test_default_submission_is_accepted(self, signer_key: PrivateKey) -> None:
        submission = build_submission(
            signer_key, defaults=ClientDefaults(), start_time=START, created_at=START, nonce="0x01"
        )
        assert submission.elapsed_sec == 2400
        assert submission.signer_address == address_from_pubkey(public_key_bytes(signer_key))

        outcome = decode_journal(verify_run(submission.input_bytes))
        assert outcome == Accepted(
            elapsed_seconds=2400,
            blob_hash=submission.blob_hash,
            signer_address=submission.signer_address,
        )

    def test_input_bytes_decode_to_run(self, signer_key: PrivateKey) -> None:
        submission = build_submission(signer_key, defaults=ClientDefaults(), start_time=START)
        assert decode_run_input(submission.input_bytes) == submission.run
        assert submission.run.max_elapsed_sec == 7200
        assert submission.run.max_speed_mps == 12

    def test_deterministic_with_fixed_inputs(self, signer_key: PrivateKey) -> None:
        kwargs = dict(defaults=ClientDefaults(), start_time=START, created_at=START, nonce="0x01")
        assert build_submission(signer_key, **kwargs).input_bytes == build_submission(signer_key, **kwargs).input_bytes

    def test_tight_policy_is_rejected_by_guest(self, signer_key: PrivateKey) -> None:
        defaults = ClientDefaults(max_elapsed_min=30)
        submission = build_submission(signer_key, defaults=defaults, start_time=START)
        assert verify_run(submission.input_bytes) == b"\x00"

    def test_short_run_is_rejected_by_guest(self, signer_key: PrivateKey) -> None:
        defaults = ClientDefaults(duration_sec=600)
        submission = build_submission(signer_key, defaults=defaults, start_time=START)
        assert verify_run(submission.input_bytes) == b"\x00"


class TestClientDefaults:
    def test_defaults(self) -> None:
        defaults = ClientDefaults()
        assert defaults.max_speed_mps == 12
        assert defaults.max_elapsed_min == 120
        assert defaults.max_elapsed_sec == 7200

    def test_from_env(self) -> None:
        defaults = ClientDefaults.from_env({"ZKRUN_MAX_ELAPSED_MIN": "45", "ZKRUN_MAX_SPEED_MPS": "6"})
        assert defaults.max_elapsed_sec == 2700
        assert defaults.max_speed_mps == 6

    def test_from_env_ignores_empty(self) -> None:
        assert ClientDefaults.from_env({"ZKRUN_MAX_SPEED_MPS": ""}) == ClientDefaults()

    def test_from_process_env(self, monkeypatch) -> None:
        monkeypatch.setenv("ZKRUN_MAX_SPEED_MPS", "9")
        monkeypatch.delenv("ZKRUN_MAX_ELAPSED_MIN", raising=False)
        assert ClientDefaults.from_env().max_speed_mps == 9

    @pytest.mark.parametrize(
        "environ",
        [{"ZKRUN_MAX_ELAPSED_MIN": "soon"}, {"ZKRUN_MAX_SPEED_MPS": "1.5"}, {"ZKRUN_MAX_SPEED_MPS": "-3"}],
    )
    def test_from_env_invalid_is_validation_error(self, environ) -> None:
        with pytest.raises(ValidationError):
            ClientDefaults.from_env(environ)

    def test_build_submission_with_bad_env(self, signer_key: PrivateKey, monkeypatch) -> None:
        monkeypatch.setenv("ZKRUN_MAX_ELAPSED_MIN", "two hours")
        with pytest.raises(ValidationError):
            build_submission(signer_key, start_time=START)

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_speed_mps": -1}, {"interval_sec": 0}, {"start_lat": 91.0}, {"pace_mps": 0.0}, {"bogus": 1}],
    )
    def test_invalid_values(self, kwargs) -> None:
        with pytest.raises(ValidationError):
            ClientDefaults(**kwargs)

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            ClientDefaults().max_speed_mps = 3
