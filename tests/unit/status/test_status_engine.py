"""Tests for status: local drift, remote drift, and compliance verdicts."""
from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

import pytest

from gitvendor.core.exceptions import LicenseLookupError, NetworkError
from gitvendor.core.models import ComplianceLevel, Verdict
from gitvendor.core.paths import policy_path
from gitvendor.core.policy import PolicyDecision
from gitvendor.core.status import StatusOptions
from gitvendor.core.sync import SyncOptions

from helpers.project import make_manager, vendor_record, write_config

URL = "https://github.com/example/lib.git"

MIT_TEXT = b"""MIT License

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software, to deal in the Software without restriction.
"""


class _StaticLicense:
    def __init__(self, spdx: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.spdx = spdx
        self.error = error
        self.calls = 0
        self.allow_fetch: Optional[bool] = None

    def lookup(self, url: str, commit: str, *, allow_fetch: bool = True) -> Optional[str]:
        self.calls += 1
        self.allow_fetch = allow_fetch
        if self.error is not None:
            raise self.error
        return self.spdx


def _synced(project: Path, fake_git, *, tree=None, license_lookup=None, **record):
    fake_git.publish(URL, "main", "abc123", tree or {"src/lib.c": b"int x;\n"})
    write_config(project, [vendor_record("lib", URL, **record)])
    manager = make_manager(project, fake_git, license_lookup=license_lookup)
    manager.pull(SyncOptions())
    return manager


class TestDrift:
    """Local and remote drift detection."""

    def test_clean_vendor_has_no_drift(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git)

        [entry] = manager.status(StatusOptions()).entries

        assert entry.local_drift is False
        assert entry.remote_drift is False
        assert entry.verdict is Verdict.PASS

    def test_remote_drift_when_ref_moves(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git)
        fake_git.move_remote(URL, "main", "def456")

        report = manager.status(StatusOptions())

        [entry] = report.entries
        assert entry.locked_commit == "abc123"
        assert entry.remote_commit == "def456"
        assert entry.remote_drift is True
        assert entry.local_drift is False
        assert entry.verdict is Verdict.WARN
        assert report.exit_code == 0

    def test_offline_never_contacts_remote(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git)
        fake_git.move_remote(URL, "main", "def456")

        [entry] = manager.status(StatusOptions(offline=True)).entries

        assert fake_git.count("list_remote_commit") == 0
        assert entry.remote_drift is None
        assert entry.remote_commit is None

    def test_local_drift_lists_paths(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git)
        (project / "vendor/lib/lib.c").write_text("int y;\n", encoding="utf-8")

        [entry] = manager.status(StatusOptions(offline=True)).entries

        assert entry.local_drift is True
        assert entry.drifted_paths == ("vendor/lib",)

    def test_remote_only_skips_local_check(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git)
        (project / "vendor/lib/lib.c").write_text("int y;\n", encoding="utf-8")

        [entry] = manager.status(StatusOptions(remote_only=True)).entries

        assert entry.local_drift is None
        assert entry.remote_drift is False

    def test_orphaned_lock_entries_are_listed(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git)
        write_config(project, [vendor_record("other", URL, mapping=[("src", "vendor/other")])])

        report = manager.status(StatusOptions(offline=True))

        assert report.orphaned == ["lib"]


class TestOfflineLicenseLookup:
    """Offline status never reaches the upstream, not even for licenses."""

    def test_offline_with_evicted_cache_makes_no_git_calls(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git, compliance="strict")
        manager.cache.evict("abc123")
        fake_git.calls.clear()

        [entry] = manager.status(StatusOptions(offline=True)).entries

        assert fake_git.calls == []
        assert entry.license is None
        assert entry.verdict is Verdict.UNKNOWN

    def test_offline_uses_cached_tree_for_license(self, project: Path, fake_git) -> None:
        manager = _synced(
            project,
            fake_git,
            tree={"src/lib.c": b"int x;\n", "LICENSE": MIT_TEXT},
            compliance="strict",
        )
        fake_git.calls.clear()

        [entry] = manager.status(StatusOptions(offline=True)).entries

        assert fake_git.calls == []
        assert entry.license == "MIT"
        assert entry.verdict is Verdict.PASS

    def test_offline_flag_reaches_custom_lookup(self, project: Path, fake_git) -> None:
        lookup = _StaticLicense("MIT")
        manager = _synced(project, fake_git, license_lookup=lookup, compliance="strict")

        manager.status(StatusOptions(offline=True))
        assert lookup.allow_fetch is False
        manager.status(StatusOptions())
        assert lookup.allow_fetch is True

    def test_unwritable_cache_does_not_abort_status(self, project: Path, fake_git) -> None:
        manager = _synced(
            project,
            fake_git,
            tree={"src/lib.c": b"int x;\n", "LICENSE": MIT_TEXT},
            compliance="strict",
        )
        manager.cache.evict("abc123")
        tmp_dir = manager.cache.cache_dir / "tmp"
        if tmp_dir.exists():
            shutil.rmtree(tmp_dir)
        tmp_dir.write_text("not a directory", encoding="utf-8")

        [entry] = manager.status(StatusOptions(remote_only=True)).entries

        assert entry.license == "MIT"
        assert entry.verdict is Verdict.PASS
        assert fake_git.count("fetch_tree") == 2


class TestCompliance:
    """Verdicts per compliance level."""

    def test_lenient_without_lock_fails(self, project: Path, fake_git) -> None:
        write_config(project, [vendor_record("lib", URL)])
        manager = make_manager(project, fake_git)

        report = manager.status(StatusOptions())

        assert report.entries[0].verdict is Verdict.FAIL
        assert report.exit_code == 1
        assert fake_git.count("list_remote_commit") == 0

    def test_info_always_passes(self, project: Path, fake_git) -> None:
        write_config(project, [vendor_record("lib", URL, compliance="info")])
        manager = make_manager(project, fake_git)

        [entry] = manager.status(StatusOptions()).entries

        assert entry.verdict is Verdict.PASS
        assert "vendor has never been synced" in entry.messages

    def test_strict_passes_with_detected_license(self, project: Path, fake_git) -> None:
        manager = _synced(
            project,
            fake_git,
            tree={"src/lib.c": b"int x;\n", "LICENSE": MIT_TEXT},
            compliance="strict",
        )

        [entry] = manager.status(StatusOptions()).entries

        assert entry.license == "MIT"
        assert entry.verdict is Verdict.PASS

    def test_strict_fails_without_license(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git, compliance="strict")

        [entry] = manager.status(StatusOptions()).entries

        assert entry.license is None
        assert entry.verdict is Verdict.FAIL

    def test_strict_declared_license_skips_lookup(self, project: Path, fake_git) -> None:
        lookup = _StaticLicense("GPL-3.0")
        manager = _synced(project, fake_git, license_lookup=lookup, compliance="strict", license="MIT")

        [entry] = manager.status(StatusOptions()).entries

        assert lookup.calls == 0
        assert entry.license == "MIT"
        assert entry.verdict is Verdict.PASS

    def test_strict_lookup_failure_is_unknown(self, project: Path, fake_git) -> None:
        lookup = _StaticLicense(error=LicenseLookupError("provider down"))
        manager = _synced(project, fake_git, license_lookup=lookup, compliance="strict")

        [entry] = manager.status(StatusOptions()).entries

        assert entry.verdict is Verdict.UNKNOWN

    def test_strict_drift_fails_even_when_lookup_fails(self, project: Path, fake_git) -> None:
        lookup = _StaticLicense(error=LicenseLookupError("provider down"))
        manager = _synced(project, fake_git, license_lookup=lookup, compliance="strict")
        fake_git.move_remote(URL, "main", "def456")

        [entry] = manager.status(StatusOptions()).entries

        assert entry.verdict is Verdict.FAIL

    def test_strict_unreachable_remote_is_unknown(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git, compliance="strict", license="MIT")
        fake_git.fail_next("list_remote_commit", *[NetworkError("unreachable") for _ in range(3)])

        [entry] = manager.status(StatusOptions()).entries

        assert entry.remote_drift is None
        assert entry.verdict is Verdict.UNKNOWN
        assert any("remote check failed" in m for m in entry.messages)

    def test_info_never_looks_up_license(self, project: Path, fake_git) -> None:
        lookup = _StaticLicense("MIT")
        manager = _synced(project, fake_git, license_lookup=lookup, compliance="info")

        manager.status(StatusOptions())

        assert lookup.calls == 0

    def test_compliance_override_and_strict_only(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git)

        lenient_only = manager.status(StatusOptions(strict_only=True))
        overridden = manager.status(
            StatusOptions(strict_only=True, compliance_override=ComplianceLevel.STRICT)
        )

        assert lenient_only.entries == []
        [entry] = overridden.entries
        assert entry.compliance is ComplianceLevel.STRICT
        assert entry.verdict is Verdict.FAIL


def _write_policy(project: Path, text: str) -> None:
    policy_path(project).write_text(text, encoding="utf-8")


class TestLicensePolicy:
    """Known licenses are put to the project's license policy."""

    def test_denied_license_fails_strict_vendor(self, project: Path, fake_git) -> None:
        _write_policy(project, "license_policy:\n  allow: [MIT]\n  deny: [GPL-3.0]\n")
        manager = _synced(project, fake_git, compliance="strict", license="GPL-3.0")

        report = manager.status(StatusOptions())

        [entry] = report.entries
        assert entry.verdict is Verdict.FAIL
        assert entry.policy_decision == "deny"
        assert any("denied by the license policy" in m for m in entry.messages)
        assert report.exit_code == 1

    def test_denied_license_fails_lenient_vendor(self, project: Path, fake_git) -> None:
        _write_policy(project, "license_policy:\n  deny: [gpl-3.0]\n")
        manager = _synced(project, fake_git, license="GPL-3.0")

        [entry] = manager.status(StatusOptions()).entries

        assert entry.verdict is Verdict.FAIL

    def test_warned_license_downgrades_to_warn(self, project: Path, fake_git) -> None:
        _write_policy(project, "license_policy:\n  allow: [MIT]\n  warn: [LGPL-2.1]\n")
        manager = _synced(project, fake_git, compliance="strict", license="LGPL-2.1")

        [entry] = manager.status(StatusOptions()).entries

        assert entry.verdict is Verdict.WARN
        assert entry.policy_decision == "warn"

    def test_default_policy_warns_on_unlisted_license(self, project: Path, fake_git) -> None:
        manager = _synced(project, fake_git, compliance="strict", license="GPL-3.0")

        [entry] = manager.status(StatusOptions()).entries

        assert entry.verdict is Verdict.WARN
        assert entry.policy_decision == "warn"

    def test_unknown_deny_fails_unlisted_detected_license(self, project: Path, fake_git) -> None:
        _write_policy(project, "license_policy:\n  allow: [MIT]\n  unknown: deny\n")
        lookup = _StaticLicense("MPL-2.0")
        manager = _synced(project, fake_git, license_lookup=lookup, compliance="strict")

        [entry] = manager.status(StatusOptions()).entries

        assert entry.license == "MPL-2.0"
        assert entry.verdict is Verdict.FAIL

    def test_info_vendor_reports_but_passes(self, project: Path, fake_git) -> None:
        _write_policy(project, "license_policy:\n  deny: [GPL-3.0]\n")
        manager = _synced(project, fake_git, compliance="info", license="GPL-3.0")

        [entry] = manager.status(StatusOptions()).entries

        assert entry.verdict is Verdict.PASS
        assert entry.policy_decision == "deny"

    def test_invalid_policy_aborts_status(self, project: Path, fake_git) -> None:
        from gitvendor.core.exceptions import PolicyError

        _write_policy(project, "license_policy:\n  allow: [MIT]\n  deny: [mit]\n")
        manager = _synced(project, fake_git, license="MIT")

        with pytest.raises(PolicyError):
            manager.status(StatusOptions())


@pytest.mark.parametrize(
    "level,facts,expected",
    [
        ("lenient", dict(has_lock=True, local_drift=False, remote_drift=None), Verdict.PASS),
        ("lenient", dict(has_lock=True, local_drift=True, remote_drift=False), Verdict.WARN),
        ("lenient", dict(has_lock=False, local_drift=None, remote_drift=None), Verdict.FAIL),
        ("strict", dict(has_lock=True, local_drift=False, remote_drift=False, license="MIT"), Verdict.PASS),
        ("strict", dict(has_lock=True, local_drift=False, remote_drift=True, license="MIT"), Verdict.FAIL),
        ("strict", dict(has_lock=False, local_drift=None, remote_drift=None, license="MIT"), Verdict.FAIL),
        ("info", dict(has_lock=False, local_drift=True, remote_drift=True), Verdict.PASS),
        (
            "strict",
            dict(has_lock=True, local_drift=False, remote_drift=False, license="GPL-3.0", policy_decision=PolicyDecision.DENY),
            Verdict.FAIL,
        ),
        (
            "strict",
            dict(has_lock=True, local_drift=False, remote_drift=False, license="LGPL-2.1", policy_decision=PolicyDecision.WARN),
            Verdict.WARN,
        ),
        (
            "lenient",
            dict(has_lock=True, local_drift=False, remote_drift=False, license="GPL-3.0", policy_decision=PolicyDecision.DENY),
            Verdict.FAIL,
        ),
        (
            "lenient",
            dict(has_lock=True, local_drift=False, remote_drift=False, license="MIT", policy_decision=PolicyDecision.ALLOW),
            Verdict.PASS,
        ),
    ],
)
def test_evaluate_table(level: str, facts: dict, expected: Verdict) -> None:
    from gitvendor.core.compliance import ComplianceFacts, evaluate

    verdict, _messages = evaluate(ComplianceLevel(level), ComplianceFacts(**facts))

    assert verdict is expected
