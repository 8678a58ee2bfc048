"""
git-vendor show command.

SUMMARY: Show one vendor's definition, mappings and lock entry
"""
from __future__ import annotations

import argparse

from gitvendor.cli import OutputFormatter, add_standard_flags, add_vendor_name_arg, prepare

SUMMARY = "Show one vendor's definition, mappings and lock entry"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_vendor_name_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    from gitvendor.core.config import ConfigStore
    from gitvendor.core.lock import LockStore
    from gitvendor.core.redaction import redact_url_credentials

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root, _settings = prepare(args)
        vendor = ConfigStore(repo_root).get(args.name)
        entry = LockStore(repo_root).load().get(vendor.name)

        if formatter.json_mode:
            data = vendor.to_dict()
            data["url"] = redact_url_credentials(vendor.url)
            formatter.json_output({"vendor": data, "lock": entry.to_dict() if entry else None})
            return 0

        formatter.text(vendor.name)
        formatter.text_kv("URL", redact_url_credentials(vendor.url))
        formatter.text_kv("Ref", vendor.ref)
        formatter.text_kv("Compliance", vendor.compliance.value)
        formatter.text_kv("License", vendor.license or "(not declared)")
        if vendor.group:
            formatter.text_kv("Group", vendor.group)
        formatter.text("  Mappings:")
        for mapping in vendor.mappings:
            checksum = entry.checksums.get(mapping.destination) if entry else None
            suffix = f"  [{checksum}]" if checksum else ""
            formatter.text(f"    {mapping.source} -> {mapping.destination}{suffix}")
            if mapping.exclude:
                formatter.text(f"      exclude: {', '.join(mapping.exclude)}")
        if entry:
            formatter.text_kv("Locked commit", entry.commit)
            formatter.text_kv("Locked at", entry.locked_at)
        else:
            formatter.text_kv("Locked commit", "(never synced)")
        return 0

    except Exception as e:
        formatter.error(e)
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
