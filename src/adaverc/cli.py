"""
CLI entry points for adaverc-hash and adaverc-verify commands.
"""

import argparse
import json
import logging
import sys
from typing import Optional

from . import __version__
from .config import MAX_DEPTH_CEILING, load_config
from .dispatch import DEFAULT_MAX_DEPTH, InputMode, Resolution, Submission
from .errors import ConfigError, EncodingError, ValidationError, VerificationServiceError
from .hashing import DIGEST_VERSION, HASH_ALGORITHM
from .lookup import VerificationResult, parse_timestamp

# Exit codes
EXIT_OK = 0
EXIT_NOT_VERIFIED = 1
EXIT_INVALID_INPUT = 2
EXIT_SERVICE_ERROR = 3
EXIT_OTHER = 5


def _configure_logging(verbose: bool, level: str = "WARNING") -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _format_local(timestamp: Optional[str]) -> str:
    """Render an ISO 8601 timestamp in local time, or echo it if unparsable."""
    if not timestamp:
        return "-"
    try:
        return parse_timestamp(timestamp).astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")
    except ValueError:
        return timestamp


# =============================================================================
# HASH CLI
# =============================================================================

def format_hash_summary(resolution: Resolution) -> str:
    """Format a generated digest as human-readable summary."""
    parsed = "JSON" if resolution.source == "json" else "plain text"
    lines = [
        "=" * 72,
        "ADAVERC CONTENT DIGEST",
        "=" * 72,
        f"Parsed as:   {parsed}",
        f"Algorithm:   {HASH_ALGORITHM} (canonical JSON, v{DIGEST_VERSION})",
        f"Digest:      {resolution.digest}",
        "=" * 72,
    ]
    return "\n".join(lines)


def format_hash_json(resolution: Resolution) -> str:
    return json.dumps(
        {"digest": resolution.digest, "parsed_as": resolution.source}, indent=2,
    )


def main_hash():
    """Entry point for adaverc-hash command."""
    parser = argparse.ArgumentParser(
        description="Compute the verification digest of JSON or plain-text content",
        epilog="Exit codes: 0=ok, 2=invalid input, 5=other",
    )
    parser.add_argument("path", nargs="?", default="-",
                        help="File to hash, or - for stdin (default: stdin)")
    parser.add_argument("--text", help="Hash this text instead of reading a file")
    parser.add_argument("--format", choices=["summary", "json"], default="summary",
                        help="Output format (default: summary)")
    parser.add_argument("--max-depth", type=int, help="Maximum nesting depth accepted")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"adaverc-hash {__version__}")

    args = parser.parse_args()
    if args.max_depth is not None and not 1 <= args.max_depth <= MAX_DEPTH_CEILING:
        parser.error(f"--max-depth must be between 1 and {MAX_DEPTH_CEILING}")
    _configure_logging(args.verbose)

    try:
        content = args.text if args.text is not None else _read_source(args.path)
    except OSError as e:
        print(f"Error: Cannot read {args.path}: {e}", file=sys.stderr)
        return EXIT_OTHER

    max_depth = args.max_depth if args.max_depth is not None else DEFAULT_MAX_DEPTH
    submission = Submission(InputMode.CONTENT, content, max_depth)
    try:
        resolution = submission.resolve()
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except EncodingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_OTHER

    if args.format == "json":
        print(format_hash_json(resolution))
    else:
        print(format_hash_summary(resolution))
    return EXIT_OK


# =============================================================================
# VERIFY CLI
# =============================================================================

def format_verify_summary(result: VerificationResult, resolution: Resolution) -> str:
    """Format verification result as human-readable summary."""
    lines = [
        "=" * 72,
        "ADAVERC DATASET VERIFICATION",
        "=" * 72,
        "",
        f"Status:      {'✓ Verified' if result.verified else '✗ Not Verified'}",
        f"Message:     {result.message}",
    ]
    if resolution.mode is InputMode.CONTENT:
        lines.append(f"Generated:   {resolution.digest}")
    else:
        lines.append(f"Digest:      {resolution.digest}")

    if result.verified and result.metadata is not None:
        lines.extend([
            "",
            "-" * 72,
            "REGISTRATION",
            "-" * 72,
            f"  Form ID:     {result.metadata.form_id}",
            f"  Response ID: {result.metadata.response_id}",
            f"  Timestamp:   {_format_local(result.metadata.timestamp)}",
        ])
        if result.stored_at:
            lines.append(f"  Stored:      {_format_local(result.stored_at)}")

    lines.extend(["", "=" * 72])
    return "\n".join(lines)


def format_verify_json(result: VerificationResult, resolution: Resolution) -> str:
    """Format verification result as JSON."""
    output = {
        "digest": resolution.digest,
        "mode": resolution.mode.value,
        "parsed_as": resolution.source,
        **result.to_dict(),
    }
    return json.dumps(output, indent=2)


def main_verify():
    """Entry point for adaverc-verify command."""
    parser = argparse.ArgumentParser(
        description="Verify a dataset response against the registered digests",
        epilog="Exit codes: 0=verified, 1=not verified, 2=invalid input, "
               "3=service error, 5=other",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--hash", "--digest", dest="digest",
                        help="Digest (64 lowercase hex characters) to verify")
    source.add_argument("--content", help="JSON or plain-text content to hash and verify")
    source.add_argument("--file", help="File whose content to hash and verify (- for stdin)")
    parser.add_argument("--config", help="Path to verifier YAML config (default: $ADAVERC_CONFIG)")
    parser.add_argument("--endpoint", help="Verification service URL")
    parser.add_argument("--payload-key", help="Request body key for the digest")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--format", choices=["summary", "json"], default="summary",
                        help="Output format (default: summary)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"adaverc-verify {__version__}")

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_OTHER
    if args.endpoint:
        config.endpoint = args.endpoint
    if args.payload_key:
        config.payload_key = args.payload_key
    if args.timeout is not None:
        config.timeout = args.timeout
    _configure_logging(args.verbose, config.log_level)

    if args.digest is not None:
        submission = Submission(InputMode.DIGEST, args.digest, config.max_depth)
    else:
        try:
            content = args.content if args.content is not None else _read_source(args.file)
        except OSError as e:
            print(f"Error: Cannot read {args.file}: {e}", file=sys.stderr)
            return EXIT_OTHER
        submission = Submission(InputMode.CONTENT, content, config.max_depth)

    try:
        resolution = submission.resolve()
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except EncodingError as e:
        print(f"Error: Failed to generate hash from content: {e}", file=sys.stderr)
        return EXIT_OTHER

    if not config.endpoint:
        print("Error: No verification endpoint (use --endpoint or config)", file=sys.stderr)
        return EXIT_OTHER

    try:
        result = config.build_client().verify(resolution.digest)
    except VerificationServiceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_SERVICE_ERROR

    if args.format == "json":
        print(format_verify_json(result, resolution))
    else:
        print(format_verify_summary(result, resolution))

    return EXIT_OK if result.verified else EXIT_NOT_VERIFIED


if __name__ == "__main__":
    sys.exit(main_verify())
