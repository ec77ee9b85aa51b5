"""MCP tool server for digest computation and dataset verification.

Exposes three tools over stdio:

- ``compute_digest``: hash JSON or plain-text content
- ``check_digest``: validate a digest string
- ``verify``: resolve a submission and ask the verification service

Every tool returns a JSON string. Invalid input and service failures come
back as ``{"error": ...}`` payloads instead of raising into the MCP layer.

Requires the ``mcp`` extra.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from .config import VerifierConfig, load_config
from .dispatch import InputMode, Submission
from .errors import AdavercError, ValidationError
from .hashing import DIGEST_VERSION, HASH_ALGORITHM

logger = logging.getLogger("adaverc.mcp_server")

SERVER_NAME = "adaverc"


def _error(message: str, **extra: Any) -> str:
    return json.dumps({"error": message, **extra})


class VerifierTools:
    """Tool implementations, bound to one configuration."""

    def __init__(self, config: VerifierConfig, transport: Optional[Any] = None) -> None:
        self.config = config
        self._transport = transport

    def compute_digest(self, content: str) -> str:
        submission = Submission(InputMode.CONTENT, content, self.config.max_depth)
        try:
            resolution = submission.resolve()
        except AdavercError as e:
            return _error(str(e))
        return json.dumps({
            "digest": resolution.digest,
            "parsed_as": resolution.source,
            "algorithm": HASH_ALGORITHM,
            "digest_version": DIGEST_VERSION,
        })

    def check_digest(self, digest: str) -> str:
        try:
            Submission(InputMode.DIGEST, digest).resolve()
        except ValidationError as e:
            return json.dumps({"valid": False, "error": str(e)})
        return json.dumps({"valid": True, "digest": digest})

    async def verify(self, mode: str, value: str) -> str:
        try:
            resolution = Submission(mode, value, self.config.max_depth).resolve()
        except AdavercError as e:
            return _error(str(e))

        if not self.config.endpoint:
            return _error("No verification endpoint configured", digest=resolution.digest)
        try:
            client = self.config.build_client(transport=self._transport)
            result = await client.verify_async(resolution.digest)
        except AdavercError as e:
            logger.warning("Verification failed for %s: %s", resolution.digest[:12], e)
            return _error(str(e), digest=resolution.digest)
        except Exception as e:
            logger.error("Verification client error for %s: %s", resolution.digest[:12], e)
            return _error(f"Verification client error: {e}", digest=resolution.digest)

        return json.dumps({
            "digest": resolution.digest,
            "parsed_as": resolution.source,
            **result.to_dict(),
        })


def build_server(tools: VerifierTools) -> FastMCP:
    """Create the FastMCP server with all tools registered."""
    server = FastMCP(SERVER_NAME)

    @server.tool(name="compute_digest")
    def compute_digest(content: str) -> str:
        """Compute the verification digest of JSON or plain-text content.

        JSON is canonicalized (keys and array elements sorted) before
        hashing; anything that is not JSON is hashed as a single string.
        """
        return tools.compute_digest(content)

    @server.tool(name="check_digest")
    def check_digest(digest: str) -> str:
        """Check that a digest is 64 lowercase hexadecimal characters."""
        return tools.check_digest(digest)

    @server.tool(name="verify")
    async def verify(mode: str, value: str) -> str:
        """Verify a digest ("digest" mode) or content ("content" mode)
        against the registered records."""
        return await tools.verify(mode, value)

    return server


def main() -> None:
    """CLI entry point for ``adaverc-mcp``; config comes from $ADAVERC_CONFIG."""
    import sys

    try:
        config = load_config()
    except AdavercError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(level=getattr(logging, config.log_level), stream=sys.stderr)
    if not config.endpoint:
        logger.warning("No verification endpoint configured; 'verify' will fail")

    build_server(VerifierTools(config)).run()
