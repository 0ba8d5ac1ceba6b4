"""
Checksum manifest parser — ``SHA256SUMS`` text into a digest lookup.

Format, one record per line::

    <hex-digest>  <filename>

Fields are separated by any whitespace run.  Blank lines are skipped.
A line that does not split into at least two fields makes the whole
manifest unusable, so it fails the run instead of being skipped.
"""

from __future__ import annotations

import logging

from terrable.core.errors import ManifestError

logger = logging.getLogger(__name__)


def parse_manifest(text: str | None) -> dict[str, str] | None:
    """Parse manifest text into ``{digest: filename}``.

    Digests are lower-cased.  A digest seen twice keeps the last
    filename; the same filename under different digests yields one
    entry per digest.

    Args:
        text: Raw manifest content, or None when it could not be fetched.

    Returns:
        The digest mapping, or None when ``text`` is None.

    Raises:
        ManifestError: If a non-blank line has fewer than two fields.
    """
    if text is None:
        return None

    entries: dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        fields = line.split()
        if len(fields) < 2:
            raise ManifestError(
                f"Malformed checksum manifest line {lineno}: {line.strip()!r}",
                hint="Expected '<sha256>  <filename>'.",
                context={"line": str(lineno)},
            )
        digest = fields[0].strip().lower()
        # sha256sum marks binary-mode entries with a leading '*'
        filename = fields[1].strip().removeprefix("*")
        entries[digest] = filename

    logger.debug("Parsed %d manifest entries", len(entries))
    return entries
