"""Convert terminal output (ANSI escapes) from CI job logs to HTML.

Conversion is done by ansi2html with CSS classes (``ansi31``, ``ansi1``,
...) styled by ``terminal.css``. Buildkite timestamp markers are removed
first and lines rewritten with ``\\r`` keep only their final text.
"""

import re

from ansi2html import Ansi2HTMLConverter
from markupsafe import Markup

# \x1b_bk;t=1700000000000\x07
_BUILDKITE_MARKER_RE = re.compile(r"\x1b_bk;[^\x07]*\x07")


def _overwrite_carriage_returns(text: str) -> str:
    lines = []
    for line in text.split("\n"):
        line = line.rstrip("\r")
        lines.append(line.rsplit("\r", 1)[-1])
    return "\n".join(lines)


def ansi_to_html(text: str) -> Markup:
    """Render terminal output as safe HTML for use inside ``<pre>``."""
    text = _overwrite_carriage_returns(_BUILDKITE_MARKER_RE.sub("", text or ""))
    # converters keep per-call state; one per log keeps server threads apart
    converter = Ansi2HTMLConverter(inline=False)
    return Markup(converter.convert(text, full=False))
