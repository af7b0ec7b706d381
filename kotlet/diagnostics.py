from typing import Optional

from kotlet.lexer import Span


def render_diagnostic(source: str, span: Optional[Span], message: str) -> str:
    """Format an error with the offending source line underlined.

    A missing span, or the zero-length span at the very start of the
    input (used for whole-program errors), renders the message alone.
    """
    if span is None or (span.lo == 0 and span.hi == 0):
        return f"error: {message}"
    lo = min(span.lo, len(source))
    line_start = source.rfind('\n', 0, lo) + 1
    line_end = source.find('\n', lo)
    if line_end == -1:
        line_end = len(source)
    line_text = source[line_start:line_end].rstrip('\r')
    line_no = source.count('\n', 0, lo) + 1
    column = lo - line_start + 1
    width = max(1, min(span.hi, line_end) - lo)

    gutter = ' ' * len(str(line_no))
    underline = ' ' * (lo - line_start) + '^' + '~' * (width - 1)
    return '\n'.join([
        f"error: {message}",
        f"{gutter}--> {line_no}:{column}",
        f"{line_no} | {line_text}",
        f"{gutter} | {underline} {message}",
    ])
