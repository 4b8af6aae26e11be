"""
Parsing Service

Functions for parsing ingredient amounts and units from free text and for
formatting amounts back into recipe notation.
"""

import math
import re
from collections import namedtuple

from constants import (
    FRACTION_DENOMINATORS,
    ONE_WORD_UNITS,
    TWO_WORD_UNITS,
    UNICODE_FRACTIONS,
)
from models.records import IngredientDetail

# value is None when no amount was found; amount_text is then ''
ParsedAmount = namedtuple('ParsedAmount', ['value', 'amount_text', 'remainder'])

_HYPHEN_MIXED_RE = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*-\s*(\d+)\s*/\s*(\d+)\s*$')
_NUMBER_RE = re.compile(r'^(?:\d+(?:\.\d*)?|\.\d+)$')
_TOKEN_TRIM = ',()'


def _round_half_up(value):
    """Round half away from zero (Python's round() rounds half to even)."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def contains_numeric(token):
    """True if the token looks like part of an amount."""
    token = token.strip()
    if not token:
        return False
    for char in token:
        if char.isdecimal() or char in '/.' or char in UNICODE_FRACTIONS:
            return True
    return False


def _parse_number(text):
    if not _NUMBER_RE.match(text):
        return None
    return float(text)


def parse_single_token(token):
    """
    Convert one amount token to a float.

    Handles: 2, 1.5, 1/2, 1-1/2, ½, 1½. Returns None if the token is not
    a usable amount.
    """
    normalized = token.strip(_TOKEN_TRIM)
    if not normalized:
        return None

    # Hyphenated mixed fraction like "1-1/2"
    match = _HYPHEN_MIXED_RE.match(normalized)
    if match:
        whole = float(match.group(1))
        num = float(match.group(2))
        den = float(match.group(3))
        if den != 0:
            return whole + num / den

    # Whole number glued to a unicode fraction like "1½"
    glyph = None
    whole_part = []
    for char in normalized:
        if char in UNICODE_FRACTIONS:
            glyph = char
        elif char.isdecimal() or char == '.':
            whole_part.append(char)
    if glyph is not None:
        whole = _parse_number(''.join(whole_part)) if whole_part else None
        return (whole or 0.0) + UNICODE_FRACTIONS[glyph]

    if '/' in normalized:
        parts = normalized.split('/')
        if len(parts) != 2:
            return None
        num = _parse_number(parts[0].strip())
        den = _parse_number(parts[1].strip())
        if num is None or not den:
            return None
        return num / den

    return _parse_number(normalized)


def _is_fraction_token(token):
    token = token.strip(_TOKEN_TRIM)
    if not token:
        return False
    return '/' in token or '.' in token or token[0] in UNICODE_FRACTIONS


def parse_amount(text):
    """
    Split a leading amount off an ingredient line.

    Takes the greedy run of numeric-looking leading tokens, stopping at the
    first word or at a lone '-' once an amount has started. Two tokens are
    combined as whole + fraction ("1 1/2", "2 ½", "1 .5"); otherwise only
    the first token is the amount and the rest stays in the remainder.

    Args:
        text: Raw ingredient line, e.g. '1 1/2 cups flour'

    Returns:
        ParsedAmount(value, amount_text, remainder). When no amount can be
        parsed, value is None, amount_text is '' and remainder is the whole
        trimmed line.
    """
    trimmed = (text or '').strip()
    if not trimmed:
        return ParsedAmount(None, '', '')

    fields = trimmed.split()
    amount_tokens = []
    positions = []
    idx = 0
    while idx < len(fields):
        token = fields[idx].strip(_TOKEN_TRIM)
        if not token:
            idx += 1
            continue
        if token == '-' and amount_tokens:
            break
        if contains_numeric(token):
            amount_tokens.append(token)
            positions.append(idx)
            idx += 1
            continue
        break

    if not amount_tokens:
        return ParsedAmount(None, '', trimmed)

    first = parse_single_token(amount_tokens[0])
    if first is None:
        return ParsedAmount(None, '', trimmed)

    used = 1
    value = first
    if len(amount_tokens) == 2 and _is_fraction_token(amount_tokens[1]):
        second = parse_single_token(amount_tokens[1])
        if second is not None:
            value = first + second
            used = 2

    # Unused numeric tokens ("(14-ounce)") go back to the description as written
    start = positions[used] if used < len(positions) else idx
    leftover = fields[start:]
    remainder = ' '.join(leftover).strip()
    if remainder.startswith('- '):
        remainder = remainder[2:].strip()
    return ParsedAmount(value, ' '.join(amount_tokens[:used]), remainder)


def _gcd(a, b):
    while b:
        a, b = b, a % b
    return abs(a)


def format_amount(value):
    """
    Format an amount in conventional recipe notation.

    The fractional part is snapped to the nearest fraction with a
    denominator in {2, 3, 4, 8, 16}.

    Examples:
        >>> format_amount(1.5)
        '1 1/2'
        >>> format_amount(0.75)
        '3/4'
        >>> format_amount(2.0)
        '2'
    """
    if value is None or value <= 0:
        return ''

    whole = math.floor(value)
    frac = value - whole

    if frac < 1e-6:
        return str(int(whole))

    best_num, best_den = 0, 1
    min_diff = float('inf')
    for den in FRACTION_DENOMINATORS:
        num = int(_round_half_up(frac * den))
        diff = abs(frac - num / den)
        if diff < min_diff:
            min_diff = diff
            best_num, best_den = num, den

    if best_num == best_den:
        return str(int(whole) + 1)

    if best_num == 0:
        if whole >= 1:
            return str(int(whole))
        return f"{value:.2f}"

    g = _gcd(best_num, best_den)
    best_num //= g
    best_den //= g

    if whole < 1:
        return f"{best_num}/{best_den}"
    return f"{int(whole)} {best_num}/{best_den}"


def split_unit(description):
    """
    Separate a leading unit from an ingredient description.

    Two-word units ("fl oz") are checked before single words ("cups").
    A following "of" is dropped ("pinch of salt" -> ('pinch', 'salt')).

    Returns:
        (unit, rest) tuple; ('', description) if no unit matched.
    """
    text = (description or '').strip()
    words = text.split()
    if not words:
        return '', text

    unit = ''
    rest = []
    if len(words) >= 2 and f"{words[0]} {words[1]}".lower() in TWO_WORD_UNITS:
        unit = f"{words[0]} {words[1]}"
        rest = words[2:]
    elif words[0].lower().rstrip('.') in ONE_WORD_UNITS or words[0].lower() in ONE_WORD_UNITS:
        unit = words[0]
        rest = words[1:]

    if not unit:
        return '', description

    if rest and rest[0].lower() == 'of':
        rest = rest[1:]
    return unit, ' '.join(rest)


def compose_display(amount_text, unit, description):
    """Join the non-empty parts of an ingredient line with single spaces."""
    parts = [part.strip() for part in (amount_text, unit, description) if part and part.strip()]
    return ' '.join(parts).strip()


def parse_ingredient_line(text):
    """
    Parse a raw ingredient line into an IngredientDetail.

    The unit is only split off when an amount was found, so lines like
    "Pinch of salt" keep their original wording.
    """
    parsed = parse_amount(text)
    unit = ''
    description = parsed.remainder
    amount_text = ''
    if parsed.value is not None:
        unit, description = split_unit(parsed.remainder)
        amount_text = format_amount(parsed.value)

    detail = IngredientDetail(
        description=description.strip(),
        unit=unit,
        base_amount_value=parsed.value,
        base_amount_text=amount_text,
        amount_value=parsed.value,
        amount_text=amount_text,
    )
    detail.display = compose_display(detail.amount_text, detail.unit, detail.description)
    return detail
