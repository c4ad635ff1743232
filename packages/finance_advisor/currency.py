"""Currency catalog, amount parsing, currency detection and display formatting.

The catalog is an ordered, immutable tuple of :class:`CurrencyProfile`
entries built once at import time. Order matters: when two currencies score
the same during detection, the one listed first wins.

Failure policy differs by direction:

- :func:`parse_amount_strict` raises ``ValueError`` for anything that does not
  resolve to a finite number; :func:`parse_amount` is the lenient variant and
  returns ``0.0`` instead.
- :func:`detect_currency` and :func:`format_currency` never raise. Detection
  always returns a catalog code; formatting falls back to a USD rendering.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from types import MappingProxyType

from .logging_setup import get_logger
from .models import CurrencyCode, CurrencyProfile, Transactions

_logger = get_logger("finance_advisor.currency")

# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

DEFAULT_CURRENCY: CurrencyCode = "USD"

CURRENCY_CATALOG: tuple[CurrencyProfile, ...] = (
    CurrencyProfile("USD", ("$", "usd", "dollar", "us"), "en-US", (1, 50_000)),
    CurrencyProfile(
        "EUR", ("€", "eur", "euro"), "en-GB", (1, 50_000),
        decimal_separator=",", thousands_separator=".",
    ),
    CurrencyProfile("GBP", ("£", "gbp", "pound", "sterling"), "en-GB", (1, 50_000)),
    CurrencyProfile(
        "JPY", ("¥", "jpy", "yen"), "ja-JP", (100, 1_000_000), fraction_digits=0
    ),
    CurrencyProfile(
        "IDR", ("rp", "idr", "rupiah", "indonesia", "indo"), "id-ID", (1_000, 100_000_000),
        decimal_separator=",", thousands_separator=".", fraction_digits=0,
    ),
    CurrencyProfile("CNY", ("¥", "￥", "cny", "yuan", "rmb"), "zh-CN", (1, 100_000)),
    CurrencyProfile("INR", ("₹", "inr", "rupee", "rs"), "en-IN", (10, 1_000_000)),
    CurrencyProfile(
        "KRW", ("₩", "krw", "won"), "ko-KR", (1_000, 10_000_000), fraction_digits=0
    ),
    CurrencyProfile("CAD", ("cad", "c$", "canadian"), "en-CA", (1, 50_000)),
    CurrencyProfile("AUD", ("aud", "a$", "australian"), "en-AU", (1, 50_000)),
)

CURRENCY_PROFILES: Mapping[CurrencyCode, CurrencyProfile] = MappingProxyType(
    {p.code: p for p in CURRENCY_CATALOG}
)

# Currencies whose everyday amounts run into the thousands or millions.
HIGH_DENOMINATION: frozenset[str] = frozenset({"IDR", "JPY", "KRW"})
LOW_DENOMINATION: frozenset[str] = frozenset({"USD", "EUR", "GBP", "CAD", "AUD"})

_KEYWORD_POINTS = 10
_RANGE_POINTS = 5
_DENOMINATION_POINTS = 3
_HIGH_DENOMINATION_MEAN = 10_000
_LOW_DENOMINATION_MEAN = 1_000


def get_profile(code: str | None) -> CurrencyProfile | None:
    """Return the catalog entry for ``code`` (case-insensitive) or ``None``."""

    if not code:
        return None
    return CURRENCY_PROFILES.get(code.strip().upper())


# ---------------------------------------------------------------------------
# Amount parsing
# ---------------------------------------------------------------------------

_GENERIC_GLYPHS_RE = re.compile("[$€£¥₹₩￥]")
_NEGATIVE_PREFIX_RE = re.compile(r"^[^0-9.]*-")
_NON_NUMERIC_RE = re.compile(r"[^0-9.]")
_EXPONENT_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)[eE][+-]?\d+$")


def _strip_currency_marks(text: str, profile: CurrencyProfile | None) -> str:
    if profile is not None:
        for keyword in profile.keywords:
            text = re.sub(re.escape(keyword), "", text, flags=re.IGNORECASE)
    return _GENERIC_GLYPHS_RE.sub("", text)


def _normalize_separators(text: str, profile: CurrencyProfile | None) -> str:
    if profile is not None and profile.comma_decimal:
        # 1.234,56 -> 1234.56 ; 1.234.567 -> 1234567
        parts = text.split(",")
        if len(parts) == 2:
            return parts[0].replace(".", "") + "." + parts[1]
        return text.replace(".", "")
    # 1,234.56 -> 1234.56
    return text.replace(",", "")


def parse_amount_strict(raw: object, currency: str | None = DEFAULT_CURRENCY) -> float:
    """Parse a cell into a signed float, raising ``ValueError`` on failure.

    Numeric input (``int``/``float``, e.g. from a spreadsheet cell) passes
    through unchanged. Text is cleaned in this order:

    1. Keywords/symbols of the hinted currency are removed (case-insensitive),
       then any remaining generic currency glyph.
    2. Text in exponent form (``"1e-05"``, ``"1.5E+07"``) is converted
       directly, honoring surrounding parentheses.
    3. Separators follow the hinted currency's convention. Comma-decimal
       currencies treat a single comma as the decimal mark and dots as
       grouping; everything else drops commas.
    4. A leading minus (before the first digit) or surrounding parentheses
       mark the amount negative; every other non-digit, non-dot character is
       dropped.

    Unknown or missing hints behave like dot-decimal, with generic glyph
    stripping only.
    """

    if isinstance(raw, bool):
        raise ValueError(f"invalid amount: {raw!r}")
    if isinstance(raw, (int, float)):
        value = float(raw)
        if not math.isfinite(value):
            raise ValueError(f"invalid amount: {raw!r}")
        return value
    if raw is None:
        raise ValueError("amount is required")

    profile = get_profile(currency)
    text = _strip_currency_marks(str(raw).strip(), profile).strip()

    negative = False
    if text.startswith("(") and text.endswith(")") and len(text) >= 2:
        negative = True
        text = text[1:-1].strip()

    # Exponent form ("1e-05", "1.5E+07") is what str(float) and spreadsheet
    # exports emit; it never carries grouping separators.
    if _EXPONENT_RE.match(text):
        value = float(text)
        if not math.isfinite(value):
            raise ValueError(f"invalid amount: {raw!r}")
        return -value if negative else value

    text = _normalize_separators(text, profile).strip()
    if _NEGATIVE_PREFIX_RE.match(text):
        negative = True

    digits = _NON_NUMERIC_RE.sub("", text)
    if not any(ch.isdigit() for ch in digits):
        raise ValueError(f"invalid amount: {raw!r}")
    try:
        value = float(digits)
    except ValueError as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    if not math.isfinite(value):
        raise ValueError(f"invalid amount: {raw!r}")
    return -value if negative else value


def parse_amount(raw: object, currency: str | None = DEFAULT_CURRENCY) -> float:
    """Lenient :func:`parse_amount_strict`: unparsable input yields ``0.0``.

    A genuine zero and a parse failure are indistinguishable here; callers
    that must tell them apart use :func:`parse_amount_strict`.
    """

    try:
        return parse_amount_strict(raw, currency)
    except ValueError:
        return 0.0


# ---------------------------------------------------------------------------
# Currency detection
# ---------------------------------------------------------------------------


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    # Boundaries only make sense next to word characters; glyph edges ("€",
    # "$") would otherwise never match beside digits or spaces.
    prefix = r"\b" if re.match(r"\w", keyword[0]) else ""
    suffix = r"\b" if re.match(r"\w", keyword[-1]) else ""
    return re.compile(prefix + re.escape(keyword) + suffix, re.IGNORECASE)


_KEYWORD_PATTERNS: Mapping[str, tuple[re.Pattern[str], ...]] = MappingProxyType(
    {p.code: tuple(_keyword_pattern(k) for k in p.keywords) for p in CURRENCY_CATALOG}
)


def _keyword_hits(code: str, corpus: str) -> int:
    return sum(len(pat.findall(corpus)) for pat in _KEYWORD_PATTERNS[code])


def _pick_best(scores: Mapping[str, int]) -> str:
    # Strictly-greater comparison keeps the earliest catalog entry on ties.
    best_code = CURRENCY_CATALOG[0].code
    best_score = -1
    for profile in CURRENCY_CATALOG:
        score = scores.get(profile.code, 0)
        if score > best_score:
            best_code, best_score = profile.code, score
    return best_code


def score_currencies(transactions: Transactions) -> dict[str, int]:
    """Return the detection score for every catalog currency, in catalog order.

    Scoring per currency:

    - +10 per keyword occurrence in the case-folded descriptions;
    - +5 when the mean absolute amount is within the typical range;
    - +3 when the mean exceeds 10,000 and the currency is high-denomination;
    - +3 when the mean is below 1,000 and the currency is low-denomination.
    """

    if not transactions:
        return {p.code: 0 for p in CURRENCY_CATALOG}

    corpus = " ".join(str(t.description or "").casefold() for t in transactions)
    mean_abs = sum(abs(t.amount) for t in transactions) / len(transactions)

    scores: dict[str, int] = {}
    for profile in CURRENCY_CATALOG:
        score = _keyword_hits(profile.code, corpus) * _KEYWORD_POINTS
        low, high = profile.amount_range
        if low <= mean_abs <= high:
            score += _RANGE_POINTS
        if mean_abs > _HIGH_DENOMINATION_MEAN and profile.code in HIGH_DENOMINATION:
            score += _DENOMINATION_POINTS
        if mean_abs < _LOW_DENOMINATION_MEAN and profile.code in LOW_DENOMINATION:
            score += _DENOMINATION_POINTS
        scores[profile.code] = score
    return scores


def detect_currency(transactions: Transactions) -> CurrencyCode:
    """Infer the currency of a transaction batch.

    Returns ``"USD"`` for an empty batch. Otherwise returns the best-scoring
    catalog code (see :func:`score_currencies`); ties, including the all-zero
    case, resolve to the earliest catalog entry.
    """

    if not transactions:
        return DEFAULT_CURRENCY
    scores = score_currencies(transactions)
    code = _pick_best(scores)
    _logger.debug(
        "currency:detected code=%s score=%d transactions=%d",
        code,
        scores[code],
        len(transactions),
    )
    return code


def sniff_currency(texts: Iterable[object]) -> CurrencyCode | None:
    """Guess a currency from keyword hits in raw text, before amounts exist.

    Used to pick a parsing hint for amount cells such as ``"Rp 150.000"``.
    Returns ``None`` when no keyword of any currency occurs.
    """

    corpus = " ".join(str(t).casefold() for t in texts if t is not None)
    if not corpus.strip():
        return None
    scores = {p.code: _keyword_hits(p.code, corpus) for p in CURRENCY_CATALOG}
    if max(scores.values()) == 0:
        return None
    return _pick_best(scores)


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _LocaleFormat:
    decimal: str = "."
    group: str = ","
    symbol_gap: str = ""
    lakh_grouping: bool = False


_LOCALE_FORMATS: Mapping[str, _LocaleFormat] = MappingProxyType(
    {
        "en-US": _LocaleFormat(),
        "en-GB": _LocaleFormat(),
        "ja-JP": _LocaleFormat(),
        "id-ID": _LocaleFormat(decimal=",", group=".", symbol_gap="\u00a0"),
        "zh-CN": _LocaleFormat(),
        "en-IN": _LocaleFormat(lakh_grouping=True),
        "ko-KR": _LocaleFormat(),
        "en-CA": _LocaleFormat(),
        "en-AU": _LocaleFormat(),
    }
)

# Symbol shown for a currency in its representative locale.
_DISPLAY_SYMBOLS: Mapping[str, str] = MappingProxyType(
    {
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
        "JPY": "￥",
        "IDR": "Rp",
        "CNY": "¥",
        "INR": "₹",
        "KRW": "₩",
        "CAD": "$",
        "AUD": "$",
    }
)


def _group_digits(digits: str, sep: str, *, lakh: bool) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    step = 2 if lakh else 3
    groups: list[str] = []
    while len(head) > step:
        groups.insert(0, head[-step:])
        head = head[:-step]
    groups.insert(0, head)
    return sep.join([*groups, tail])


def _render(amount: float, *, symbol: str, fraction_digits: int, fmt: _LocaleFormat) -> str:
    value = Decimal(str(amount))
    if not value.is_finite():
        raise ValueError(f"cannot format non-finite amount {amount!r}")
    with localcontext() as ctx:
        # Enough digits for the integer part plus the requested fraction.
        ctx.prec = max(28, value.adjusted() + fraction_digits + 2)
        q = value.quantize(Decimal(1).scaleb(-fraction_digits), rounding=ROUND_HALF_UP)
    negative = q < 0
    text = f"{q.copy_abs():.{fraction_digits}f}"
    int_part, _, frac = text.partition(".")
    number = _group_digits(int_part, fmt.group, lakh=fmt.lakh_grouping)
    if fraction_digits:
        number = f"{number}{fmt.decimal}{frac}"
    return f"{'-' if negative else ''}{symbol}{fmt.symbol_gap}{number}"


def _format_usd(amount: float) -> str:
    try:
        return _render(amount, symbol="$", fraction_digits=2, fmt=_LOCALE_FORMATS["en-US"])
    except (ValueError, ArithmeticError):
        return "$NaN"


def format_currency(amount: float, currency: str | None = DEFAULT_CURRENCY) -> str:
    """Render ``amount`` for display in ``currency``'s representative locale.

    JPY, KRW and IDR render without fractional digits; all other currencies
    with exactly two. Unknown codes, and any failure while rendering, fall
    back to a USD rendering with two fractional digits. Never raises.
    """

    profile = get_profile(currency)
    if profile is None:
        _logger.debug("currency:format_fallback code=%r reason=unknown_code", currency)
        return _format_usd(amount)
    try:
        return _render(
            amount,
            symbol=_DISPLAY_SYMBOLS[profile.code],
            fraction_digits=profile.fraction_digits,
            fmt=_LOCALE_FORMATS[profile.locale],
        )
    except (KeyError, ValueError, ArithmeticError) as e:
        _logger.debug(
            "currency:format_fallback code=%s reason=%s", profile.code, e.__class__.__name__
        )
        return _format_usd(amount)


__all__ = [
    "CURRENCY_CATALOG",
    "CURRENCY_PROFILES",
    "DEFAULT_CURRENCY",
    "HIGH_DENOMINATION",
    "LOW_DENOMINATION",
    "detect_currency",
    "format_currency",
    "get_profile",
    "parse_amount",
    "parse_amount_strict",
    "score_currencies",
    "sniff_currency",
]
