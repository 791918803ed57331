"""Built-in text transforms.

Every function here is total over `str`: no exceptions, empty input gives
empty output. None of them looks at the registry.
"""

from __future__ import annotations

import re
import unicodedata

from conform.core.types import TransformFunc

_WORD_START_RE = re.compile(r"(?<!\S)(\S)")


def trim(value: str) -> str:
    return value.strip()


def ltrim(value: str) -> str:
    return value.lstrip()


def rtrim(value: str) -> str:
    return value.rstrip()


def lower(value: str) -> str:
    return value.lower()


def upper(value: str) -> str:
    return value.upper()


def title(value: str) -> str:
    """Upper-case the first letter of every whitespace-delimited word.

    Unlike `str.title`, the rest of each word is left as is.
    """
    return _WORD_START_RE.sub(lambda m: m.group(1).upper(), value)


def ucfirst(value: str) -> str:
    return value[:1].upper() + value[1:]


def name(value: str) -> str:
    """Trim, upper-case the first character, lower-case the rest."""
    value = value.strip()
    return value[:1].upper() + value[1:].lower()


def email(value: str) -> str:
    return value.strip().lower()


def split_words(value: str) -> list[str]:
    """Split text into words on non-alphanumerics and case boundaries.

    "LeeBensonWasHere" -> ["Lee", "Benson", "Was", "Here"]
    "HTTPServer_port"  -> ["HTTP", "Server", "port"]
    """
    words: list[str] = []
    current = ""

    for i, ch in enumerate(value):
        if not ch.isalnum():
            if current:
                words.append(current)
                current = ""
            continue

        if current and ch.isupper():
            prev = current[-1]
            next_is_lower = i + 1 < len(value) and value[i + 1].islower()
            # "aB" and "1B" start a word; so does the last capital of an acronym in "HTTPServer"
            if prev.islower() or prev.isdigit() or (prev.isupper() and next_is_lower):
                words.append(current)
                current = ""

        current += ch

    if current:
        words.append(current)
    return words


def camel(value: str) -> str:
    words = split_words(value)
    if not words:
        return ""
    head, rest = words[0], words[1:]
    return head.lower() + "".join(w[:1].upper() + w[1:].lower() for w in rest)


def snake(value: str) -> str:
    return "_".join(w.lower() for w in split_words(value))


def slug(value: str) -> str:
    """URL-safe, lower-case, hyphen-joined ASCII words."""
    ascii_text = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    )
    return "-".join(w.lower() for w in split_words(ascii_text))


def only_digits(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


def strip_digits(value: str) -> str:
    return "".join(ch for ch in value if not ch.isdigit())


def only_letters(value: str) -> str:
    return "".join(ch for ch in value if ch.isalpha())


def strip_letters(value: str) -> str:
    return "".join(ch for ch in value if not ch.isalpha())


BUILTIN_TRANSFORMS: dict[str, TransformFunc] = {
    "trim": trim,
    "ltrim": ltrim,
    "rtrim": rtrim,
    "lower": lower,
    "upper": upper,
    "title": title,
    "ucfirst": ucfirst,
    "name": name,
    "email": email,
    "camel": camel,
    "snake": snake,
    "slug": slug,
    "num": only_digits,
    "!num": strip_digits,
    "alpha": only_letters,
    "!alpha": strip_letters,
}
