from typing import Mapping, Sequence

# 64-bit FNV-1a, matching the Go client library's series hashing
OFFSET64 = 14695981039346656037
PRIME64 = 1099511628211
SEPARATOR_BYTE = 255
_MASK64 = 0xFFFFFFFFFFFFFFFF


def hash_new() -> int:
    return OFFSET64


def hash_add(h: int, s: str) -> int:
    for byte in s.encode("utf-8"):
        h ^= byte
        h = (h * PRIME64) & _MASK64
    return h


def hash_add_byte(h: int, b: int) -> int:
    h ^= b
    return (h * PRIME64) & _MASK64


def series_hash(family_name: str, labels: Mapping[str, str]) -> int:
    """Identity of one series: family name plus label values sorted by label name.

    Label names are not part of the payload, so ``{a="1",b="2"}`` and
    ``{x="1",y="2"}`` under the same family collide.
    """
    h = hash_add_byte(hash_add(hash_new(), family_name), SEPARATOR_BYTE)
    for name in sorted(labels):
        h = hash_add_byte(hash_add(h, labels[name]), SEPARATOR_BYTE)
    return h


def friendly_string(name: str, label_names: Sequence[str], label_values: Sequence[str]) -> str:
    # names and values are sorted independently, good enough for a log line
    pairs = zip(sorted(label_names), sorted(label_values))
    return name + "{" + ",".join(f'{n}="{v}"' for n, v in pairs) + "}"
