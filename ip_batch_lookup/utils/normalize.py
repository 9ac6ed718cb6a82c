import re
from dataclasses import dataclass, field
from typing import Any, List

# loose shape checks only: no range check on octets, no CIDR, no private ranges
IPV4_RE = re.compile(r'(?:[0-9]{1,3}\.){3}[0-9]{1,3}')
IPV6_RE = re.compile(r'[0-9a-fA-F:]+')
SPLIT_RE = re.compile(r'\r?\n|,|\s+')


@dataclass
class AddressSet:
    addresses: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)


def strip_brackets(token: str) -> str:
    # one optional [ and one optional ], as in http://[::1]:80/
    t = token.strip()
    if t.startswith('['):
        t = t[1:]
    if t.endswith(']'):
        t = t[:-1]
    return t


def is_likely_ip(token: str) -> bool:
    if not token:
        return False
    t = strip_brackets(token)
    if IPV4_RE.fullmatch(t):
        return True
    return ':' in t and IPV6_RE.fullmatch(t) is not None


def split_tokens(raw: Any) -> List[str]:
    """Turn a delimited string or a list into trimmed candidate tokens."""
    if isinstance(raw, str):
        return [t.strip() for t in SPLIT_RE.split(raw) if t and t.strip()]
    if isinstance(raw, (list, tuple)):
        tokens = []
        for item in raw:
            if isinstance(item, str):
                item = item.strip()
                if item:
                    tokens.append(item)
            elif item is not None:
                tokens.append(str(item))
        return tokens
    return []


def normalize_ips(raw: Any) -> AddressSet:
    out = AddressSet()
    seen = set()
    for token in split_tokens(raw):
        if not is_likely_ip(token):
            out.rejected.append(token)
            continue
        ip = strip_brackets(token)
        if ip in seen:
            continue
        seen.add(ip)
        out.addresses.append(ip)
    return out
