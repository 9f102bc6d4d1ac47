from typing import Dict, List, Optional, Union

HeaderValue = Union[str, List[str]]

HEADER_RULES = [
    # (header, label prefix)
    ("server", "Server"),
    ("x-powered-by", "X-Powered-By"),
]

BODY_RULES = [
    {"tech":"WordPress","needles":("wp-content","wordpress")},
    {"tech":"nginx (body)","needles":("nginx",)},
    {"tech":"Cloudflare (body)","needles":("cloudflare",)},
    {"tech":"Joomla","needles":("joomla",)},
    {"tech":"Drupal","needles":("drupal",)},
]

def as_text(value: HeaderValue) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(value)
    return value or ""

def first_cookie(value: HeaderValue) -> str:
    cookies = value if isinstance(value, (list, tuple)) else [value]
    if not cookies:
        return ""
    return (cookies[0] or "").split(";")[0]

def detect_technologies(headers: Optional[Dict[str, HeaderValue]], body: Optional[str]) -> List[str]:
    """Labels for every matching rule, in rule order. Pure, no I/O."""
    found: List[str] = []
    h = {k.lower(): v for k,v in (headers or {}).items()}
    for name, label in HEADER_RULES:
        if h.get(name):
            found.append(f"{label}: {as_text(h[name])}")
    if h.get("set-cookie"):
        found.append(f"Cookies: {first_cookie(h['set-cookie'])}")
    b = (body or "").lower()
    for rule in BODY_RULES:
        if any(n in b for n in rule["needles"]) and rule["tech"] not in found:
            found.append(rule["tech"])
    return found
