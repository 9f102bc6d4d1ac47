import json, os, re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from errors import ReportWriteError
from fingerprints import HeaderValue

# ---------------- Results ----------------
@dataclass
class FetchResult:
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    headers: Dict[str, HeaderValue] = field(default_factory=dict)
    body_snippet: str = ""
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "FetchResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if not self.ok:
            return {"error": self.error}
        return {
            "status_code": self.status_code,
            "status_text": self.status_text,
            "headers": self.headers,
            "body_snippet": self.body_snippet,
        }

@dataclass
class DnsResult:
    addresses: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"error": self.error}
        return {"addresses": self.addresses}

@dataclass
class SubdomainHit:
    fqdn: str
    addresses: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"fqdn": self.fqdn, "addresses": self.addresses}

@dataclass
class Report:
    """Everything one run found. Built once, written once."""
    target: str
    domain: str
    started_at: str
    finished_at: Optional[str] = None
    http: Optional[FetchResult] = None
    dns: Optional[DnsResult] = None
    subdomains: List[SubdomainHit] = field(default_factory=list)
    tech: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "domain": self.domain,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "http": self.http.to_dict() if self.http else None,
            "dns": self.dns.to_dict() if self.dns else None,
            "subdomains": [s.to_dict() for s in self.subdomains],
            "tech": list(self.tech),
        }

# ---------------- Naming ----------------
def iso_now(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def safe_filename(s: str) -> str:
    return re.sub(r'[:/\\?#&=]', '_', s)

def report_filename(domain: str, started_at: str) -> str:
    stamp = re.sub(r'[:.]', '-', started_at)
    return f"recon-{safe_filename(domain)}-{stamp}.json"

# ---------------- Writing ----------------
def write_report(report: Report, output_dir: str) -> str:
    path = os.path.join(output_dir, report_filename(report.domain, report.started_at))
    try:
        os.makedirs(output_dir or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)
    except OSError as e:
        raise ReportWriteError(path, e) from e
    return path
