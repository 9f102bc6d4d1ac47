import argparse, asyncio, codecs, re, sys
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

import aiodns
import httpx
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from errors import InvalidTargetError, ReportWriteError, UsageError
from fingerprints import HeaderValue, detect_technologies
from report import DnsResult, FetchResult, Report, SubdomainHit, iso_now, write_report

__version__ = "1.0.0"

DEFAULT_TIMEOUT = 8000  # ms
DEFAULT_OUTPUT_DIR = "."
DNS_TIMEOUT = 5.0  # seconds, per lookup
SNIPPET_BYTES = 8192

SUBDOMAIN_WORDS = [
    "www", "api", "admin", "dev", "test", "mail", "ftp", "stage", "beta", "portal", "shop", "m",
]

# Only these exact token shapes are flags; everything else is a target candidate.
FLAG_RE = re.compile(r'^--(?:timeout|output)=|^--verbose$')
SCHEME_RE = re.compile(r'^https?://', re.I)
BAD_HOST_CHARS = set('%<>^|"\'`{}\\')
TEXT_MEDIA = ("json", "xml", "javascript", "ecmascript")

console = Console()
err_console = Console(stderr=True)

@dataclass(frozen=True)
class Config:
    target: str
    timeout_ms: int = DEFAULT_TIMEOUT
    output_dir: str = DEFAULT_OUTPUT_DIR
    verbose: bool = False

@dataclass(frozen=True)
class Target:
    url: str
    domain: str

def vlog(enabled: bool, msg: str):
    if enabled:
        console.print(f"[dim]{escape(msg)}[/dim]")

def unique(seq: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for x in seq:
        if x and x not in seen:
            seen.add(x)
            out.append(x)
    return out

# ---------------- CLI ----------------
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="recon",
        usage="%(prog)s <target> [--timeout=ms] [--output=folder] [--verbose]",
        description="Simple web recon: HTTP fetch, DNS, common subdomains, tech fingerprint.",
        add_help=False,
        allow_abbrev=False,
    )
    p.add_argument("--timeout", default=None, help="HTTP timeout in milliseconds")
    p.add_argument("--output", default=None, help="Folder for the JSON report")
    p.add_argument("--verbose", action="store_true", help="Trace each step")
    return p

def parse_timeout(raw: Optional[str]) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT
    return value if value > 0 else DEFAULT_TIMEOUT

def parse_args(argv: Sequence[str]) -> Config:
    """Turn argv into a Config. Unknown or malformed flags never raise;
    the first token that isn't a recognised flag is the target."""
    flags: List[str] = []
    rest: List[str] = []
    for tok in argv:
        (flags if FLAG_RE.match(tok) else rest).append(tok)
    if not rest:
        raise UsageError("no target given")
    ns = build_parser().parse_args(flags)
    return Config(
        target=rest[0],
        timeout_ms=parse_timeout(ns.timeout),
        output_dir=ns.output or DEFAULT_OUTPUT_DIR,
        verbose=bool(ns.verbose),
    )

def normalize_target(raw: str) -> Target:
    s = (raw or "").strip()
    if not SCHEME_RE.match(s):
        s = "http://" + s
    try:
        url = httpx.URL(s)
    except (httpx.InvalidURL, ValueError) as e:
        raise InvalidTargetError(raw) from e
    # punycode, so the URL, report domain and subdomain names agree
    host = url.raw_host.decode("ascii")
    if not host or any(c.isspace() or c in BAD_HOST_CHARS for c in host):
        raise InvalidTargetError(raw)
    if not urlsplit(str(url)).path:
        url = url.copy_with(path="/")
    return Target(url=str(url), domain=host)

# ---------------- HTTP ----------------
def collect_headers(headers: httpx.Headers) -> Dict[str, HeaderValue]:
    out: Dict[str, HeaderValue] = {k: headers[k] for k in headers.keys()}
    if "set-cookie" in headers:
        out["set-cookie"] = headers.get_list("set-cookie")
    return out

def is_textual(content_type: str, raw: bytes) -> bool:
    media = (content_type or "").split(";")[0].strip().lower()
    if media:
        return media.startswith("text/") or any(t in media for t in TEXT_MEDIA)
    if not raw:
        return False
    try:
        # final=False tolerates a multi-byte sequence cut at the snippet boundary
        codecs.getincrementaldecoder("utf-8")().decode(raw, final=False)
    except UnicodeDecodeError:
        return False
    return True

def decode_snippet(raw: bytes, encoding: Optional[str]) -> str:
    try:
        return raw.decode(encoding or "utf-8", errors="ignore")
    except LookupError:
        return raw.decode("utf-8", errors="ignore")

async def read_snippet(r: httpx.Response, limit: int = SNIPPET_BYTES) -> bytes:
    buf = bytearray()
    async for chunk in r.aiter_bytes():
        buf.extend(chunk)
        if len(buf) >= limit:
            break
    return bytes(buf[:limit])

async def fetch_http(client: httpx.AsyncClient, url: str, timeout_ms: int, verbose: bool = False) -> FetchResult:
    vlog(verbose, f"[HTTP] Fetching {url} (timeout={timeout_ms}ms)")
    try:
        async with client.stream("GET", url, timeout=timeout_ms / 1000, follow_redirects=True) as r:
            raw = await read_snippet(r)
            snippet = decode_snippet(raw, r.encoding) if is_textual(r.headers.get("content-type", ""), raw) else ""
            return FetchResult(
                status_code=r.status_code,
                status_text=r.reason_phrase,
                headers=collect_headers(r.headers),
                body_snippet=snippet,
            )
    except httpx.HTTPError as e:
        return FetchResult.failed(str(e) or e.__class__.__name__)

# ---------------- DNS ----------------
def dns_error(e: BaseException) -> str:
    if isinstance(e, asyncio.TimeoutError):
        return "DNS query timed out"
    if isinstance(e, aiodns.error.DNSError) and len(e.args) > 1:
        return str(e.args[1])
    return str(e) or e.__class__.__name__

async def resolve_a(resolver, host: str, timeout: float = DNS_TIMEOUT) -> List[str]:
    answers = await asyncio.wait_for(resolver.query(host, "A"), timeout)
    return unique(a.host for a in answers)

async def resolve_domain(resolver, domain: str, verbose: bool = False, timeout: float = DNS_TIMEOUT) -> DnsResult:
    vlog(verbose, f"[DNS] Resolving A records for {domain}")
    try:
        ips = await resolve_a(resolver, domain, timeout)
    except (aiodns.error.DNSError, asyncio.TimeoutError) as e:
        return DnsResult(error=dns_error(e))
    return DnsResult(addresses=sorted(set(ips)))

async def check_subdomains(resolver, domain: str, words: Sequence[str] = SUBDOMAIN_WORDS,
                           verbose: bool = False, timeout: float = DNS_TIMEOUT) -> List[SubdomainHit]:
    """Resolve <word>.<domain> for every word at once. Misses are dropped;
    hits come back in wordlist order."""
    vlog(verbose, f"[DNS] Checking common subdomains of {domain}")

    async def lookup(word: str) -> Optional[SubdomainHit]:
        fqdn = f"{word}.{domain}"
        try:
            ips = await resolve_a(resolver, fqdn, timeout)
        except (aiodns.error.DNSError, asyncio.TimeoutError):
            return None
        if not ips:
            return None
        vlog(verbose, f"[DNS] Found: {fqdn} -> {', '.join(ips)}")
        return SubdomainHit(fqdn=fqdn, addresses=ips)

    results = await asyncio.gather(*(lookup(w) for w in words), return_exceptions=True)
    return [r for r in results if isinstance(r, SubdomainHit)]

# ---------------- Core ----------------
async def run(config: Config, target: Target, resolver=None) -> Report:
    console.print(f"[bold cyan][*][/bold cyan] Starting recon for: {escape(target.url)}")
    report = Report(target=target.url, domain=target.domain, started_at=iso_now())
    headers = {"User-Agent": f"recon/{__version__}", "Accept": "*/*"}
    async with httpx.AsyncClient(headers=headers) as client:
        report.http = await fetch_http(client, target.url, config.timeout_ms, config.verbose)
    report.tech = detect_technologies(report.http.headers, report.http.body_snippet)
    owned = resolver is None
    if owned:
        resolver = aiodns.DNSResolver(timeout=DNS_TIMEOUT, tries=1)
    try:
        report.dns = await resolve_domain(resolver, target.domain, config.verbose)
        report.subdomains = await check_subdomains(resolver, target.domain, SUBDOMAIN_WORDS, config.verbose)
    finally:
        if owned:
            await resolver.close()
    report.finished_at = iso_now()
    return report

def print_summary(report: Report):
    table = Table(title=f"Recon summary: {escape(report.domain)}", show_lines=False)
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Result")
    http = report.http
    if http is not None and http.ok:
        table.add_row("HTTP", f"{http.status_code} {escape(http.status_text or '')}".strip())
    elif http is not None:
        table.add_row("HTTP", f"[red]{escape(http.error)}[/red]")
    dns = report.dns
    if dns is not None and dns.error is None:
        table.add_row("DNS (A)", ", ".join(dns.addresses) or "-")
    elif dns is not None:
        table.add_row("DNS (A)", f"[red]{escape(dns.error)}[/red]")
    for hit in report.subdomains:
        table.add_row(escape(hit.fqdn), f"[magenta]{', '.join(hit.addresses)}[/magenta]")
    table.add_row("Tech", escape(", ".join(report.tech)) or "[dim]none detected[/dim]")
    console.print(table)

def main(argv: Optional[Sequence[str]] = None):
    try:
        config = parse_args(sys.argv[1:] if argv is None else argv)
    except UsageError:
        console.print(build_parser().format_usage().rstrip(), markup=False, highlight=False)
        sys.exit(1)
    try:
        target = normalize_target(config.target)
    except InvalidTargetError as e:
        err_console.print(str(e), markup=False, highlight=False)
        sys.exit(1)
    try:
        report = asyncio.run(run(config, target))
        path = write_report(report, config.output_dir)
    except ReportWriteError as e:
        err_console.print(f"[red]Fatal error:[/red] {escape(str(e))}")
        sys.exit(1)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Interrupted by user.[/yellow]")
        sys.exit(130)
    console.print(f"[bold green][+][/bold green] Report saved to: {escape(path)}")
    print_summary(report)

if __name__ == "__main__":
    main()
