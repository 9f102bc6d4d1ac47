"""Shared fixtures for recon tests."""

import asyncio

import aiodns
import pytest


class FakeAnswer:
    """Stand-in for an aiodns A-record answer."""

    def __init__(self, host: str):
        self.host = host


class FakeResolver:
    """Answers A queries from a dict; unknown names raise NXDOMAIN, hung names never answer."""

    def __init__(self, records=None, hang=()):
        self.records = records or {}
        self.hang = set(hang)
        self.queries = []
        self.closed = False

    async def query(self, host, qtype):
        self.queries.append((host, qtype))
        if host in self.hang:
            await asyncio.sleep(3600)
        if host not in self.records:
            raise aiodns.error.DNSError(4, "Domain name not found")
        return [FakeAnswer(ip) for ip in self.records[host]]

    async def close(self):
        self.closed = True


@pytest.fixture
def resolver() -> FakeResolver:
    """Resolver knowing example.com and two of its subdomains."""
    return FakeResolver(
        {
            "example.com": ["93.184.216.34"],
            "www.example.com": ["93.184.216.34", "93.184.216.34"],
            "mail.example.com": ["10.0.0.5"],
        }
    )


@pytest.fixture
def empty_resolver() -> FakeResolver:
    """Resolver that knows nothing."""
    return FakeResolver()
