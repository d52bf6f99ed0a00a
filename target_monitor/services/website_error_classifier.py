import asyncio
import errno
import socket
from typing import Iterator

import httpx

TIMEOUT_MESSAGE = "Request timeout"
DNS_MESSAGE = "DNS resolution failed"
REFUSED_MESSAGE = "Connection refused"

# Fallback indicators when the underlying OS error is not in the cause chain
DNS_ERROR_STRINGS = {
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
    "name resolution",
    "errno -2",
    "errno -3",
    "errno 11001",
}

REFUSED_ERROR_STRINGS = {
    "connection refused",
    "actively refused",
    "errno 111",
    "errno 61",
    "winerror 10061",
}


class WebsiteErrorClassifier:
    """Maps a failed website request to one of the fixed probe messages."""

    def classify(self, error: BaseException) -> str:
        if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError)):
            return TIMEOUT_MESSAGE

        chain = list(self._cause_chain(error))

        for exc in chain:
            if isinstance(exc, socket.gaierror):
                return DNS_MESSAGE
            if isinstance(exc, ConnectionRefusedError):
                return REFUSED_MESSAGE
            if getattr(exc, "errno", None) == errno.ECONNREFUSED:
                return REFUSED_MESSAGE

        error_text = " ".join(str(exc).lower() for exc in chain)
        if any(indicator in error_text for indicator in DNS_ERROR_STRINGS):
            return DNS_MESSAGE
        if any(indicator in error_text for indicator in REFUSED_ERROR_STRINGS):
            return REFUSED_MESSAGE

        return str(error) or type(error).__name__

    @staticmethod
    def _cause_chain(error: BaseException) -> Iterator[BaseException]:
        """Walk causes and contexts, including every member of exception groups."""
        seen = set()
        pending = [error]
        while pending:
            current = pending.pop()
            if current is None or id(current) in seen:
                continue
            seen.add(id(current))
            yield current

            # Happy eyeballs: one failure per resolved address
            if isinstance(current, BaseExceptionGroup):
                pending.extend(reversed(current.exceptions))
            pending.append(current.__cause__ or current.__context__)
