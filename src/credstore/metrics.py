from __future__ import annotations

from prometheus_client import Counter, start_http_server

decode_failures_total = Counter(
    "credential_decode_failures_total",
    "Stored entries that could not be decoded",
    labelnames=["codec"],
)

store_operations_total = Counter(
    "credential_store_operations_total",
    "Operations served by transforming stores",
    labelnames=["operation"],
)


def maybe_start_metrics(*, enable: bool, bind: str, port: int) -> None:
    if not enable:
        return
    start_http_server(port, addr=bind)
