"""Mapping from probe Metrics to a ConnectionStatus."""

from inetmon.models import ConnectionStatus, Metrics

UNSTABLE_PACKET_LOSS_PCT = 30
BAD_LATENCY_MS = 500

STATUS_DESCRIPTIONS = {
    ConnectionStatus.CONNECTED: "Internet connection is active",
    ConnectionStatus.UNSTABLE: "Connection is unstable",
    ConnectionStatus.DISCONNECTED: "No internet connection",
}
UNKNOWN_DESCRIPTION = "Status unknown"


def classify(metrics: Metrics) -> ConnectionStatus:
    """Classify a successful probe result.

    Total-failure metrics must be short-circuited by the caller (see evaluate()).

    Raises:
        ValueError: if metrics describe a total failure
    """
    if metrics.is_total_failure:
        raise ValueError("total-failure metrics cannot be classified")

    if metrics.packet_loss_pct >= UNSTABLE_PACKET_LOSS_PCT or metrics.latency_ms >= BAD_LATENCY_MS:
        return ConnectionStatus.UNSTABLE
    return ConnectionStatus.CONNECTED


def evaluate(metrics: Metrics) -> ConnectionStatus:
    """Status for any cycle result: DISCONNECTED on total failure, else classify()."""
    if metrics.is_total_failure:
        return ConnectionStatus.DISCONNECTED
    return classify(metrics)


def describe_status(status: ConnectionStatus | None) -> str:
    """Human-readable text for status; None means no cycle has completed yet."""
    if status is None:
        return UNKNOWN_DESCRIPTION
    return STATUS_DESCRIPTIONS[status]
