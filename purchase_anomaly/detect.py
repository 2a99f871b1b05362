"""
Flag anomalous purchases in a social network event log.

Builds the base network and purchase history from the batch log (no
checking), then processes the stream log with anomaly checking and writes
every flagged purchase to the output file as JSON lines.

Usage:
  python -m purchase_anomaly.detect log_input/batch_log.json log_input/stream_log.json log_output/flagged_purchases.json
  detect-anomalous-purchases batch_log.json stream_log.json flagged.json --model timing_aware
"""

from __future__ import annotations

import argparse
import time
from pathlib import Path

from purchase_anomaly.analysis_engine.network import NETWORK_MODELS
from purchase_anomaly.anomaly_logging import get_logger
from purchase_anomaly.config import get_settings
from purchase_anomaly.config.settings import Settings
from purchase_anomaly.core.exceptions import ConfigurationError, MalformedEventError
from purchase_anomaly.event_log.parser import read_events
from purchase_anomaly.event_log.writer import write_anomalies
from purchase_anomaly.stream.orchestrator import StreamOrchestrator

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Flag purchases far above the mean of a user's social network")
    ap.add_argument("batch_log", type=Path, help="Historical events that build the initial network")
    ap.add_argument("stream_log", type=Path, help="Incoming events to check for anomalous purchases")
    ap.add_argument("flagged_output", type=Path, help="Output JSON-lines file of flagged purchases")
    ap.add_argument(
        "--model",
        choices=sorted(NETWORK_MODELS),
        default=None,
        help="Network timing model (default: PURCHASE_NETWORK_MODEL or timing_ignored)",
    )
    ap.add_argument(
        "--allow-parallel-edges",
        action="store_true",
        default=None,
        help="Keep a duplicate edge for every repeated befriend event",
    )
    ap.add_argument(
        "--strict",
        action="store_true",
        help="Stop at the first malformed line instead of skipping it",
    )
    return ap


def _resolve_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command line overrides applied."""
    overrides = get_settings().to_dict()
    if args.model is not None:
        overrides["network_model"] = args.model
    if args.allow_parallel_edges is not None:
        overrides["allow_parallel_edges"] = args.allow_parallel_edges
    return Settings(**overrides)


def load_batch(orchestrator: StreamOrchestrator, batch_log: Path, *, strict: bool = False) -> None:
    """Apply the historical events without anomaly checking."""
    orchestrator.run(read_events(batch_log, strict=strict), check_anomalies=False)
    logger.info(
        "batch_loaded",
        path=str(batch_log),
        users=len(orchestrator.graph),
        **orchestrator.stats.to_dict(),
    )


def check_stream(
    orchestrator: StreamOrchestrator,
    stream_log: Path,
    flagged_output: Path,
    *,
    strict: bool = False,
) -> int:
    """Apply the incoming events with anomaly checking; returns the number of flagged purchases written."""
    flagged = orchestrator.process(read_events(stream_log, strict=strict), check_anomalies=True)
    written = write_anomalies(flagged, flagged_output)
    logger.info(
        "stream_finished",
        path=str(stream_log),
        output=str(flagged_output),
        written=written,
        **orchestrator.stats.to_dict(),
    )
    return written


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    for path in (args.batch_log, args.stream_log):
        if not path.is_file():
            logger.error("detect_input_missing", path=str(path))
            print(f"[detect] Input file not found: {path}")
            return 1

    try:
        settings = _resolve_settings(args)
    except ConfigurationError as e:
        logger.error("detect_config_error", error=str(e))
        print(f"[detect] Invalid configuration: {e}")
        return 1

    logger.info("detect_start", **settings.to_dict())
    orchestrator = StreamOrchestrator.from_settings(settings)
    try:
        load_batch(orchestrator, args.batch_log, strict=args.strict)
        started = time.perf_counter()
        written = check_stream(orchestrator, args.stream_log, args.flagged_output, strict=args.strict)
    except MalformedEventError as e:
        logger.error("detect_malformed_input", line=e.line_number, reason=e.reason)
        print(f"[detect] Malformed input: {e}")
        return 1
    elapsed_ms = (time.perf_counter() - started) * 1000

    print(f"Found {written} anomalies.")
    print(f"Anomaly check took {elapsed_ms:.0f} milliseconds")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
