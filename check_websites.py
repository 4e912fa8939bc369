import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from checker import check_domains, read_domains, to_csv_bytes
from constants import DEFAULT_TIMEOUT, DEFAULT_WORKERS
from logging_config import configure_logging
from models import ProbeConfig


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Check whether domains are reachable for a human visitor."
    )
    p.add_argument("domains", nargs="*", help="Domains or URLs to check.")
    p.add_argument("--input", "-i", help="Text file with one domain per line.")
    p.add_argument("--output", "-o", help="Optional CSV output file.")
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Per-attempt timeout in seconds (default: 10).")
    p.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Concurrent checks (default: 8).")
    p.add_argument("--http-only", action="store_true", help="Skip the HTTPS attempt.")
    p.add_argument("--no-dns-fallback", action="store_true", help="Do not fall back to a DNS lookup.")
    p.add_argument("--verify-tls", action="store_true", help="Treat invalid certificates as failures.")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> ProbeConfig:
    config = replace(
        ProbeConfig.from_env(),
        timeout=args.timeout,
        verify_tls=args.verify_tls,
        dns_fallback=not args.no_dns_fallback,
    )
    if args.http_only:
        config = replace(config, protocols=("http",))
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    domains = list(args.domains)
    if args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            raise SystemExit(f"Input file not found: {input_path}")
        domains.extend(read_domains(input_path))
    if not domains:
        raise SystemExit("No domains to check.")

    results = check_domains(domains, build_config(args), max_workers=args.workers)
    for r in results:
        badge = "UP" if r["is_up"] else "DOWN"
        print(f"[{badge}] {r['url']}  (HTTP={r['http_status']}, reason={r['reason']})")

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(to_csv_bytes(results))
        print(f"\nCSV written -> {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
