"""
CLI Interface for the Analytics Engine

Provides command-line access to organization metrics, trends, engagement,
anomaly detection and the real-time snapshot. Results are printed as JSON.
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Optional

from .models import DateRange, Sensitivity, TrendPeriod
from .primitives import as_utc


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


def parse_date_range(args) -> Optional[DateRange]:
    start = getattr(args, 'start', None)
    end = getattr(args, 'end', None)
    if not start and not end:
        return None
    return DateRange(
        start=as_utc(datetime.fromisoformat(start)) if start else None,
        end=as_utc(datetime.fromisoformat(end)) if end else None,
    )


def get_engine():
    from .engine import AnalyticsEngine

    return AnalyticsEngine()


def emit(payload) -> None:
    print(json.dumps(payload, indent=2))


def run_metrics(args):
    """Print organization metrics."""
    metrics = get_engine().organization_metrics(args.org, parse_date_range(args))
    emit(metrics.to_dict())
    return 0


def run_trends(args):
    """Print the JTBD force trend."""
    series = get_engine().force_trend(args.org, TrendPeriod(args.period), parse_date_range(args))
    emit(series.to_dict())
    return 0


def run_voice(args):
    """Print the voice quality trend."""
    trends = get_engine().voice_quality_trend(args.org, parse_date_range(args))
    emit(trends.to_dict())
    return 0


def run_engagement(args):
    """Print per-user engagement, highest score first."""
    records = get_engine().user_engagement(args.org, parse_date_range(args))
    if args.limit:
        records = records[:args.limit]
    emit([record.to_dict() for record in records])
    return 0


def run_anomalies(args):
    """Print the anomaly report."""
    metrics = [m.strip() for m in args.metrics.split(',') if m.strip()]
    report = get_engine().anomalies(args.org, metrics, Sensitivity(args.sensitivity))
    emit(report.to_dict())
    return 0


def run_realtime(args):
    """Print the real-time snapshot."""
    snapshot = get_engine().real_time_snapshot(args.org)
    emit(snapshot.to_dict())
    return 0


def run_scheduler(args):
    """Run the cache warming and anomaly sweep scheduler."""
    from .scheduler import AnalyticsScheduler

    organizations = [o.strip() for o in args.orgs.split(',') if o.strip()] if args.orgs else None
    AnalyticsScheduler(get_engine(), organizations).start()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Survey Analytics - Metrics, Trends and Anomaly Detection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m analytics metrics --org acme --start 2024-01-01 --end 2024-01-31
  python -m analytics trends --org acme --period monthly
  python -m analytics anomalies --org acme --sensitivity high
  python -m analytics realtime --org acme
        """
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    def add_org_parser(name, help_text, with_range=True):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('--org', required=True, help='Organization identifier')
        if with_range:
            sub.add_argument('--start', help='Range start (ISO date or datetime, UTC)')
            sub.add_argument('--end', help='Range end (ISO date or datetime, UTC)')
        return sub

    add_org_parser('metrics', 'Show organization metrics')

    trends_parser = add_org_parser('trends', 'Show JTBD force trend')
    trends_parser.add_argument('--period', choices=[p.value for p in TrendPeriod], default='weekly',
                               help='Bucket size')

    add_org_parser('voice', 'Show voice quality trend')

    engagement_parser = add_org_parser('engagement', 'Show user engagement scores')
    engagement_parser.add_argument('--limit', type=int, default=0, help='Show only the top N users')

    anomaly_parser = add_org_parser('anomalies', 'Run anomaly detection', with_range=False)
    anomaly_parser.add_argument('--metrics', default='completion_rate,response_time,voice_quality',
                                help='Comma separated metric names')
    anomaly_parser.add_argument('--sensitivity', choices=[s.value for s in Sensitivity], default='medium',
                                help='Detection sensitivity')

    add_org_parser('realtime', 'Show real-time snapshot', with_range=False)

    schedule_parser = subparsers.add_parser('schedule', help='Run cache warming and anomaly sweeps')
    schedule_parser.add_argument('--orgs', help='Comma separated organizations (default: from config)')

    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    # Setup logging
    setup_logging(args.verbose)

    try:
        if args.command == 'metrics':
            return run_metrics(args)
        elif args.command == 'trends':
            return run_trends(args)
        elif args.command == 'voice':
            return run_voice(args)
        elif args.command == 'engagement':
            return run_engagement(args)
        elif args.command == 'anomalies':
            return run_anomalies(args)
        elif args.command == 'realtime':
            return run_realtime(args)
        elif args.command == 'schedule':
            return run_scheduler(args)
        else:
            print(f"Unknown command: {args.command}")
            return 1
    except Exception as e:
        logging.getLogger(__name__).error(f"Command '{args.command}' failed: {e}")
        print(f"❌ {args.command} failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
