#!/usr/bin/env python3
"""
Check the provisioned throughput of every Cosmos DB collection in every
account the managed identity can see, and email an alert listing the
collections above their maximum.

Run it from cron or a WebJob schedule:
    python check_throughput_quotas.py
    python check_throughput_quotas.py --dry-run   # print the alert, don't email it

Per-collection maximums:
    export MaximumThroughput__<account>__<database>__<collection>=6000
"""

import argparse
import os
import sys

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'backend'))

from account_discovery import AccountDiscovery
from alert_report import QuotaReporter
from errors import QuotaMonitorError
from notifier import notify


def main(argv=None):
    parser = argparse.ArgumentParser(description='Alert on Cosmos DB collections above their maximum throughput')
    parser.add_argument('--dry-run', action='store_true', help='Print the alert message instead of emailing it')
    parser.add_argument('--isolate-failures', action='store_true',
                        help='Report accounts that could not be scanned instead of failing the run')
    parser.add_argument('--max-workers', type=int, default=None, help='Number of accounts scanned in parallel')
    args = parser.parse_args(argv)

    reporter = QuotaReporter(
        AccountDiscovery(max_workers=args.max_workers),
        max_workers=args.max_workers,
        isolate_failures=True if args.isolate_failures else None
    )

    try:
        message = reporter.run()
        if message is None:
            print("✓ No collection exceeds its maximum throughput")
            return 0

        print("-" * 70)
        print(message)
        print("-" * 70)

        if args.dry_run:
            print("⚠️  Dry run: alert email not sent")
        else:
            notify(message)
        return 0
    except QuotaMonitorError as e:
        print(f"❌ Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
