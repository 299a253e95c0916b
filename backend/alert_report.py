"""
Run discovery and scanning across all accounts and render the alert message.
"""

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional

from errors import ConnectivityError
from models import Alert, RunResult, ScanFailure
from quota_policy import QuotaPolicy
from throughput_scanner import scan_account

MESSAGE_HEADER = 'The following Cosmos DB collections exceed their maximum throughput:'
FAILURES_HEADER = 'The following Cosmos DB accounts could not be scanned:'

# Configuration
ISOLATE_FAILURES = os.environ.get('QUOTA_MONITOR_ISOLATE_FAILURES', '0') == '1'
_max_workers_env = os.environ.get('QUOTA_MONITOR_MAX_WORKERS', '').strip()
MAX_WORKERS = int(_max_workers_env) if _max_workers_env.isdigit() and int(_max_workers_env) > 0 else None


def format_alert_message(alerts: Iterable[Alert], failures: Iterable[ScanFailure] = ()) -> Optional[str]:
    """
    Render alerts (and scan failures, if any) as a plain-text message body.

    Returns None when there is nothing to report.
    """
    alerts = list(alerts)
    failures = list(failures)
    if not alerts and not failures:
        return None

    lines = []
    if alerts:
        lines.append(MESSAGE_HEADER)
        lines.extend(f"- {alert.render()}" for alert in alerts)
    if failures:
        if lines:
            lines.append('')
        lines.append(FAILURES_HEADER)
        lines.extend(f"- {failure.endpoint_uri}: {failure.error}" for failure in failures)
    return '\n'.join(lines)


class QuotaReporter:
    """Fans the throughput scan out over all discovered accounts and merges the alerts."""

    def __init__(self, discovery, policy: Optional[QuotaPolicy] = None, scanner=scan_account,
                 max_workers: Optional[int] = None, isolate_failures: Optional[bool] = None):
        self.discovery = discovery
        self.policy = policy or QuotaPolicy()
        self.scanner = scanner
        self.max_workers = MAX_WORKERS if max_workers is None else max_workers
        self.isolate_failures = ISOLATE_FAILURES if isolate_failures is None else isolate_failures

    def collect(self) -> RunResult:
        """
        Scan every account concurrently.

        Without failure isolation the first failed scan is raised and no result
        is produced, even if other accounts already returned alerts.
        """
        accounts = self.discovery.discover_all()
        print(f"✓ Discovered {len(accounts)} Cosmos DB accounts")

        result = RunResult()
        if not accounts:
            return result

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self.scanner, account.endpoint_uri, account.read_only_key, self.policy): account
                for account in accounts
            }
            for future in as_completed(futures):
                account = futures[future]
                try:
                    result.alerts.extend(future.result())
                except ConnectivityError as e:
                    if not self.isolate_failures:
                        for pending in futures:
                            pending.cancel()
                        raise
                    print(f"❌ Error scanning {account.endpoint_uri}: {e}")
                    result.failures.append(ScanFailure(account.endpoint_uri, str(e)))

        print(f"✓ Scan complete: {len(result.alerts)} alerts, {len(result.failures)} failed accounts")
        return result

    def run(self) -> Optional[str]:
        """Return the alert message body, or None when nothing exceeds its maximum."""
        result = self.collect()
        return format_alert_message(result.alerts, result.failures)
