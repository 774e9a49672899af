"""Guardian - Entry Point.

Campaign Guardian: daily ad-performance analysis and post-execution
monitoring of optimisation proposals.

    guardian monitor                      run the monitoring scheduler
    guardian analyze CAMPAIGN_ID [--days N] [--ai]
"""

import argparse
import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Optional

from guardian.config import Settings, get_settings
from guardian.connectors.meta.client import MetaClient
from guardian.connectors.meta.transformer import normalize_daily_records
from guardian.analyzer.pipeline import preprocess
from guardian.ai.base_provider import AIProvider
from guardian.ai.claude_provider import ClaudeProvider
from guardian.ai.context_builder import build_analysis_context, measure_context
from guardian.scheduler.jobs import start_scheduler, stop_scheduler
from guardian.core.logging import get_logger

logger = get_logger("main")


def resolve_dates(days: int, today=None) -> tuple[str, str]:
    """(since, until) covering the last ``days`` full days."""
    today = today or datetime.now(timezone.utc).date()
    until = today - timedelta(days=1)
    since = today - timedelta(days=max(days, 1))
    return since.isoformat(), until.isoformat()


async def analyze_campaign(
    client: MetaClient,
    campaign_id: str,
    since: str,
    until: str,
    settings: Settings | None = None,
    provider: Optional[AIProvider] = None,
) -> dict:
    """fetch → normalize → preprocess → context (→ AI commentary)."""
    settings = settings or get_settings()
    rows = await client.fetch_daily_insights(campaign_id, since, until)
    series = normalize_daily_records(rows, settings.analysis)
    insights = preprocess(series, settings.analysis)

    name = rows[0].get("campaign_name", "") if rows else ""
    context = build_analysis_context(
        {"id": campaign_id, "name": name},
        insights,
        series,
        settings.analysis,
        currency=settings.account_currency,
    )
    size = measure_context(context)
    logger.info(
        f"Context ready: {size['chars']} chars (~{size['approx_tokens']} tokens)",
        extra={"campaign_id": campaign_id},
    )

    result = {"context": context, "size": size, "commentary": None}
    if provider is not None and provider.is_available():
        result["commentary"] = await provider.generate_analysis(context)
    return result


async def _analyze(args, settings: Settings) -> None:
    since, until = resolve_dates(args.days)
    client = MetaClient(settings)
    try:
        result = await analyze_campaign(
            client,
            args.campaign_id,
            since,
            until,
            settings,
            ClaudeProvider(settings) if args.ai else None,
        )
    finally:
        await client.close()
    print(json.dumps(result, indent=2, ensure_ascii=False))


async def _monitor(settings: Settings) -> None:
    logger.info("Guardian monitor starting up...")
    start_scheduler(settings)
    try:
        await asyncio.Event().wait()
    finally:
        stop_scheduler()
        logger.info("Guardian monitor shut down")


def run(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="guardian")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("monitor", help="Run the proposal monitoring scheduler")
    analyze = sub.add_parser("analyze", help="Analyze one campaign")
    analyze.add_argument("campaign_id")
    analyze.add_argument("--days", type=int, default=14)
    analyze.add_argument("--ai", action="store_true", help="Ask Claude for commentary")
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.command == "monitor":
        asyncio.run(_monitor(settings))
    else:
        asyncio.run(_analyze(args, settings))


if __name__ == "__main__":
    run()
