"""
CLI entry point.

Usage:
    # Serve the API
    python -m hedge_signal.cli serve --port 8000

    # Compute one signal locally, without the payment gate
    python -m hedge_signal.cli signal --value 10000 --hedge 20 --risk moderate
"""

import argparse
import asyncio
import json
import logging
from decimal import Decimal

from hedge_signal.core.config import settings
from hedge_signal.domain.signals.entities import PortfolioSnapshot, RiskTolerance
from hedge_signal.shared.logging import configure_logging

logger = logging.getLogger(__name__)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server."""
    import uvicorn

    logger.info("Starting %s at http://%s:%d", settings.project_name, args.host, args.port)
    uvicorn.run("hedge_signal.main:app", host=args.host, port=args.port, reload=False)


def cmd_signal(args: argparse.Namespace) -> None:
    """Print one signal for the given allocation as JSON."""
    from hedge_signal.interfaces.signals.dependencies import (
        get_market_data_port,
        get_recommendation_engine,
    )

    tolerance = RiskTolerance.parse(args.risk)
    market = get_market_data_port().get_snapshot()
    portfolio = PortfolioSnapshot.from_allocation(
        Decimal(args.value), Decimal(args.hedge), market.price
    )
    engine = get_recommendation_engine()
    signal = asyncio.run(engine.generate_signal(market, portfolio, tolerance))
    print(
        json.dumps(
            {
                "action": signal.action.value,
                "confidence": signal.confidence,
                "reasoning": signal.reasoning,
                "suggestedAmount": str(signal.suggested_amount),
                "suggestedPercent": str(signal.suggested_percent),
                "targetHedgeAllocation": str(signal.target_hedge_allocation),
                "riskLevel": signal.risk_level.value,
                "referencePrice": str(signal.reference_price),
                "source": signal.source.value,
            },
            indent=2,
        )
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="HedgeSignal CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=cmd_serve)

    signal_parser = subparsers.add_parser("signal", help="Compute one signal locally")
    signal_parser.add_argument("--value", required=True, help="Portfolio value in USD")
    signal_parser.add_argument("--hedge", required=True, help="Hedge allocation in %%")
    signal_parser.add_argument(
        "--risk",
        default=RiskTolerance.MODERATE.value,
        choices=[member.value for member in RiskTolerance],
    )
    signal_parser.set_defaults(func=cmd_signal)

    args = parser.parse_args()
    configure_logging(level=settings.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
