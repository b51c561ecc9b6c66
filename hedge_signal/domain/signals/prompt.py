"""Prompt builder for model-backed signal generation."""

from hedge_signal.domain.signals.entities import (
    MarketSnapshot,
    PortfolioSnapshot,
    RiskTolerance,
)
from hedge_signal.domain.signals.risk_policy import guidance_for, threshold_for

RESPONSE_SCHEMA = (
    "{\n"
    '  "action": "BUY_HEDGE" | "SELL_HEDGE" | "HOLD",\n'
    '  "confidence": <0-100>,\n'
    '  "reasoning": "<2-3 sentences explaining the recommendation>",\n'
    '  "suggestedPercentage": <0-100, percentage of available funds to use>,\n'
    '  "targetHedgeAllocation": <0-100, ideal hedge asset percentage after trade>,\n'
    '  "riskLevel": "low" | "medium" | "high"\n'
    "}"
)


def _signed(value) -> str:
    return f"+{value:.2f}" if value > 0 else f"{value:.2f}"


def build_prompt(
    market: MarketSnapshot,
    portfolio: PortfolioSnapshot,
    tolerance: RiskTolerance,
) -> str:
    """Render the recommendation prompt for one request.

    Embeds the market and portfolio snapshot, the tolerance with its
    minimum confidence, and the exact JSON schema expected back.
    """
    threshold = threshold_for(tolerance)
    hedge_value = portfolio.hedge_value(market.price)

    return (
        "You are an AI trading advisor specializing in hedging a stable-value "
        "portfolio with a hedge asset (tokenized gold) for inflation protection.\n"
        "\n"
        "CURRENT MARKET CONDITIONS:\n"
        f"- Hedge Asset Spot Price: ${market.price:.2f}\n"
        f"- 24h Price Change: {_signed(market.change_24h_percent)}%\n"
        f"- Inflation Rate: {market.inflation_rate_percent:.1f}%\n"
        f"- USD Strength Index (DXY): {market.usd_strength_index:.1f}\n"
        f"- Market Sentiment: {market.sentiment.value.upper()}\n"
        "\n"
        "USER PORTFOLIO:\n"
        f"- Total Portfolio Value: ${portfolio.total_value:.2f}\n"
        f"- Stable Balance: ${portfolio.stable_amount:.2f}\n"
        f"- Hedge Holdings: {portfolio.hedge_asset_amount:.4f} units (${hedge_value:.2f})\n"
        f"- Current Hedge Allocation: {portfolio.hedge_percent:.1f}%\n"
        f"- Risk Tolerance: {tolerance.value.upper()}\n"
        f"- Minimum Confidence for Trade: {threshold.min_confidence}%\n"
        f"- Maximum Trade Size: {threshold.max_trade_percent}% of available funds\n"
        "\n"
        "ANALYSIS GUIDELINES:\n"
        "1. Consider the hedge asset as an inflation hedge - higher inflation should favor it\n"
        "2. Strong USD typically pressures hedge asset prices\n"
        f"3. {guidance_for(tolerance)}\n"
        "4. Target hedge allocation should be 30-70% for balanced portfolios\n"
        "5. Consider transaction costs - don't suggest small rebalancing trades\n"
        "\n"
        "Provide your recommendation as a JSON object:\n"
        f"{RESPONSE_SCHEMA}\n"
        "\n"
        "IMPORTANT: Respond with ONLY the JSON object, no markdown formatting or extra text."
    )
