"""
Tests for the signals domain layer.

Covers entities, the risk policy, the rule-based fallback, the prompt
and payment proof rules. All tests use pure domain objects; no network.
"""

import json
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from hedge_signal.domain.signals.entities import (
    MarketSentiment,
    MarketSnapshot,
    PortfolioSnapshot,
    RiskLevel,
    RiskThreshold,
    RiskTolerance,
    SignalAction,
    SignalSource,
    TradingSignal,
    round_cents,
)
from hedge_signal.domain.signals.errors import (
    InsufficientPaymentError,
    InvalidReceiptError,
    ValidationError,
    WrongDestinationError,
)
from hedge_signal.domain.signals.fallback import (
    DECISION_TABLE,
    fallback_signal,
    jittered_confidence,
    select_rule,
)
from hedge_signal.domain.signals.payment import (
    PaymentDecision,
    PaymentProof,
    PaymentRequirement,
    PaymentState,
    check_proof,
)
from hedge_signal.domain.signals.prompt import build_prompt
from hedge_signal.domain.signals.risk_policy import (
    cap_trade_percent,
    confidence_multiplier,
    threshold_for,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
TTL = timedelta(minutes=15)


# ══════════════════════════════════════════════════════════════════════
# Fixtures: shared test data
# ══════════════════════════════════════════════════════════════════════


def _market(
    inflation: str = "3.0",
    change: str = "0.5",
    price: str = "2150.00",
    sentiment: MarketSentiment = MarketSentiment.NEUTRAL,
) -> MarketSnapshot:
    return MarketSnapshot(
        price=Decimal(price),
        change_24h_percent=Decimal(change),
        inflation_rate_percent=Decimal(inflation),
        usd_strength_index=Decimal("104.5"),
        sentiment=sentiment,
        observed_at=NOW,
    )


def _portfolio(hedge_percent: str, total: str = "10000", price: str = "2150.00"):
    return PortfolioSnapshot.from_allocation(
        Decimal(total), Decimal(hedge_percent), Decimal(price)
    )


def _signal(**overrides) -> TradingSignal:
    fields = dict(
        action=SignalAction.BUY_HEDGE,
        confidence=75,
        reasoning="test",
        suggested_amount=Decimal("100.00"),
        suggested_percent=Decimal("10"),
        target_hedge_allocation=Decimal("50"),
        risk_level=RiskLevel.LOW,
        reference_price=Decimal("2150.00"),
        created_at=NOW,
        expires_at=NOW + TTL,
    )
    fields.update(overrides)
    return TradingSignal(**fields)


def _proof(**overrides) -> dict:
    document = {
        "txReference": "0x" + "ab" * 32,
        "payerAddress": "0x" + "11" * 20,
        "payeeAddress": "0x" + "22" * 20,
        "amount": "10000",
        "tokenReference": "0x" + "33" * 20,
        "timestamp": 1735732800000,
    }
    document.update(overrides)
    return document


# ══════════════════════════════════════════════════════════════════════
# PART 1: Entities
# ══════════════════════════════════════════════════════════════════════


class TestRiskTolerance:
    """Tests for RiskTolerance.parse."""

    def test_parse_is_case_insensitive(self):
        assert RiskTolerance.parse(" Moderate ") is RiskTolerance.MODERATE

    def test_parse_accepts_member(self):
        assert RiskTolerance.parse(RiskTolerance.AGGRESSIVE) is RiskTolerance.AGGRESSIVE

    @pytest.mark.parametrize("value", ["reckless", "", None, 3])
    def test_unknown_value_rejected(self, value):
        with pytest.raises(ValidationError) as info:
            RiskTolerance.parse(value)
        assert info.value.field == "riskTolerance"
        assert info.value.code == "VALIDATION_ERROR"


class TestPortfolioSnapshot:
    """Tests for PortfolioSnapshot construction and helpers."""

    def test_from_allocation_splits_holdings(self):
        portfolio = _portfolio("20", total="10000", price="2000")
        assert portfolio.stable_amount == Decimal("8000")
        assert portfolio.hedge_asset_amount == Decimal("1")
        assert portfolio.hedge_value(Decimal("2000")) == Decimal("2000")

    def test_negative_value_rejected(self):
        with pytest.raises(ValidationError) as info:
            _portfolio("20", total="-1")
        assert info.value.field == "portfolioValue"

    @pytest.mark.parametrize("percent", ["-0.1", "100.5"])
    def test_percent_out_of_range_rejected(self, percent):
        with pytest.raises(ValidationError):
            _portfolio(percent)

    def test_non_positive_price_rejected(self):
        with pytest.raises(ValidationError):
            _portfolio("20", price="0")

    def test_available_funds_per_action(self):
        portfolio = _portfolio("20", total="10000", price="2000")
        price = Decimal("2000")
        assert portfolio.available_funds(SignalAction.BUY_HEDGE, price) == Decimal("8000")
        assert portfolio.available_funds(SignalAction.SELL_HEDGE, price) == Decimal("2000")
        assert portfolio.available_funds(SignalAction.HOLD, price) == Decimal("0")


class TestTradingSignal:
    """Tests for TradingSignal invariants."""

    def test_signal_id_generated(self):
        signal = _signal()
        assert signal.signal_id.startswith("sig_")
        assert signal.signal_id != _signal().signal_id

    def test_defaults_to_fallback_source(self):
        assert _signal().source is SignalSource.FALLBACK

    @pytest.mark.parametrize("confidence", [-1, 101])
    def test_confidence_out_of_range_rejected(self, confidence):
        with pytest.raises(ValueError):
            _signal(confidence=confidence)

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            _signal(suggested_amount=Decimal("-0.01"))

    def test_expiry_before_creation_rejected(self):
        with pytest.raises(ValueError):
            _signal(expires_at=NOW - timedelta(seconds=1))

    def test_is_frozen(self):
        signal = _signal()
        with pytest.raises(AttributeError):
            signal.confidence = 10

    def test_actionable_requires_confidence_floor(self):
        threshold = RiskThreshold(min_confidence=80, max_trade_percent=20)
        assert _signal(confidence=80).is_actionable(threshold)
        assert not _signal(confidence=79).is_actionable(threshold)

    def test_hold_is_never_actionable(self):
        threshold = RiskThreshold(min_confidence=50, max_trade_percent=60)
        signal = _signal(
            action=SignalAction.HOLD,
            confidence=99,
            suggested_amount=Decimal("0"),
            suggested_percent=Decimal("0"),
        )
        assert not signal.is_actionable(threshold)


def test_round_cents_never_rounds_up():
    assert round_cents(Decimal("10.999")) == Decimal("10.99")


def test_round_cents_handles_amounts_beyond_default_precision():
    assert round_cents(Decimal("1e27")) == Decimal("1e27")
    assert round_cents(Decimal("123456789012345678901234567.899")) == Decimal(
        "123456789012345678901234567.89"
    )


# ══════════════════════════════════════════════════════════════════════
# PART 2: Risk policy
# ══════════════════════════════════════════════════════════════════════


class TestRiskPolicy:
    """Tests for the tolerance lookup table."""

    @pytest.mark.parametrize(
        "tolerance, expected",
        [
            ("conservative", (80, 20)),
            ("moderate", (60, 40)),
            ("aggressive", (50, 60)),
        ],
    )
    def test_threshold_table(self, tolerance, expected):
        threshold = threshold_for(tolerance)
        assert (threshold.min_confidence, threshold.max_trade_percent) == expected

    def test_unknown_tolerance_not_defaulted(self):
        with pytest.raises(ValidationError):
            threshold_for("yolo")

    def test_confidence_multipliers(self):
        assert confidence_multiplier("conservative") == Decimal("0.9")
        assert confidence_multiplier("moderate") == Decimal("1.0")
        assert confidence_multiplier("aggressive") == Decimal("1.1")

    def test_cap_trade_percent(self):
        assert cap_trade_percent(Decimal("25"), "conservative") == Decimal("20")
        assert cap_trade_percent(Decimal("25"), "moderate") == Decimal("25")
        assert cap_trade_percent(Decimal("-5"), "aggressive") == Decimal("0")


# ══════════════════════════════════════════════════════════════════════
# PART 3: Rule-based fallback
# ══════════════════════════════════════════════════════════════════════


class TestFallbackScenarios:
    """Decision-table behavior on the reference scenarios."""

    def test_high_inflation_low_hedge_buys(self):
        market = _market(inflation="4.0")
        portfolio = _portfolio("20")
        signal = fallback_signal(
            market,
            portfolio,
            RiskTolerance.MODERATE,
            rng=random.Random(7),
            now=NOW,
            ttl=TTL,
        )
        assert signal.action is SignalAction.BUY_HEDGE
        assert signal.target_hedge_allocation == Decimal("50")
        assert signal.suggested_percent == Decimal("25")
        assert signal.suggested_amount == Decimal("2000.00")
        assert 72 <= signal.confidence <= 90
        assert signal.risk_level is RiskLevel.LOW

    def test_rally_with_heavy_hedge_sells(self):
        market = _market(inflation="3.0", change="5")
        portfolio = _portfolio("70")
        signal = fallback_signal(
            market,
            portfolio,
            RiskTolerance.AGGRESSIVE,
            rng=random.Random(7),
            now=NOW,
            ttl=TTL,
        )
        assert signal.action is SignalAction.SELL_HEDGE
        assert signal.target_hedge_allocation == Decimal("45")
        assert signal.suggested_amount <= portfolio.hedge_value(market.price)

    def test_calm_market_holds(self):
        market = _market(inflation="3.0", change="0.5")
        portfolio = _portfolio("50")
        signal = fallback_signal(
            market,
            portfolio,
            RiskTolerance.CONSERVATIVE,
            rng=random.Random(7),
            now=NOW,
            ttl=TTL,
        )
        assert signal.action is SignalAction.HOLD
        assert signal.suggested_percent == Decimal("0")
        assert signal.suggested_amount == Decimal("0")
        assert signal.target_hedge_allocation == Decimal("50")

    def test_dip_with_light_hedge_buys(self):
        rule = select_rule(_market(change="-4"), _portfolio("30"))
        assert rule.name == "buy_the_dip"

    def test_inflation_rule_wins_over_dip(self):
        rule = select_rule(_market(inflation="4.0", change="-4"), _portfolio("30"))
        assert rule.name == "inflation_hedge"

    def test_last_rule_always_matches(self):
        assert DECISION_TABLE[-1].name == "hold"


class TestFallbackSizing:
    """Position sizing of rule-based signals."""

    def test_conservative_buy_capped_at_ceiling(self):
        signal = fallback_signal(
            _market(inflation="4.0"),
            _portfolio("20"),
            RiskTolerance.CONSERVATIVE,
            rng=random.Random(1),
            now=NOW,
            ttl=TTL,
        )
        assert signal.suggested_percent == Decimal("20")
        assert signal.suggested_amount == Decimal("1600.00")

    def test_amount_never_exceeds_available_funds(self):
        market = _market(inflation="3.0", change="5", price="1999.99")
        portfolio = _portfolio("99.9", total="123.45", price="1999.99")
        signal = fallback_signal(
            market,
            portfolio,
            RiskTolerance.AGGRESSIVE,
            rng=random.Random(3),
            now=NOW,
            ttl=TTL,
        )
        available = portfolio.available_funds(signal.action, market.price)
        assert signal.suggested_amount <= available

    def test_very_large_portfolio_still_sized(self):
        signal = fallback_signal(
            _market(inflation="4.0"),
            _portfolio("20", total="1e27"),
            RiskTolerance.AGGRESSIVE,
            rng=random.Random(1),
            now=NOW,
            ttl=TTL,
        )
        assert signal.action is SignalAction.BUY_HEDGE
        assert signal.suggested_amount > 0
        assert signal.suggested_amount == round_cents(signal.suggested_amount)

    def test_expiry_uses_ttl(self):
        signal = fallback_signal(
            _market(),
            _portfolio("50"),
            RiskTolerance.MODERATE,
            rng=random.Random(1),
            now=NOW,
            ttl=TTL,
        )
        assert signal.created_at == NOW
        assert signal.expires_at == NOW + TTL
        assert signal.reference_price == Decimal("2150.00")


class TestJitteredConfidence:
    """Confidence jitter and tolerance scaling."""

    def test_same_seed_same_confidence(self):
        rule = DECISION_TABLE[0]
        first = jittered_confidence(rule, RiskTolerance.MODERATE, random.Random(42))
        second = jittered_confidence(rule, RiskTolerance.MODERATE, random.Random(42))
        assert first == second

    def test_capped_at_95(self):
        rng = MagicMock()
        rng.random.return_value = 0.99999
        confidence = jittered_confidence(DECISION_TABLE[0], RiskTolerance.AGGRESSIVE, rng)
        assert confidence == 95

    def test_conservative_scales_down(self):
        rng = MagicMock()
        rng.random.return_value = 0.0
        confidence = jittered_confidence(
            DECISION_TABLE[0], RiskTolerance.CONSERVATIVE, rng
        )
        # 72 * 0.9 = 64.8
        assert confidence == 65


# ══════════════════════════════════════════════════════════════════════
# PART 4: Prompt
# ══════════════════════════════════════════════════════════════════════


class TestBuildPrompt:
    """Tests for the recommendation prompt."""

    def test_prompt_embeds_snapshot_and_policy(self):
        prompt = build_prompt(
            _market(inflation="4.0", change="1.25"),
            _portfolio("20", total="10000", price="2150.00"),
            RiskTolerance.CONSERVATIVE,
        )
        assert "$2150.00" in prompt
        assert "+1.25%" in prompt
        assert "Inflation Rate: 4.0%" in prompt
        assert "Current Hedge Allocation: 20.0%" in prompt
        assert "Minimum Confidence for Trade: 80%" in prompt
        assert "Only suggest trades with very high conviction" in prompt
        assert '"targetHedgeAllocation"' in prompt

    def test_negative_change_has_no_plus_sign(self):
        prompt = build_prompt(
            _market(change="-2"), _portfolio("50"), RiskTolerance.MODERATE
        )
        assert "-2.00%" in prompt


# ══════════════════════════════════════════════════════════════════════
# PART 5: Payment proofs
# ══════════════════════════════════════════════════════════════════════


class TestPaymentProof:
    """Structural validation of payment receipts."""

    def test_from_header_parses_fields(self):
        proof = PaymentProof.from_header(json.dumps(_proof()))
        assert proof.amount == 10000
        assert proof.tx_reference == "0x" + "ab" * 32
        assert proof.timestamp == 1735732800000

    def test_wire_aliases_accepted(self):
        document = {
            "transactionHash": "0xfeed",
            "from": "0x" + "11" * 20,
            "to": "0x" + "22" * 20,
            "amount": 10000,
            "token": "0xtoken",
        }
        proof = PaymentProof.from_mapping(document)
        assert proof.tx_reference == "0xfeed"
        assert proof.token_reference == "0xtoken"

    def test_invalid_json_rejected(self):
        with pytest.raises(InvalidReceiptError):
            PaymentProof.from_header("{not json")

    def test_non_object_rejected(self):
        with pytest.raises(InvalidReceiptError):
            PaymentProof.from_header("[1, 2]")

    def test_missing_fields_listed(self):
        document = _proof()
        del document["payeeAddress"]
        with pytest.raises(InvalidReceiptError) as info:
            PaymentProof.from_mapping(document)
        assert "payee_address" in info.value.reason

    @pytest.mark.parametrize("amount", ["-5", "1.5", "ten", True, 2.5])
    def test_amount_must_be_non_negative_integer(self, amount):
        with pytest.raises(InvalidReceiptError):
            PaymentProof.from_mapping(_proof(amount=amount))

    @pytest.mark.parametrize("literal", ["Infinity", "-Infinity", "NaN", "1e400"])
    def test_non_finite_timestamp_in_header_rejected(self, literal):
        raw = json.dumps(_proof(timestamp=0)).replace(
            '"timestamp": 0', f'"timestamp": {literal}'
        )
        with pytest.raises(InvalidReceiptError):
            PaymentProof.from_header(raw)

    def test_non_finite_timestamp_in_mapping_rejected(self):
        with pytest.raises(InvalidReceiptError) as info:
            PaymentProof.from_mapping(_proof(timestamp=float("inf")))
        assert info.value.reason == "timestamp must be finite"


class TestCheckProof:
    """Amount and destination rules."""

    def _make(self, amount: int = 10000, payee: str = "0x" + "22" * 20):
        return PaymentProof.from_mapping(_proof(amount=amount, payeeAddress=payee))

    def test_exact_amount_accepted(self):
        check_proof(self._make(), 10000, "0x" + "22" * 20)

    def test_overpayment_accepted(self):
        check_proof(self._make(amount=20000), 10000, None)

    def test_underpayment_rejected(self):
        with pytest.raises(InsufficientPaymentError) as info:
            check_proof(self._make(amount=9999), 10000, None)
        assert info.value.required == 10000
        assert info.value.paid == 9999

    def test_payee_comparison_case_insensitive(self):
        check_proof(self._make(payee="0x" + "AB" * 20), 10000, "0x" + "ab" * 20)

    def test_wrong_destination_rejected(self):
        with pytest.raises(WrongDestinationError):
            check_proof(self._make(payee="0x" + "99" * 20), 10000, "0x" + "22" * 20)

    def test_no_configured_payee_skips_destination(self):
        check_proof(self._make(payee="0x" + "99" * 20), 10000, None)


class TestPaymentRequirement:
    """The payment-required descriptor."""

    def _requirement(self, minor_units: int = 10000) -> PaymentRequirement:
        return PaymentRequirement(
            resource="/api/v1/signals",
            max_amount_required=minor_units,
            token_decimals=6,
            currency="USDC",
            network="base-sepolia",
            pay_to="0x" + "22" * 20,
        )

    def test_price_in_major_units(self):
        assert str(self._requirement().price) == "0.01"
        assert str(self._requirement(10_000_000).price) == "10"

    def test_descriptor_repeats_price_and_accepts(self):
        descriptor = self._requirement().to_descriptor()
        assert descriptor["price"] == "0.01"
        assert descriptor["currency"] == "USDC"
        assert descriptor["payTo"] == "0x" + "22" * 20
        accepts = descriptor["accepts"][0]
        assert accepts["scheme"] == "exact"
        assert accepts["maxAmountRequired"] == "10000"


class TestPaymentDecision:
    """The paid flag of a gate decision."""

    def test_verified_is_paid(self):
        assert PaymentDecision(state=PaymentState.VERIFIED).paid

    def test_bypassed_is_not_paid(self):
        assert not PaymentDecision(state=PaymentState.VERIFIED, bypassed=True).paid
