"""
Unit tests for portfolio metrics.

Tests cover:
- Holdings: weighted average on buys, average kept on sells
- Asset valuation with and without live prices
- Win rate, trade size and net invested
- Rolling window P&L
- Best and worst performers above the dust floor
- The engine's snapshot over combined entries and cached prices
- Daily P&L calendar and weekday/hour heatmap
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

import pytest
import pytz

from cryptovault.domain.models import EntryType, PriceQuote, TradeSide
from cryptovault.services import PortfolioMetricsEngine, build_holdings, compute_metrics, summarize_assets
from cryptovault.services.portfolio_metrics import (
    daily_pnl,
    net_invested,
    percentage,
    pick_performers,
    pnl_heatmap,
    window_pnl,
)

from tests.conftest import make_entry, utc_datetime


def quote(symbol: str, price: str, change: Optional[str] = None) -> PriceQuote:
    return PriceQuote(
        symbol=symbol,
        price=Decimal(price),
        source="test",
        as_of=utc_datetime(2024, 6, 15, 14, 30),
        change_24h_pct=Decimal(change) if change is not None else None,
    )


BUY = TradeSide.BUY
SELL = TradeSide.SELL


# =============================================================================
# HOLDINGS TESTS
# =============================================================================


class TestBuildHoldings:
    """Tests for folding entries into holdings."""

    def test_weighted_average_on_buys(self):
        """
        GIVEN buys of 1 BTC at 100 and 1 BTC at 200
        WHEN holdings are built
        THEN quantity is 2 and the average price 150
        """
        entries = [
            make_entry("u", side=BUY, quantity="1", price="100", date=utc_datetime(2024, 1, 1)),
            make_entry("u", side=BUY, quantity="1", price="200", date=utc_datetime(2024, 1, 2)),
        ]

        holding = build_holdings(entries)["BTC"]

        assert holding.quantity == Decimal("2")
        assert holding.average_price == Decimal("150")
        assert holding.cost_basis == Decimal("300")

    def test_sell_keeps_average(self):
        """
        GIVEN 2 BTC at an average of 150
        WHEN 1 BTC is sold at 300 for 150 pnl
        THEN 1 BTC remains at average 150 with cost basis 150
        """
        entries = [
            make_entry("u", side=BUY, quantity="1", price="100", date=utc_datetime(2024, 1, 1)),
            make_entry("u", side=BUY, quantity="1", price="200", date=utc_datetime(2024, 1, 2)),
            make_entry("u", side=SELL, quantity="1", price="300", pnl="150", date=utc_datetime(2024, 1, 3)),
        ]

        holding = build_holdings(entries)["BTC"]

        assert holding.quantity == Decimal("1")
        assert holding.average_price == Decimal("150")
        assert holding.cost_basis == Decimal("150")
        assert holding.realized_pnl == Decimal("150")

    def test_entries_folded_in_date_order(self):
        sell = make_entry("u", side=SELL, quantity="1", price="300", date=utc_datetime(2024, 1, 3))
        buy = make_entry("u", side=BUY, quantity="2", price="100", date=utc_datetime(2024, 1, 1))

        holding = build_holdings([sell, buy])["BTC"]

        assert holding.quantity == Decimal("1")
        assert holding.average_price == Decimal("100")

    def test_spot_without_side_treated_as_sell(self):
        entries = [
            make_entry("u", side=BUY, quantity="3", price="10", date=utc_datetime(2024, 1, 1)),
            make_entry("u", side=None, quantity="1", price="12", date=utc_datetime(2024, 1, 2)),
        ]

        assert build_holdings(entries)["BTC"].quantity == Decimal("2")

    def test_oversell_goes_negative_and_has_no_cost_basis(self):
        entries = [
            make_entry("u", side=BUY, quantity="1", price="10", date=utc_datetime(2024, 1, 1)),
            make_entry("u", side=SELL, quantity="2", price="12", date=utc_datetime(2024, 1, 2)),
        ]

        holding = build_holdings(entries)["BTC"]

        assert holding.quantity == Decimal("-1")
        assert holding.cost_basis == Decimal("0")

    def test_wallet_moves_quantity_only(self):
        entries = [
            make_entry("u", side=BUY, quantity="1", price="100", date=utc_datetime(2024, 1, 1)),
            make_entry("u", entry_type=EntryType.WALLET, quantity="1", price="999", date=utc_datetime(2024, 1, 2)),
        ]

        holding = build_holdings(entries)["BTC"]

        assert holding.quantity == Decimal("2")
        assert holding.average_price == Decimal("100")

    def test_futures_only_realize_pnl(self):
        entries = [
            make_entry("u", entry_type=EntryType.FUTURES, side=BUY, quantity="5", price="100", pnl="-20"),
        ]

        holding = build_holdings(entries)["BTC"]

        assert holding.quantity == Decimal("0")
        assert holding.realized_pnl == Decimal("-20")

    def test_symbol_spellings_grouped(self):
        entries = [
            make_entry("u", asset="eth", side=BUY, quantity="1", price="10"),
            make_entry("u", asset="ETH/USDT", side=BUY, quantity="1", price="10"),
        ]

        assert list(build_holdings(entries)) == ["ETH"]


# =============================================================================
# VALUATION TESTS
# =============================================================================


class TestSummarizeAssets:
    """Tests for valuing holdings."""

    def test_live_price_values_holding(self):
        holdings = build_holdings([make_entry("u", side=BUY, quantity="2", price="100")])

        asset = summarize_assets(holdings, {"BTC": quote("BTC", "130", "4")})[0]

        assert asset.current_value == Decimal("260")
        assert asset.unrealized_pnl == Decimal("60")
        assert asset.unrealized_pct == Decimal("30.00")
        assert asset.has_live_price is True
        assert asset.change_24h_pct == Decimal("4")

    def test_missing_price_falls_back_to_average(self):
        holdings = build_holdings([make_entry("u", side=BUY, quantity="2", price="100")])

        asset = summarize_assets(holdings, {})[0]

        assert asset.current_price == Decimal("100")
        assert asset.unrealized_pnl == Decimal("0")
        assert asset.has_live_price is False

    def test_closed_position_has_no_value(self):
        holdings = build_holdings([
            make_entry("u", side=BUY, quantity="1", price="100", date=utc_datetime(2024, 1, 1)),
            make_entry("u", side=SELL, quantity="1", price="120", pnl="20", date=utc_datetime(2024, 1, 2)),
        ])

        asset = summarize_assets(holdings, {"BTC": quote("BTC", "130")})[0]

        assert asset.current_value == Decimal("0")
        assert asset.total_pnl == Decimal("20")


# =============================================================================
# AGGREGATE TESTS
# =============================================================================


class TestAggregates:
    """Tests for win rate, trade size and net invested."""

    def test_win_rate_rounded_to_cents(self):
        """
        GIVEN three trades, two of them profitable
        WHEN metrics are computed
        THEN the win rate is 66.67
        """
        entries = [
            make_entry("u", entry_type=EntryType.FUTURES, pnl="10"),
            make_entry("u", entry_type=EntryType.FUTURES, pnl="5"),
            make_entry("u", entry_type=EntryType.SPOT, pnl="-3"),
            make_entry("u", entry_type=EntryType.WALLET, pnl="100"),
        ]

        metrics = compute_metrics(entries, {}, now=utc_datetime(2024, 6, 15))

        assert metrics.win_rate == Decimal("66.67")
        assert metrics.trade_count == 3

    def test_no_trades_zero_win_rate(self):
        metrics = compute_metrics([], {}, now=utc_datetime(2024, 6, 15))

        assert metrics.win_rate == Decimal("0")
        assert metrics.average_trade_size == Decimal("0")
        assert metrics.best_performer is None

    def test_average_trade_size_uses_notional(self):
        entries = [
            make_entry("u", side=BUY, quantity="1", price="100"),
            make_entry("u", side=BUY, quantity="2", price="100"),
        ]

        metrics = compute_metrics(entries, {}, now=utc_datetime(2024, 6, 15))

        assert metrics.average_trade_size == Decimal("150.00")

    def test_net_invested_counts_fees(self):
        entries = [
            make_entry("u", side=BUY, quantity="1", price="100", fees="1"),
            make_entry("u", side=SELL, quantity="1", price="150", fees="2"),
            make_entry("u", entry_type=EntryType.FUTURES, side=BUY, quantity="1", price="999"),
        ]

        assert net_invested(entries) == Decimal("-47")

    def test_percentage_of_zero_denominator(self):
        assert percentage(Decimal("5"), Decimal("0")) == Decimal("0")


# =============================================================================
# WINDOW TESTS
# =============================================================================


class TestWindows:
    """Tests for rolling window P&L."""

    def test_realized_pnl_by_rolling_window(self):
        """
        GIVEN realized pnl 2 hours, 3 days, 20 days and 60 days ago
        WHEN windows are computed
        THEN day, week and month include only entries inside each window
        """
        now = utc_datetime(2024, 6, 15, 14, 30)
        entries = [
            make_entry("u", entry_type=EntryType.FUTURES, pnl="10", date=now - timedelta(hours=2)),
            make_entry("u", entry_type=EntryType.FUTURES, pnl="20", date=now - timedelta(days=3)),
            make_entry("u", entry_type=EntryType.FUTURES, pnl="40", date=now - timedelta(days=20)),
            make_entry("u", entry_type=EntryType.FUTURES, pnl="80", date=now - timedelta(days=60)),
        ]

        metrics = compute_metrics(entries, {}, now=now)

        assert metrics.day.realized == Decimal("10")
        assert metrics.week.realized == Decimal("30")
        assert metrics.month.realized == Decimal("70")
        assert metrics.total_realized_pnl == Decimal("150")

    def test_day_unrealized_uses_24h_change(self):
        holdings = build_holdings([make_entry("u", side=BUY, quantity="1", price="60000")])
        assets = summarize_assets(holdings, {"BTC": quote("BTC", "65000", "2.5")})

        day = window_pnl("day", [], assets, utc_datetime(2024, 6, 15))
        week = window_pnl("week", [], assets, utc_datetime(2024, 6, 15))

        assert day.unrealized == Decimal("1625")
        assert week.unrealized == Decimal("5000")
        assert week.total == Decimal("5000")


# =============================================================================
# PERFORMER TESTS
# =============================================================================


class TestPerformers:
    """Tests for best/worst performer selection."""

    def test_best_and_worst_exclude_dust(self):
        """
        GIVEN BTC up 8.33%, ETH down 12.5% and a dust PEPE position
        WHEN performers are picked with a $10 floor
        THEN BTC is best, ETH worst and PEPE ignored
        """
        entries = [
            make_entry("u", asset="BTC", side=BUY, quantity="1", price="60000"),
            make_entry("u", asset="ETH", side=BUY, quantity="2", price="4000"),
            make_entry("u", asset="PEPE", side=BUY, quantity="1000", price="0.001"),
        ]
        quotes = {
            "BTC": quote("BTC", "65000"),
            "ETH": quote("ETH", "3500"),
            "PEPE": quote("PEPE", "0.01"),
        }
        assets = summarize_assets(build_holdings(entries), quotes)

        best, worst = pick_performers(assets, Decimal("10"))

        assert best.symbol == "BTC"
        assert best.unrealized_pct == Decimal("8.33")
        assert worst.symbol == "ETH"
        assert worst.unrealized_pct == Decimal("-12.50")

    def test_totals(self):
        entries = [
            make_entry("u", asset="BTC", side=BUY, quantity="1", price="60000"),
            make_entry("u", asset="ETH", side=BUY, quantity="2", price="4000"),
        ]
        quotes = {"BTC": quote("BTC", "65000"), "ETH": quote("ETH", "3500")}

        metrics = compute_metrics(entries, quotes, now=utc_datetime(2024, 6, 15))

        assert metrics.total_value == Decimal("72000")
        assert metrics.total_cost_basis == Decimal("68000")
        assert metrics.total_unrealized_pnl == Decimal("4000")
        assert metrics.total_pnl_pct == Decimal("5.88")
        assert [a.symbol for a in metrics.assets] == ["BTC", "ETH"]


# =============================================================================
# ENGINE TESTS
# =============================================================================


class TestPortfolioMetricsEngine:
    """Tests for metrics over combined entries and cached prices."""

    def test_compute_uses_cached_prices(
        self,
        metrics_engine: PortfolioMetricsEngine,
        entry_factory,
        bob,
    ):
        """
        GIVEN bob bought 1 BTC at 60000
        WHEN metrics are computed with BTC quoted at 65000
        THEN the holding is valued at the live price
        """
        entry_factory(bob.user_id, side=BUY, quantity=Decimal("1"), price_usd=Decimal("60000"))

        metrics = metrics_engine.compute(bob.user_id)

        btc = metrics.assets[0]
        assert btc.has_live_price is True
        assert btc.current_value == Decimal("65000")
        assert metrics.total_unrealized_pnl == Decimal("5000")

    def test_closed_positions_not_priced(
        self,
        metrics_engine: PortfolioMetricsEngine,
        scripted_provider,
        entry_factory,
        bob,
    ):
        entry_factory(bob.user_id, entry_type=EntryType.FUTURES, pnl=Decimal("25"))

        metrics = metrics_engine.compute(bob.user_id)

        assert scripted_provider.calls == []
        assert metrics.total_realized_pnl == Decimal("25")

    def test_include_shared_toggle(
        self,
        metrics_engine: PortfolioMetricsEngine,
        visibility_service,
        entry_factory,
        granted_access,
        alice,
        bob,
    ):
        entry_factory(alice.user_id, side=BUY, quantity=Decimal("1"), price_usd=Decimal("3000"), asset="ETH")
        grant = granted_access(bob.user_id, alice.user_id)
        visibility_service.set_visible(bob.user_id, grant.id, True)

        with_shared = metrics_engine.asset_summaries(bob.user_id)
        own_only = metrics_engine.asset_summaries(bob.user_id, include_shared=False)

        assert [a.symbol for a in with_shared] == ["ETH"]
        assert own_only == []


# =============================================================================
# CALENDAR AND HEATMAP TESTS
# =============================================================================


class TestDailyPnl:
    """Tests for the monthly P&L calendar."""

    def test_days_and_month_totals(self):
        """
        GIVEN two entries on June 3rd, a loss on June 10th and one in May
        WHEN the June 2024 calendar is built
        THEN all 30 days are present with per-day sums and month totals
        """
        entries = [
            make_entry("u", EntryType.FUTURES, pnl="120", date=utc_datetime(2024, 6, 3, 9)),
            make_entry("u", EntryType.FUTURES, pnl="-20", date=utc_datetime(2024, 6, 3, 17)),
            make_entry("u", EntryType.FUTURES, pnl="-50", date=utc_datetime(2024, 6, 10, 12)),
            make_entry("u", EntryType.FUTURES, pnl="999", date=utc_datetime(2024, 5, 31, 23)),
        ]

        cal = daily_pnl(entries, 2024, 6)

        assert len(cal.days) == 30
        assert cal.days[0].day == date(2024, 6, 1)
        assert cal.days[2].pnl == Decimal("100")
        assert cal.days[2].entry_count == 2
        assert cal.days[9].pnl == Decimal("-50")
        assert cal.total_pnl == Decimal("50")
        assert cal.entry_count == 3
        assert cal.trading_days == 2
        assert cal.profitable_days == 1
        assert cal.win_rate == Decimal("50.00")

    def test_leap_february_has_29_days(self):
        cal = daily_pnl([], 2024, 2)

        assert cal.days[-1].day == date(2024, 2, 29)
        assert cal.win_rate == Decimal("0")

    def test_days_bucketed_in_utc(self):
        # 23:30 in New York on June 30th is already July 1st in UTC
        late = pytz.timezone("America/New_York").localize(datetime(2024, 6, 30, 23, 30))
        entries = [make_entry("u", EntryType.FUTURES, pnl="10", date=late)]

        assert daily_pnl(entries, 2024, 6).entry_count == 0
        assert daily_pnl(entries, 2024, 7).days[0].pnl == Decimal("10")

    def test_invalid_month_rejected(self):
        with pytest.raises(ValueError):
            daily_pnl([], 2024, 13)


class TestPnlHeatmap:
    """Tests for activity by weekday and hour."""

    def test_cells_accumulate_by_weekday_and_hour(self):
        """
        GIVEN two entries on Monday 09:xx and one on Saturday 14:00 (UTC)
        WHEN the heatmap is built
        THEN the Monday 9h cell holds two entries and their summed pnl
        """
        entries = [
            make_entry("u", EntryType.FUTURES, pnl="40", date=utc_datetime(2024, 6, 3, 9, 5)),
            make_entry("u", EntryType.FUTURES, pnl="-15", date=utc_datetime(2024, 6, 10, 9, 55)),
            make_entry("u", EntryType.FUTURES, pnl="-70", date=utc_datetime(2024, 6, 15, 14)),
        ]

        heatmap = pnl_heatmap(entries)

        assert len(heatmap.cells) == 7 * 24
        monday = heatmap.cell(0, 9)
        assert (monday.entry_count, monday.pnl) == (2, Decimal("25"))
        assert heatmap.cell(5, 14).pnl == Decimal("-70")
        assert heatmap.max_entry_count == 2
        assert heatmap.max_abs_pnl == Decimal("70")

    def test_empty_heatmap(self):
        heatmap = pnl_heatmap([])

        assert heatmap.max_entry_count == 0
        assert heatmap.max_abs_pnl == Decimal("0")


class TestEngineCalendar:
    """Tests for calendar and heatmap over combined entries."""

    def test_calendar_and_heatmap_skip_price_lookups(
        self,
        metrics_engine: PortfolioMetricsEngine,
        scripted_provider,
        entry_factory,
        bob,
    ):
        entry_factory(
            bob.user_id,
            side=BUY,
            quantity=Decimal("1"),
            price_usd=Decimal("60000"),
            pnl=Decimal("5"),
            date=utc_datetime(2024, 6, 3, 9),
        )

        cal = metrics_engine.daily_calendar(bob.user_id, 2024, 6)
        heatmap = metrics_engine.activity_heatmap(bob.user_id)

        assert cal.days[2].pnl == Decimal("5")
        assert heatmap.cell(0, 9).entry_count == 1
        assert scripted_provider.calls == []
