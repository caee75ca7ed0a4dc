"""
Options flow TUI using Textual.

Displays (one tab each):
- Stream: filtered trade summaries with live price / P&L
- Prints: individual executions
- Quotes: underlying and option quotes
- Auto: auto-trades
- Stats: aggregate trading statistics

Performance notes:
- Polls the session revision at ~10 FPS and redraws only on change
- Rendering is read-only; all state lives in FlowSession
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from rich.console import RenderableType
from rich.table import Table
from rich.text import Text

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Footer, Input, Static, TabbedContent, TabPane

from ..engine.enrichment import compute_pnl
from ..engine.filters import CLASSIFICATIONS, DIRECTIONS, STANCES, TradeFilter, cycle

if TYPE_CHECKING:
    from ..datafeed.flow_client import FlowClient
    from ..engine.session import FlowSession
    from ..types import TradeSummary

# Color scheme (dark theme)
BULL_COLOR = "#4ade80"
BEAR_COLOR = "#f87171"
NEUTRAL_COLOR = "#facc15"
HEADER_COLOR = "#94a3b8"

CLASSIFICATION_COLORS = {
    "SWEEP": "bold white on #dc2626",
    "BLOCK": "bold white on #ea580c",
    "NOTABLE": "bold white on #16a34a",
}

DIRECTION_COLORS = {
    "BTO": "white on #15803d",
    "STO": "white on #c2410c",
    "BTC": "white on #0e7490",
    "STC": "white on #7e22ce",
}

REFRESH_INTERVAL_SEC = 0.1


def safe_fixed(value: float | None, digits: int = 2, fallback: str = "N/A") -> str:
    """Fixed-point format, or `fallback` for missing / NaN values."""
    if value is None or value != value:
        return fallback
    return f"{value:.{digits}f}"


def format_premium(premium: float | None) -> str:
    premium = premium or 0.0
    if premium >= 1_000_000:
        return f"${premium / 1_000_000:.2f}M"
    if premium >= 1_000:
        return f"${premium / 1_000:.0f}k"
    return f"${premium:.0f}"


def format_time(timestamp_ms: int | None) -> str:
    """HH:MM:SS local time, or "" when missing or outside the platform's date range."""
    if not timestamp_ms:
        return ""
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return ""


def stance_color(stance: str | None) -> str:
    if stance == "BULL":
        return BULL_COLOR
    if stance == "BEAR":
        return BEAR_COLOR
    return NEUTRAL_COLOR


def signed_color(value: float) -> str:
    return BULL_COLOR if value >= 0 else BEAR_COLOR


def _table() -> Table:
    return Table(
        show_header=True,
        header_style=HEADER_COLOR,
        box=None,
        padding=(0, 1),
        collapse_padding=True,
        expand=True,
    )


def _badges(classifications: tuple[str, ...]) -> Text:
    text = Text()
    for cls in classifications:
        text.append(f" {cls} ", style=CLASSIFICATION_COLORS.get(cls, "white on #374151"))
        text.append(" ")
    return text


def render_trades(session: FlowSession, trades: list[TradeSummary], empty: str) -> RenderableType:
    if not trades:
        return Text(empty, style="dim")

    table = _table()
    table.add_column("Time", width=8)
    table.add_column("Tags", no_wrap=True)
    table.add_column("Dir", width=5)
    table.add_column("Stance", width=12)
    table.add_column("Contract", no_wrap=True)
    table.add_column("UL", justify="right")
    table.add_column("Premium", justify="right")
    table.add_column("Size @ Entry", justify="right")
    table.add_column("Now", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("Bid/Ask", justify="right")

    for trade in trades:
        mapping = session.mapping(trade.conid)
        symbol = trade.symbol or mapping.symbol
        strike = trade.strike if trade.strike is not None else mapping.strike
        contract = f"{symbol} {trade.right} ${safe_fixed(strike, 2, '--')}"
        if trade.expiry or mapping.expiry:
            contract += f" {trade.expiry or mapping.expiry}"

        ul_last = session.underlying_last(trade.underlying_conid)
        quote = session.overlay.get_option_quote(trade.conid)
        pnl = compute_pnl(trade)

        stance = Text(trade.stance_label or "NEUTRAL", style=stance_color(trade.stance_label))
        if trade.stance_score is not None:
            stance.append(f" ({trade.stance_score:g})", style="dim")

        direction = trade.direction or "UNK"
        table.add_row(
            format_time(trade.timestamp or trade.received_at),
            _badges(trade.classifications),
            Text(direction, style=DIRECTION_COLORS.get(direction, "white on #374151")),
            stance,
            contract,
            safe_fixed(ul_last if ul_last is not None else trade.underlying_price, 2, "--"),
            format_premium(trade.premium),
            f"{trade.size} @ ${safe_fixed(trade.option_price, 2, '--')}",
            safe_fixed(trade.current_price, 2, "--"),
            Text(
                f"{pnl.dollar:+,.0f} ({pnl.percent:+.1f}%)",
                style=signed_color(pnl.dollar),
            ),
            f"{safe_fixed(quote.bid if quote else None, 2, '--')}/"
            f"{safe_fixed(quote.ask if quote else None, 2, '--')}",
        )

    return table


def render_prints(session: FlowSession) -> RenderableType:
    if not len(session.prints):
        return Text("No prints yet. Waiting for print data...", style="dim")

    table = _table()
    table.add_column("Time", width=8)
    table.add_column("Stance", width=10)
    table.add_column("Contract", no_wrap=True)
    table.add_column("Size @ Price", justify="right")
    table.add_column("Premium", justify="right")
    table.add_column("Vol/OI", justify="right")
    table.add_column("Side", width=9)

    for p in session.prints:
        if p.aggressor is None:
            side = Text("UNKNOWN", style="dim")
        elif p.aggressor:
            side = Text("BUY-agg", style=BULL_COLOR)
        else:
            side = Text("SELL-agg", style=BEAR_COLOR)

        table.add_row(
            format_time(p.timestamp),
            Text(p.stance or "", style=stance_color(p.stance)),
            f"{p.symbol} {p.right} ${safe_fixed(p.strike, 2, '--')} {p.expiry or ''}",
            f"{p.trade_size} @ ${safe_fixed(p.trade_price, 2, '--')}",
            format_premium(p.premium),
            safe_fixed(p.vol_oi_ratio),
            side,
        )

    return table


def render_quotes(session: FlowSession) -> RenderableType:
    overlay = session.overlay
    if not len(overlay):
        return Text("No quotes yet. Waiting for quote data...", style="dim")

    table = _table()
    table.add_column("Instrument", no_wrap=True)
    table.add_column("Last", justify="right")
    table.add_column("Bid", justify="right")
    table.add_column("Ask", justify="right")
    table.add_column("Delta", justify="right")
    table.add_column("Volume", justify="right")
    table.add_column("Time", width=8)

    for conid, quote in overlay.underlying_quotes.items():
        mapping = session.mapping(conid)
        name = mapping.symbol if conid in session.directory else f"conid {conid}"
        table.add_row(
            Text(name, style="bold cyan"),
            safe_fixed(quote.last, 2, "--"),
            safe_fixed(quote.bid, 2, "--"),
            safe_fixed(quote.ask, 2, "--"),
            "",
            str(quote.volume),
            format_time(quote.timestamp),
        )

    for conid, quote in overlay.option_quotes.items():
        mapping = session.mapping(conid)
        name = mapping.symbol if conid in session.directory else f"conid {conid}"
        if mapping.is_option and mapping.right:
            name += f" {'CALL' if mapping.right == 'C' else 'PUT'} ${safe_fixed(mapping.strike, 2, '--')}"
        if mapping.expiry:
            name += f" exp {mapping.expiry}"
        table.add_row(
            name,
            safe_fixed(quote.last, 2, "--"),
            safe_fixed(quote.bid, 2, "--"),
            safe_fixed(quote.ask, 2, "--"),
            safe_fixed(quote.delta, 3),
            str(quote.volume),
            format_time(quote.timestamp),
        )

    return table


def render_stats(session: FlowSession) -> RenderableType:
    stats = session.current_stats()
    if stats is None:
        return Text("No statistics available yet. Start trading to see stats.", style="dim")

    daily = stats.daily
    table = _table()
    table.add_column("Metric", style=HEADER_COLOR)
    table.add_column("Value", justify="right")

    table.add_row("Mode", Text("SIMULATION" if stats.simulation else "LIVE", style="bold yellow"))
    table.add_row("Date", daily.date or "-")
    table.add_row("Daily P&L", Text(f"${daily.pnl:,.0f}", style=signed_color(daily.pnl)))
    table.add_row("Daily Trades", f"{daily.trades} (W {daily.wins} / L {daily.losses})")
    table.add_row("Win Rate", f"{daily.win_rate:.1f}%")
    table.add_row("Total P&L", Text(f"${stats.total_pnl:,.0f}", style=signed_color(stats.total_pnl)))
    table.add_row("Open Positions", str(stats.open_positions_count))
    table.add_row("Open P&L", Text(f"${stats.open_pnl:,.0f}", style=signed_color(stats.open_pnl)))
    table.add_row("Total Trades", str(stats.total_trades))

    return table


class StatusBar(Static):
    """Connection dot, endpoint, tab counts and the active filter."""

    DEFAULT_CSS = """
    StatusBar {
        dock: top;
        height: 2;
        padding: 0 2;
        background: #0f172a;
    }
    """

    def __init__(self, session: FlowSession, url: str, trade_filter: TradeFilter) -> None:
        super().__init__()
        self._session = session
        self._url = url
        self._filter = trade_filter

    def render(self) -> RenderableType:
        s = self._session
        counts = s.counts()
        f = self._filter

        result = Text()
        result.append("● ", style=BULL_COLOR if s.connected else BEAR_COLOR)
        result.append(" Options Flow Monitor ", style="bold white on #1e40af")
        result.append(f"  {self._url}", style="dim")
        result.append(
            f"   Stream {counts['stream']}  Prints {counts['prints']}  "
            f"Quotes {counts['quotes']}  Auto {counts['auto']}  "
            f"Mapped {len(s.directory)}",
            style="cyan",
        )
        result.append(
            f"\n Filter: dir={f.direction} class={f.classification} stance={f.stance}"
            f" symbol={f.symbol or '*'} min=${f.min_premium:,.0f}",
            style="dim",
        )
        return result


class SessionPanel(Static):
    """Tab body that redraws from the session on refresh()."""

    DEFAULT_CSS = """
    SessionPanel {
        width: 100%;
        height: auto;
    }
    """

    def __init__(self, view: str) -> None:
        super().__init__()
        self._view = view

    def render(self) -> RenderableType:
        app: FlowApp = self.app  # type: ignore[assignment]
        session = app.session
        if self._view == "stream":
            return render_trades(
                session,
                session.filtered_trades(app.trade_filter),
                "No trades yet. Waiting for options flow...",
            )
        if self._view == "prints":
            return render_prints(session)
        if self._view == "quotes":
            return render_quotes(session)
        if self._view == "auto":
            return render_trades(session, session.auto_trades.snapshot(), "No auto-trades yet.")
        return render_stats(session)


class FlowApp(App):
    """Main Flow Viewer application."""

    CSS = """
    Screen {
        background: #0f172a;
    }

    #filters {
        height: 3;
        padding: 0 2;
    }

    #filters Input {
        width: 30;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("d", "cycle_direction", "Direction"),
        ("c", "cycle_classification", "Class"),
        ("s", "cycle_stance", "Stance"),
        ("x", "clear_filters", "Clear filters"),
    ]

    def __init__(self, session: FlowSession, url: str) -> None:
        super().__init__()
        self.session = session
        self.url = url
        self.trade_filter = TradeFilter()
        self._last_revision = -1
        self._last_connected: bool | None = None
        self._panels: list[SessionPanel] = []
        self._status_bar: StatusBar | None = None

    def compose(self) -> ComposeResult:
        self._status_bar = StatusBar(self.session, self.url, self.trade_filter)
        yield self._status_bar
        with Horizontal(id="filters"):
            yield Input(placeholder="Symbol filter (e.g. SPY, /ES)", id="symbol")
            yield Input(placeholder="Min premium", id="min-premium", type="number")
        with TabbedContent(initial="stream"):
            for key, title in (
                ("stream", "Stream"),
                ("prints", "Prints"),
                ("quotes", "Quotes"),
                ("auto", "Auto"),
                ("stats", "Stats"),
            ):
                panel = SessionPanel(key)
                self._panels.append(panel)
                with TabPane(title, id=key):
                    yield panel
        yield Footer()

    def on_mount(self) -> None:
        self.set_interval(REFRESH_INTERVAL_SEC, self._poll_session)

    def _poll_session(self) -> None:
        """Redraw when the session changed since the last tick."""
        s = self.session
        if s.revision == self._last_revision and s.connected == self._last_connected:
            return
        self._last_revision = s.revision
        self._last_connected = s.connected
        self._redraw()

    def _redraw(self) -> None:
        if self._status_bar:
            self._status_bar.refresh()
        for panel in self._panels:
            panel.refresh()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "symbol":
            self.trade_filter.symbol = event.value.strip()
        elif event.input.id == "min-premium":
            try:
                self.trade_filter.min_premium = float(event.value or 0)
            except ValueError:
                self.trade_filter.min_premium = 0.0
        self._redraw()

    def action_cycle_direction(self) -> None:
        self.trade_filter.direction = cycle(DIRECTIONS, self.trade_filter.direction)
        self._redraw()

    def action_cycle_classification(self) -> None:
        self.trade_filter.classification = cycle(CLASSIFICATIONS, self.trade_filter.classification)
        self._redraw()

    def action_cycle_stance(self) -> None:
        self.trade_filter.stance = cycle(STANCES, self.trade_filter.stance)
        self._redraw()

    def action_clear_filters(self) -> None:
        f = self.trade_filter
        f.symbol, f.min_premium = "", 0.0
        f.direction = f.classification = f.stance = "all"
        for inp in self.query(Input):
            inp.value = ""
        self._redraw()


async def run_ui(client: FlowClient) -> None:
    """Run the TUI application against a running client."""
    app = FlowApp(client.session, client.url)
    await app.run_async()
