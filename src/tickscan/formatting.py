"""
Plain text presentation of tick retrieval results.
"""

from tickscan.uniswap.v3_tick_service import tick_prices
from tickscan.uniswap.v3_types import TickRetrievalResult


def format_large_number(value: int | float) -> str:
    """
    Format a number with a K, M or B suffix and two decimal places.
    """

    value = float(value)
    sign = "-" if value < 0 else ""
    for threshold, suffix in (
        (1e9, "B"),
        (1e6, "M"),
        (1e3, "K"),
    ):
        if abs(value) >= threshold:
            return f"{sign}{abs(value) / threshold:.2f}{suffix}"
    return f"{value:.2f}"


def format_price(price: float, decimals: int = 6) -> str:
    return f"{price:.{decimals}f}"


def format_tick_table(
    result: TickRetrievalResult,
    base_symbol: str,
    quote_symbol: str,
    zero_is_quote: bool,
) -> str:
    """
    Render a summary and one row per tick: index, initialization flag, gross and net liquidity,
    in-range liquidity and the price in quote tokens.
    """

    snapshot = result.snapshot
    base_decimals, quote_decimals = (
        (snapshot.decimals1, snapshot.decimals0)
        if zero_is_quote
        else (snapshot.decimals0, snapshot.decimals1)
    )

    lines = [
        "",
        "=== Tick Data Summary ===",
        f"Current Tick: {snapshot.tick}",
        f"Tick Spacing: {snapshot.tick_spacing}",
        f"Total Ticks Retrieved: {result.total_ticks_retrieved}",
        f"Base Token: {base_symbol} ({base_decimals} decimals)",
        f"Quote Token: {quote_symbol} ({quote_decimals} decimals)",
        "",
    ]

    symbol0, symbol1 = (quote_symbol, base_symbol) if zero_is_quote else (base_symbol, quote_symbol)
    price_summary = result.price_summary
    lines.extend(
        (
            "=== Current Price ===",
            f"1 {symbol0} = {format_price(price_summary.token1_per_token0)} {symbol1}",
            f"1 {symbol1} = {format_price(price_summary.token0_per_token1)} {symbol0}",
            f"sqrtPriceX96: {snapshot.sqrt_price_x96} (from price: {price_summary.sqrt_price_x96})",
            "",
        )
    )

    columns = (
        ("Tick Index", 12),
        ("Initialized", 12),
        ("Liquidity Gross", 16),
        ("Liquidity Net", 16),
        ("Liquidity", 16),
        (f"{base_symbol}/{quote_symbol}", 18),
    )
    lines.append(" ".join(title.rjust(width) for title, width in columns))
    lines.append(" ".join("-" * width for _, width in columns))

    prices = tick_prices(result.ticks, snapshot, zero_is_quote)
    for i, (record, price) in enumerate(zip(result.ticks, prices, strict=True)):
        marker = "*" if i == result.anchor_index else ""
        row = (
            f"{record.tick}{marker}",
            "yes" if record.initialized else "no",
            format_large_number(record.liquidity_gross),
            format_large_number(record.liquidity_net),
            format_large_number(result.liquidity_curve[i]),
            format_price(price),
        )
        lines.append(
            " ".join(cell.rjust(width) for cell, (_, width) in zip(row, columns, strict=True))
        )

    return "\n".join(lines)
