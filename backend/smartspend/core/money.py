import math

CURRENCY_SYMBOLS = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€",
}


def round_money(value: float) -> float:
    """Half-up rounding to 2 decimals, used only when a figure leaves the engine."""
    return math.floor(value * 100 + 0.5) / 100


def round_one(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_money(amount: float, currency: str = "GBP") -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, "£")
    return f"{symbol}{amount:.2f}"
