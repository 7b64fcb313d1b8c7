# silkthread/core/format.py
"""
Currency formatting for INR amounts.

Prices are shown the way Indian shoppers expect them: rupee symbol,
lakh/crore digit grouping (1,00,000) and no paise by default.
"""

RUPEE = "₹"


def format_indian_number(value: float, decimals: int = 0) -> str:
    """
    Group digits the Indian way.

    Examples:
        format_indian_number(100000)      -> "1,00,000"
        format_indian_number(1500.5, 2)   -> "1,500.50"
    """
    negative = value < 0
    text = f"{abs(value):.{decimals}f}"
    whole, _, fraction = text.partition(".")

    # last 3 digits, then groups of 2
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    result = f"{whole}.{fraction}" if fraction else whole
    return f"-{result}" if negative else result


def format_currency(
    amount: float,
    show_symbol: bool = True,
    decimals: int = 0,
) -> str:
    """
    Format an amount as INR.

    Examples:
        format_currency(1500)                     -> "₹1,500"
        format_currency(1500, show_symbol=False)  -> "1,500"
        format_currency(1500.5, decimals=2)       -> "₹1,500.50"
    """
    number = format_indian_number(amount, decimals)
    if not show_symbol:
        return number
    if number.startswith("-"):
        return f"-{RUPEE}{number[1:]}"
    return f"{RUPEE}{number}"
