OPT_OUT_EXACT = {"stop", "cancel"}

OPT_OUT_REPLY = "You have been unsubscribed. Reply START to resume."


def normalize_for_matching(text: str) -> str:
    return (text or "").strip().casefold()


def is_opt_out_message(message: str) -> bool:
    """Exact, case-insensitive match on the opt-out commands."""
    return normalize_for_matching(message) in OPT_OUT_EXACT
