"""State machine transitions enforced during checkout."""

PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"completed", "failed"},
    "completed": set(),
    "failed": set(),
}

# Checkout steps driven by the payment orchestrator. Every step may fail.
CHECKOUT_STEP_TRANSITIONS: dict[str, set[str]] = {
    "START": {"CREATE_CUSTOMER", "CREATE_INTENT"},
    "CREATE_CUSTOMER": {"ATTACH_PAYMENT_METHOD", "FAILED"},
    "ATTACH_PAYMENT_METHOD": {"CREATE_INTENT", "FAILED"},
    "CREATE_INTENT": {"COMPLETED", "FAILED"},
    "COMPLETED": set(),
    "FAILED": set(),
}


def validate_transition(
    current: str, new: str, transitions: dict[str, set[str]] = PAYMENT_TRANSITIONS
) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in transitions.get(current, set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")
