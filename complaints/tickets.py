import secrets

TICKET_PREFIX = "CSHLD"


def generate_ticket_id() -> str:
    """Six uppercase hex characters from three random bytes, e.g. CSHLD-3FA09C.

    Collisions are not checked against the store.
    """
    return f"{TICKET_PREFIX}-{secrets.token_bytes(3).hex().upper()}"


def clean_ticket_id(value: str) -> str:
    # generated ids are always upper case
    return (value or "").strip().upper()
