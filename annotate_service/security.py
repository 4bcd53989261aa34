import hmac

def bearer_token_matches(expected: str, authorization: str | None) -> bool:
    if not authorization or not authorization.startswith("Bearer "):
        return False
    token = authorization[len("Bearer "):]
    return hmac.compare_digest(expected.encode("utf-8"), token.encode("utf-8"))
