import re
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from app.config import settings
from app.schemas.auth import TokenData

ALGORITHM = "HS256"
WALLET_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(address: str) -> str:
    if not WALLET_ADDRESS_RE.match(address):
        raise ValueError(f"not a wallet address: {address!r}")
    return address.lower()


def create_access_token(owner_address: str) -> str:
    """Issue a token for an already verified wallet. Sign-in itself happens elsewhere."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": normalize_address(owner_address), "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> TokenData:
    payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    subject: str | None = payload.get("sub")
    if subject is None:
        raise JWTError("missing sub")
    return TokenData(owner_address=normalize_address(subject))
