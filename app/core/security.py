"""Security utilities: password hashing and JWT token handling."""
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS = "access"
REFRESH = "refresh"
VERIFY_EMAIL = "verify_email"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _encode(subject: str, token_type: str, expires_in: timedelta, **claims) -> str:
    expire = datetime.now(timezone.utc) + expires_in
    to_encode = {"sub": str(subject), "exp": expire, "type": token_type, **claims}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(subject: str) -> str:
    return _encode(subject, ACCESS, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(subject: str) -> str:
    return _encode(subject, REFRESH, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def create_email_verification_token(subject: str, email: str) -> str:
    # Bound to the address so a token stops working if the account e-mail changes
    return _encode(subject, VERIFY_EMAIL, timedelta(hours=settings.VERIFY_EMAIL_TOKEN_EXPIRE_HOURS), email=email)


def decode_token(token: str) -> dict | None:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def subject_for(token: str, token_type: str) -> str | None:
    """Return the token's subject if it decodes and has the expected type."""
    payload = decode_token(token)
    if not payload or payload.get("type") != token_type:
        return None
    return payload.get("sub") or None
