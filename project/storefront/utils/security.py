# storefront/utils/security.py

"""
비밀번호 해싱과 JWT 발급/검증.
passlib 의 sha256_crypt 를 쓴다 (bcrypt 빌드 문제 회피).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jwt import encode, decode
from passlib.context import CryptContext

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["sha256_crypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    비밀번호를 해시한다.

    :param password: 사용자 비밀번호
    :return: 해시 문자열
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    비밀번호가 해시와 일치하는지 확인한다.

    :param plain_password: 사용자 비밀번호
    :param hashed_password: DB 에 저장된 해시
    :return: 일치하면 True
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, secret_key: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    사용자 데이터로 JWT 를 만든다.
    입력: dict (예: {"sub": "login"})
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return encode(to_encode, secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, secret_key: str) -> dict:
    """JWT 를 검증하고 payload 를 돌려준다. 만료/위조 시 jwt 예외가 그대로 올라간다."""
    return decode(token, secret_key, algorithms=[ALGORITHM])
