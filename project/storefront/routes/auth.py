# storefront/routes/auth.py

from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jwt import ExpiredSignatureError, InvalidTokenError

from storefront.config import settings
from storefront.schemas.user import UserCreate, UserUpdate, UserResponse
from storefront.services.profile import (
    create_user_service,
    delete_user_service,
    read_user_by_login,
    read_user_service,
    read_users_service,
    update_user_service,
)
from storefront.utils.security import create_access_token, decode_access_token, verify_password

router = APIRouter()

# ────────────── JWT ──────────────
ACCESS_TOKEN_EXPIRE_MINUTES = settings.AUTH_TOKEN_EXPIRE_MINUTES
TOKEN_COOKIES = ("auth-token", "accessToken")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def resolve_token(request: Request, bearer: str | None) -> str | None:
    """Authorization 헤더가 없으면 auth-token, accessToken 쿠키 순으로 찾는다."""
    if bearer:
        return bearer
    for name in TOKEN_COOKIES:
        if request.cookies.get(name):
            return request.cookies[name]
    return None


async def get_current_user(request: Request, bearer: str | None = Depends(oauth2_scheme)):
    """
    JWT 를 검증하고 사용자 행을 돌려준다.

    **상태 코드:**
    - 401 Unauthorized: 토큰 없음, 만료, 위조, 사용자 없음
    """
    log = request.app.state.log
    token = resolve_token(request, bearer)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="로그인이 필요합니다.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token, settings.AUTH_SECRET_KEY)
    except ExpiredSignatureError:
        await log.log_warning("auth", "토큰 만료")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="토큰이 만료되었습니다.")
    except InvalidTokenError:
        await log.log_warning("auth", "잘못된 토큰")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="유효하지 않은 토큰입니다.")

    login = payload.get("sub")
    user = await read_user_by_login(login, request) if login else None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="사용자를 찾을 수 없습니다.")
    return user


async def require_admin(current_user=Depends(get_current_user)):
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="관리자만 접근할 수 있습니다.")
    return current_user


# ────────────── TOKEN ──────────────
@router.post(
    "/token",
    summary="JWT 토큰 발급 (로그인)",
    responses={
        200: {
            "description": "✅ 토큰 발급. access_token, token_type, 사용자 정보를 돌려주고 auth-token 쿠키를 설정한다.",
            "content": {
                "application/json": {
                    "example": {
                        "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "token_type": "bearer",
                        "user": {"id": 1, "name": "관리자", "login": "admin", "is_admin": True},
                    }
                }
            },
        },
        401: {"description": "❌ 로그인 또는 비밀번호 오류"},
        422: {"description": "⚠️ 입력 검증 오류"},
    },
)
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    """
    로그인 후 JWT 를 발급한다.

    **입력 (form-data):** `username`, `password`
    """
    log = request.app.state.log
    try:
        user = await read_user_by_login(form_data.username, request)
        if not user or not verify_password(form_data.password, user.password or ""):
            await log.log_warning("auth", "로그인 실패", {"username": form_data.username})
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="로그인 또는 비밀번호가 올바르지 않습니다.",
                headers={"WWW-Authenticate": "Bearer"},
            )

        access_token = create_access_token(
            data={"sub": user.login},
            secret_key=settings.AUTH_SECRET_KEY,
            expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        )
        response.set_cookie(
            "auth-token", access_token, max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60, httponly=True, samesite="lax"
        )

        await log.log_info("auth", "로그인 성공", {"login": user.login})
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "user": {"id": user.id, "name": user.name, "login": user.login, "is_admin": user.is_admin},
        }
    except HTTPException:
        raise
    except Exception as e:
        await log.log_error("auth", f"토큰 발급 오류: {e}", {"username": form_data.username})
        raise


@router.post("/logout", summary="로그아웃 (쿠키 삭제)")
async def logout(response: Response):
    for name in TOKEN_COOKIES:
        response.delete_cookie(name)
    return {"success": True}


# ────────────── 회원 가입 ──────────────
@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="회원 가입",
    responses={
        201: {"description": "가입 완료"},
        409: {"description": "이미 사용 중인 로그인"},
        422: {"description": "입력 검증 오류"},
    },
)
async def register_user(user: UserCreate, request: Request):
    """
    새 일반 사용자를 만든다. 가입 경로로는 관리자를 만들 수 없다.
    """
    try:
        return await create_user_service(user, request, is_admin=False)
    except Exception as e:
        await request.app.state.log.log_error("auth", f"가입 오류: {e}", {"login": user.login})
        raise


@router.get("/me", response_model=UserResponse, summary="내 정보")
async def read_me(current_user=Depends(get_current_user)):
    return current_user


# ────────────── 사용자 관리 (관리자) ──────────────
@router.get(
    "/users",
    response_model=List[UserResponse],
    summary="사용자 목록 (관리자)",
    responses={401: {"description": "토큰 오류"}, 403: {"description": "관리자 아님"}},
)
async def get_users(request: Request, skip: int = 0, limit: int = 100, _=Depends(require_admin)):
    return await read_users_service(request, skip, limit)


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="사용자 생성 (관리자)",
    responses={409: {"description": "이미 사용 중인 로그인"}},
)
async def create_user(user: UserCreate, request: Request, is_admin: bool = False, _=Depends(require_admin)):
    return await create_user_service(user, request, is_admin=is_admin)


@router.get("/users/{user_id}", response_model=UserResponse, summary="사용자 조회 (관리자)")
async def get_user(user_id: int, request: Request, _=Depends(require_admin)):
    return await read_user_service(user_id, request)


@router.put("/users/{user_id}", response_model=UserResponse, summary="사용자 수정 (관리자)")
async def update_user(user_id: int, user_update: UserUpdate, request: Request, _=Depends(require_admin)):
    return await update_user_service(user_id, user_update, request)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="사용자 삭제 (관리자)")
async def delete_user(user_id: int, request: Request, current_user=Depends(require_admin)):
    if current_user.id == user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="자기 자신은 삭제할 수 없습니다.")
    await delete_user_service(user_id, request)
