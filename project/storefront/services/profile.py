# storefront/services/profile.py

from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from fastapi import Request

from storefront.errors import AppError, ErrorCode, not_found
from storefront.models.user import User as UserModel
from storefront.schemas.user import UserCreate, UserUpdate
from storefront.utils.security import hash_password


async def read_users_service(request: Request, skip: int = 0, limit: int = 100) -> list[UserModel]:
    """
    사용자 목록.
    """
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(UserModel).order_by(UserModel.id).offset(skip).limit(limit))
    users = result.scalars().all()

    await log.log_info("user", f"{len(users)}명 사용자 조회")
    return users


async def read_user_by_login(login: str, request: Request) -> UserModel | None:
    db = request.state.db
    result = await db.execute(select(UserModel).where(UserModel.login == login))
    return result.scalar_one_or_none()


async def create_user_service(user: UserCreate, request: Request, is_admin: bool = False) -> UserModel:
    """
    사용자 생성. 비밀번호는 해시해서 저장한다.
    """
    db = request.state.db
    log = request.app.state.log

    db_user = UserModel(
        login=user.login,
        name=user.name,
        password=hash_password(user.password),
        is_admin=is_admin,
    )
    db.add(db_user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppError(ErrorCode.CONFLICT, f"이미 사용 중인 로그인입니다: {user.login}")
    await db.refresh(db_user)

    await log.log_info("user", "사용자 생성", {"id": db_user.id, "login": db_user.login})
    return db_user


async def read_user_service(id: int, request: Request) -> UserModel:
    db = request.state.db
    log = request.app.state.log

    db_user = await db.get(UserModel, id)
    if db_user is None:
        await log.log_error("user", "사용자 없음", {"id": id})
        raise not_found("사용자를 찾을 수 없습니다.")
    return db_user


async def update_user_service(id: int, user_update: UserUpdate, request: Request) -> UserModel:
    db = request.state.db
    log = request.app.state.log

    db_user = await read_user_service(id, request)
    for key, value in user_update.model_dump(exclude_unset=True).items():
        if key == "password":
            if not value:
                continue
            value = hash_password(value)
        setattr(db_user, key, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppError(ErrorCode.CONFLICT, "이미 사용 중인 로그인입니다.")
    await db.refresh(db_user)

    await log.log_info("user", "사용자 수정", {"id": id})
    return db_user


async def delete_user_service(id: int, request: Request) -> None:
    db = request.state.db
    log = request.app.state.log

    db_user = await read_user_service(id, request)
    await db.delete(db_user)
    await db.commit()
    await log.log_info("user", "사용자 삭제", {"id": id})
