from datetime import datetime

from beanie import PydanticObjectId
from beanie.operators import Set

from app.core.audit import log_event
from app.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from app.core.logging import get_logger
from app.core.security import hash_password, verify_password
from app.db.init import transaction
from app.models.user import User
from app.services import ledger

log = get_logger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def _ensure_email_free(email: str, exclude_id: PydanticObjectId | None = None) -> None:
    existing = await User.find_one(User.email == email)
    if existing and (exclude_id is None or str(existing.id) != str(exclude_id)):
        raise ConflictError("User already exists with this email")


async def register_user(name: str, email: str, password: str) -> User:
    """Self-service sign-up; the account waits for admin approval."""
    email = normalize_email(email)
    await _ensure_email_free(email)
    user = User(name=name.strip(), email=email, password_hash=hash_password(password))
    await user.insert()
    log.info("user_registered", user_id=str(user.id), email=user.email)
    return user


async def create_user(actor_id: str, name: str, email: str, password: str, role: str = "user") -> User:
    """Admin-created account, approved immediately."""
    email = normalize_email(email)
    await _ensure_email_free(email)
    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        approved=True,
    )
    await user.insert()
    log.info("user_created", user_id=str(user.id), email=user.email, role=role)
    await log_event(actor_id, "user_created", "user", str(user.id), {"email": user.email, "role": role})
    return user


async def authenticate(email: str, password: str) -> User:
    user = await User.find_one(User.email == normalize_email(email))
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")
    if not user.approved:
        raise ForbiddenError("Account pending admin approval")
    user.last_login_at = datetime.utcnow()
    await user.save()
    log.info("user_login", user_id=str(user.id))
    return user


def session_payload_for_user(user: User) -> dict:
    return {"user_id": str(user.id), "session_version": user.session_version}


async def get_user(user_id: PydanticObjectId) -> User:
    user = await User.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def list_users() -> list[User]:
    return await User.find_all().sort(+User.name).to_list()


async def update_user(
    actor: User,
    user_id: PydanticObjectId,
    name: str | None = None,
    email: str | None = None,
    role: str | None = None,
    approved: bool | None = None,
    dob: datetime | None = None,
    anniversary: datetime | None = None,
) -> User:
    """Members edit their own profile; admins may also change email, role and approval."""
    is_self = str(actor.id) == str(user_id)
    if not is_self and not actor.is_admin:
        raise ForbiddenError("You can only edit your own profile")
    if not actor.is_admin and (email is not None or role is not None or approved is not None):
        raise ForbiddenError("Admin only")
    user = await get_user(user_id)
    if name is not None:
        user.name = name.strip()
    if email is not None:
        email = normalize_email(email)
        await _ensure_email_free(email, exclude_id=user.id)
        user.email = email
    if role is not None:
        user.role = role
    if approved is not None:
        user.approved = approved
    if dob is not None:
        user.dob = dob
    if anniversary is not None:
        user.anniversary = anniversary
    user.updated_at = datetime.utcnow()
    await user.save()
    if not is_self:
        await log_event(str(actor.id), "user_updated", "user", str(user.id), {"role": user.role, "approved": user.approved})
    return user


async def delete_user(actor_id: str, user_id: PydanticObjectId) -> None:
    user = await get_user(user_id)
    await user.delete()
    log.info("user_deleted", user_id=str(user_id))
    await log_event(actor_id, "user_deleted", "user", str(user_id), {"email": user.email})


async def change_password(user: User, old_password: str, new_password: str) -> None:
    """Verify and replace the password; other sessions are invalidated via session_version."""
    if not verify_password(old_password, user.password_hash):
        raise BadRequestError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    user.session_version += 1
    user.updated_at = datetime.utcnow()
    await user.save()
    log.info("password_changed", user_id=str(user.id))


async def confirm_payment(actor_id: str, user_id: PydanticObjectId) -> User:
    """Admin confirms a member paid what they owe: balance goes to zero via a payment entry."""
    async with transaction() as session:
        user = await User.get(user_id, session=session)
        if not user:
            raise NotFoundError("User not found")
        if not user.outstanding_balance or user.outstanding_balance <= 0:
            raise BadRequestError("User has no outstanding balance to confirm")
        paid = user.outstanding_balance
        await ledger.post_entries([user.id], -paid, "payment", "user", str(user.id), session=session)
        await User.find_one(User.id == user.id, session=session).update(
            Set({User.outstanding_balance: 0.0}), session=session
        )
        user.outstanding_balance = 0.0
        await log_event(actor_id, "payment_confirmed", "user", str(user.id), {"amount": paid}, session=session)
    log.info("payment_confirmed", user_id=str(user_id), amount=paid)
    return user


async def list_pending_users() -> list[User]:
    return await User.find(User.approved == False).sort(-User.created_at).to_list()  # noqa: E712


async def review_pending_user(actor_id: str, user_id: PydanticObjectId, action: str) -> str:
    """Approve (flag the account) or reject (delete the unapproved account)."""
    user = await get_user(user_id)
    if action == "approve":
        user.approved = True
        user.updated_at = datetime.utcnow()
        await user.save()
        log.info("user_approved", user_id=str(user_id))
        await log_event(actor_id, "user_approved", "user", str(user_id), {"email": user.email})
        return "User approved successfully"
    if action == "reject":
        if user.approved:
            raise BadRequestError("User is already approved")
        await user.delete()
        log.info("user_rejected", user_id=str(user_id))
        await log_event(actor_id, "user_rejected", "user", str(user_id), {"email": user.email})
        return "User rejected"
    raise BadRequestError(f"Unknown action: {action}")


async def reset_leaderboard(actor_id: str | None = None) -> int:
    """Zero points and match counters for every user; return how many changed."""
    result = await User.find_all().update(
        Set({User.points: 0, User.matches_played: 0, User.matches_won: 0, User.matches_lost: 0})
    )
    modified = getattr(result, "modified_count", 0) or 0
    log.info("leaderboard_reset", users=modified)
    await log_event(actor_id, "leaderboard_reset", "user", None, {"modified": modified})
    return modified
