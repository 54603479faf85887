from sqlalchemy.ext.asyncio import AsyncSession
from app.models.support.activity_models import UserActivity
from app.constants.activity_templates import ACTIVITY_TEMPLATES
from app.constants.activity_codes import ActivityCode

SYSTEM_USERNAME = "system"


def render_activity(code: ActivityCode, **context) -> str:
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        return template.format(**context)
    except KeyError as e:
        raise ValueError(
            f"Missing activity context key: {e.args[0]} for {code}"
        )


async def emit_activity(
    db: AsyncSession,
    *,
    user_id: int | None,
    username: str,
    code: ActivityCode,
    **context,
) -> UserActivity:
    """Stage an audit row; it commits with the caller's transaction."""
    activity = UserActivity(
        user_id=user_id,
        username_snapshot=username,
        message=render_activity(code, **context),
    )
    db.add(activity)
    return activity


async def emit_user_activity(db: AsyncSession, user, code: ActivityCode, **context) -> UserActivity:
    return await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=code,
        actor_role=user.role.capitalize(),
        actor_email=user.username,
        **context,
    )


async def emit_system_activity(db: AsyncSession, code: ActivityCode, **context) -> UserActivity:
    return await emit_activity(
        db=db,
        user_id=None,
        username=SYSTEM_USERNAME,
        code=code,
        actor_role="System",
        actor_email=SYSTEM_USERNAME,
        **context,
    )
