from fastapi import Depends, HTTPException, status
from app.utils.get_user import CurrentUser, get_current_user


def require_role(roles: list[str]):
    allowed = {r.lower() for r in roles}

    async def role_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role.lower() not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied"
            )
        return user
    return role_checker
