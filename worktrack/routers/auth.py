from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from worktrack.database import get_db
from worktrack.models.user import User
from worktrack.schemas.user import UserLogin
from worktrack.schemas.tokens import Token
from worktrack.utils.security import verify_password, create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/login", response_model=Token)
def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.email == user.email).first()
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    if not db_user.is_active:
        raise HTTPException(status_code=400, detail="Account has been deactivated")

    token = create_access_token(data={"sub": db_user.email})
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": db_user,
    }
