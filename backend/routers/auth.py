"""
Router auth : inscription client, connexion email / mot de passe → JWT.
"""
from fastapi import APIRouter, Depends, Request

from core.dependencies import get_current_user
from core.exceptions import credentials_exception, forbidden_exception
from core.limiter import limiter
from core.security import create_access_token, verify_password
from database import db
from models.common import UserRole
from models.user import LoginRequest, TokenResponse, User, UserRegister
from services.user_service import create_user

router = APIRouter()


def _token_response(user_doc: dict) -> TokenResponse:
    token = create_access_token(user_doc["user_id"], user_doc["role"])
    return TokenResponse(access_token=token, user=User(**user_doc))


@router.post("/register", response_model=TokenResponse, summary="Créer un compte client")
async def register(body: UserRegister):
    user_doc = await create_user(body, UserRole.CUSTOMER)
    return _token_response(user_doc)


@router.post("/login", response_model=TokenResponse, summary="Connexion → JWT")
@limiter.limit("10/minute")
async def login(request: Request, body: LoginRequest):
    user_doc = await db.users.find_one({"email": body.email}, {"_id": 0})
    if not user_doc:
        raise credentials_exception()
    if not verify_password(body.password, user_doc.get("password_hash")):
        raise credentials_exception()
    if not user_doc.get("is_active", True):
        raise forbidden_exception("Account disabled")

    user_doc.pop("password_hash", None)
    return _token_response(user_doc)


@router.get("/me", response_model=User, summary="Profil connecté")
async def me(current_user: dict = Depends(get_current_user)):
    return User(**current_user)
