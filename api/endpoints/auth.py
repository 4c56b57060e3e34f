from fastapi import APIRouter, Depends, status
from api.deps import get_store, get_token_claims, require_user
from domain.schemas import LoginRequest, SignupRequest, TokenOut, UserOut
from domain.services import auth
from infra.repositories.record_store import RecordStore

router = APIRouter(prefix="/auth")


def _token_for(user) -> TokenOut:
    return TokenOut(access_token=auth.create_access_token(user), user=UserOut.from_orm(user))


@router.post("/signup", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, store: RecordStore = Depends(get_store)) -> TokenOut:
    return _token_for(auth.signup(store, body.username, body.email, body.password))


@router.post("/login", response_model=TokenOut)
def login(body: LoginRequest, store: RecordStore = Depends(get_store)) -> TokenOut:
    return _token_for(auth.login(store, body.username, body.password))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(store: RecordStore = Depends(get_store), user=Depends(require_user),
           claims: dict = Depends(get_token_claims)) -> None:
    auth.logout(store, token_id=claims["jti"], user=user)


@router.get("/me", response_model=UserOut)
def me(user=Depends(require_user)):
    return user
