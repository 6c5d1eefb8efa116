from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..settings import settings
from ..db import get_db
from ..models import AuthSession, User as UserRecord

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)
logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class SessionUser(BaseModel):
	id: str
	email: str
	name: Optional[str] = None


class RegisterRequest(BaseModel):
	email: str = Field(min_length=3, max_length=256)
	password: str = Field(min_length=8, max_length=256)
	name: Optional[str] = Field(default=None, max_length=256)


def _to_session_user(row: UserRecord) -> SessionUser:
	return SessionUser(id=row.id, email=row.email, name=row.name)


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(plain_password, hashed_password)


def authenticate_user(db: Session, email: str, password: str) -> Optional[SessionUser]:
	row = db.query(UserRecord).filter(UserRecord.email == email.strip().lower()).first()
	if row is None or not row.password_hash:
		return None
	if not verify_password(password, row.password_hash):
		return None
	return _to_session_user(row)


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta
	if delta is None:
		minutes = settings.access_token_expire_minutes
		delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=30)
	now = datetime.now(timezone.utc)
	try:
		return now + delta
	except OverflowError:
		return datetime.max.replace(tzinfo=timezone.utc)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	to_encode.update({"exp": _resolve_expiry(expires_delta)})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@router.post("/token", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
	user = authenticate_user(db, form_data.username, form_data.password)
	if not user:
		raise HTTPException(status_code=401, detail="Incorrect email or password")
	session_id = uuid.uuid4().hex
	access_token = create_access_token({"sub": user.id, "jti": session_id})
	try:
		db.add(AuthSession(session_id=session_id, user_id=user.id))
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Could not persist session for %s", user.id)
		raise HTTPException(status_code=500, detail="Could not create session")
	return Token(access_token=access_token)


def _user_from_token(token: str, db: Session) -> SessionUser:
	credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	except JWTError:
		raise credentials_exception
	user_id: str | None = payload.get("sub")
	jti: str | None = payload.get("jti")
	if user_id is None or jti is None:
		raise credentials_exception
	# A token stays valid only while its session row exists
	session_row = db.get(AuthSession, jti)
	if session_row is None or session_row.user_id != user_id:
		raise credentials_exception
	row = db.get(UserRecord, user_id)
	if row is None:
		raise credentials_exception
	session_row.last_activity_at = datetime.utcnow()
	db.commit()
	return _to_session_user(row)


def get_optional_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Optional[SessionUser]:
	if not token:
		return None
	return _user_from_token(token, db)


def get_current_user(user: Optional[SessionUser] = Depends(get_optional_user)) -> SessionUser:
	if user is None:
		raise HTTPException(status_code=401, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"})
	return user


def ensure_demo_user(db: Session) -> str:
	demo_id = settings.demo_user_id
	if db.get(UserRecord, demo_id) is None:
		db.add(UserRecord(id=demo_id, email=f"{demo_id}@gritflow.local", name="Demo User"))
		try:
			db.commit()
		except IntegrityError:
			# Created concurrently by another request
			db.rollback()
		else:
			logger.info("Created demo user %s", demo_id)
	return demo_id


def resolve_actor_id(db: Session, user: Optional[SessionUser]) -> Optional[str]:
	if user is not None:
		return user.id
	if settings.demo_mode:
		return ensure_demo_user(db)
	return None


def get_actor_id(user: Optional[SessionUser] = Depends(get_optional_user), db: Session = Depends(get_db)) -> Optional[str]:
	return resolve_actor_id(db, user)


def require_actor(actor_id: Optional[str]) -> str:
	if actor_id is None:
		raise HTTPException(status_code=401, detail="Authentication required")
	return actor_id


@router.get("/me", response_model=SessionUser)
async def me(user: SessionUser = Depends(get_current_user)):
	return user


@router.post("/register", status_code=201, response_model=SessionUser)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
	email = req.email.strip().lower()
	if "@" not in email:
		raise HTTPException(status_code=400, detail="email is invalid")
	existing = db.query(UserRecord).filter(UserRecord.email == email).first()
	if existing:
		raise HTTPException(status_code=409, detail="email already registered")
	row = UserRecord(email=email, name=(req.name or "").strip() or None, password_hash=pwd_context.hash(req.password))
	db.add(row)
	try:
		db.commit()
	except IntegrityError:
		db.rollback()
		raise HTTPException(status_code=409, detail="email already registered")
	db.refresh(row)
	return _to_session_user(row)
