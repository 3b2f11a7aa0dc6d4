import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from casalar.core.errors import InvalidInput, NotFound, Unauthorized
from casalar.db.models import Administrator
from casalar.security.utils import hash_password, verify_password, create_access_token, now_utc

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def authenticate(db: Session, username: str, password: str) -> Tuple[str, Administrator]:
    admin = db.query(Administrator).filter(Administrator.username == username).first()
    if not admin or not verify_password(password, admin.password_hash):
        logger.warning('failed admin login for %r', username)
        raise Unauthorized('Credenciais inválidas')
    token, _ = create_access_token(admin.username, admin.id)
    admin.last_login_at = now_utc()
    db.add(admin); db.commit(); db.refresh(admin)
    logger.info('admin %r logged in', admin.username)
    return token, admin


def create_admin(db: Session, username: str, password: str, name: Optional[str] = None,
                 overwrite: bool = False) -> Administrator:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f'Senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres')
    admin = db.query(Administrator).filter(Administrator.username == username).first()
    if admin and not overwrite:
        raise InvalidInput('Administrador já existe')
    now = now_utc()
    if not admin:
        admin = Administrator(username=username, created_at=now)
    admin.password_hash = hash_password(password)
    admin.name = name
    admin.updated_at = now
    db.add(admin); db.commit(); db.refresh(admin)
    return admin


def list_admins(db: Session) -> List[Administrator]:
    return db.query(Administrator).order_by(Administrator.id).all()


def set_password(db: Session, username: str, password: str) -> Administrator:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f'Senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres')
    admin = db.query(Administrator).filter(Administrator.username == username).first()
    if not admin:
        raise NotFound('Administrador não encontrado')
    admin.password_hash = hash_password(password)
    admin.updated_at = now_utc()
    db.add(admin); db.commit(); db.refresh(admin)
    return admin


def delete_admin(db: Session, username: str) -> None:
    admin = db.query(Administrator).filter(Administrator.username == username).first()
    if not admin:
        raise NotFound('Administrador não encontrado')
    db.delete(admin); db.commit()
