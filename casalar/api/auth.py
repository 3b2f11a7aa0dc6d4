from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casalar.api.deps import get_db
from casalar.core.auth import get_current_identity
from casalar.schemas import LoginPayload, LoginResponse, AdminRead
from casalar.services import admins

router = APIRouter()  # main.py mounts at /api/auth


@router.post('/login', response_model=LoginResponse)
def login(payload: LoginPayload, db: Session = Depends(get_db)) -> LoginResponse:
    token, admin = admins.authenticate(db, payload.usuario, payload.senha)
    return LoginResponse(token=token, admin=AdminRead.model_validate(admin))


@router.get('/verify')
def verify(identity: dict = Depends(get_current_identity)) -> dict:
    return {
        'success': True,
        'message': 'Token válido',
        'user': {'id': identity.get('id'), 'usuario': identity.get('sub'), 'tipo': identity.get('role')},
    }


@router.post('/logout')
def logout(identity: dict = Depends(get_current_identity)) -> dict:
    # tokens are stateless; the client drops its copy
    return {'success': True, 'message': 'Deslogado com sucesso'}
