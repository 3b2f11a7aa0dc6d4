from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from casalar.core.errors import Unauthorized, Forbidden
from casalar.security.utils import decode_token

security = HTTPBearer(auto_error=False)

def get_current_identity(creds: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    if not creds:
        raise Unauthorized()
    try:
        payload = decode_token(creds.credentials)
    except jwt.PyJWTError:
        raise Unauthorized('Token inválido')
    if payload.get('type') != 'access':
        raise Unauthorized('Token inválido')
    return payload  # sub (username), id, role

def require_admin(identity: dict = Depends(get_current_identity)) -> dict:
    if identity.get('role') != 'admin':
        raise Forbidden()
    return identity
