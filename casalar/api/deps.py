from typing import Iterator
from sqlalchemy.orm import Session
from casalar.db.session import SessionLocal

def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
