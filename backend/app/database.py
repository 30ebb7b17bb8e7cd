"""
Connexion au backend PostgreSQL hébergé.

Un seul moteur SQLAlchemy est construit au chargement du module ; chaque requête
reçoit sa propre session via la dépendance FastAPI get_db (substituable en test).
Les tables sont lues/écrites via l'ORM, les procédures stockées via rpc()/rpc_scalar().
"""

import re
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import settings

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Nom de procédure stockée : identifiant SQL simple, jamais interpolé depuis une saisie
_PROCEDURE_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


def get_db():
    """Dépendance FastAPI : fournit une session BDD et la ferme après usage."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _procedure_call(name: str, params: dict, returns_set: bool) -> str:
    """Construit l'appel SQL en notation nommée : fn(p_x => :p_x, ...)."""
    if not _PROCEDURE_NAME.match(name):
        raise ValueError(f"Nom de procédure invalide : {name!r}")
    args = ", ".join(f"{key} => :{key}" for key in params)
    if returns_set:
        return f"SELECT * FROM {name}({args})"
    return f"SELECT {name}({args})"


def rpc(db: Session, name: str, **params: Any) -> list[dict]:
    """Appelle une procédure qui retourne un ensemble de lignes (RETURNS TABLE / SETOF)."""
    rows = db.execute(text(_procedure_call(name, params, returns_set=True)), params).mappings().all()
    return [dict(row) for row in rows]


def rpc_scalar(db: Session, name: str, **params: Any) -> Any:
    """Appelle une procédure qui retourne une valeur unique (texte, entier ou json)."""
    return db.execute(text(_procedure_call(name, params, returns_set=False)), params).scalar()
