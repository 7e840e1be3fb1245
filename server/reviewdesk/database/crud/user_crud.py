import logging
from typing import List, Optional

from pydantic import BaseModel
from reviewdesk.auth.roles import normalize_roles
from reviewdesk.auth.tokens import hash_password, verify_password
from reviewdesk.database.crud.base_crud import CRUDBase
from reviewdesk.database.models import User
from reviewdesk.schemas.user import UserCreate
from reviewdesk.workflow.errors import ConflictError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class UserUpdate(BaseModel):
    name: Optional[str] = None
    contact_number: Optional[str] = None


class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        """Get a user by email."""
        return db.query(User).filter(User.email == email.strip().lower()).first()

    def register(self, db: Session, *, obj_in: UserCreate) -> User:
        """
        Create an account with a hashed password and canonical roles.

        `roles` wins over the legacy single `role` field when both are sent.
        """
        if self.get_by_email(db, email=obj_in.email):
            raise ConflictError("Email already registered")

        roles = normalize_roles(obj_in.roles if obj_in.roles else obj_in.role)

        db_obj = User(
            name=obj_in.name,
            email=obj_in.email,
            password=hash_password(obj_in.password),
            roles=roles,
            contact_number=obj_in.contact_number,
        )
        db.add(db_obj)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            db.rollback()
            raise ConflictError("Email already registered")
        db.refresh(db_obj)

        logger.info(f"Registered user {db_obj.id} with roles {roles}")
        return db_obj

    def authenticate(self, db: Session, *, email: str, password: str) -> Optional[User]:
        user = self.get_by_email(db, email=email)
        if user and verify_password(password, str(user.password)):
            return user
        return None

    def list_all(self, db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at.desc()).all()


user_crud = CRUDUser(User)
