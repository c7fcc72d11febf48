from sqlmodel import Field, SQLModel

USER_STATUS_ACTIVE = "active"


class UserBase(SQLModel):
    name: str
    email: str | None = Field(default=None, unique=True, index=True)
    phone: str = ""
    role: str = Field(default="patient", index=True)  # patient | therapist | admin
    status: str = Field(default=USER_STATUS_ACTIVE, index=True)  # active | suspended | deleted


class User(UserBase, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)

